"""
API views for the HomeHero marketplace.
"""

import logging
import math
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Q
from django.http import JsonResponse
from rest_framework import generics, status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import SAFE_METHODS, AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .authentication import OptionalIdentityTokenAuthentication
from .models import Booking, Review, Service
from .permissions import (
    CanUpdateBookingStatus,
    IsBookingParticipant,
    IsRegisteredProvider,
    IsReviewAuthor,
    IsReviewedServiceProvider,
    IsSelfOrStaff,
    IsServiceOwner,
    IsStaffUser,
)
from .serializers import (
    BookingCancelSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusUpdateSerializer,
    ReviewCreateSerializer,
    ReviewResponseSerializer,
    ReviewSerializer,
    ReviewUpdateSerializer,
    ServiceSerializer,
    StaffUserUpdateSerializer,
    UserProfileUpdateSerializer,
    UserRegistrationSerializer,
    UserSerializer,
)
from .statistics import build_provider_statistics

User = get_user_model()
logger = logging.getLogger(__name__)


def get_client_ip(request):
    """
    Get client IP address from request.
    Handles proxy headers for accurate IP detection.
    """
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def _positive_int_param(request, name, default, maximum=None):
    """Parse a positive integer query parameter, raising 400 when malformed."""
    raw = request.query_params.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError({name: f'Invalid value for "{name}". Must be a positive integer.'})
    if value < 1:
        raise ValidationError({name: f'"{name}" must be at least 1.'})
    if maximum is not None:
        value = min(value, maximum)
    return value


def _price_param(request, *names):
    """Parse a non-negative price filter given under any of ``names``."""
    for name in names:
        raw = request.query_params.get(name)
        if raw in (None, ''):
            continue
        try:
            value = Decimal(raw)
        except (InvalidOperation, ValueError):
            raise ValidationError({names[0]: f'Invalid value for "{name}". Must be a valid number.'})
        if not value.is_finite() or value < 0:
            raise ValidationError({names[0]: f'"{name}" must be a non-negative number.'})
        return value
    return None


def _status_param(request):
    """Parse the optional booking ``status`` filter."""
    value = request.query_params.get('status')
    if not value:
        return None
    if value not in Booking.Status.values:
        raise ValidationError({
            'status': f'Invalid status "{value}". Must be one of: {", ".join(Booking.Status.values)}.'
        })
    return value


class PublicReadMixin:
    """
    Reads are open to anyone; writes need a verified identity.

    A broken token on a read is ignored instead of rejected, so an expired
    session never hides the public catalogue.
    """

    def initialize_request(self, request, *args, **kwargs):
        self.is_public_read = request.method in SAFE_METHODS
        return super().initialize_request(request, *args, **kwargs)

    def get_authenticators(self):
        if getattr(self, 'is_public_read', False):
            return [OptionalIdentityTokenAuthentication()]
        return super().get_authenticators()

    def get_permissions(self):
        if self.request.method in SAFE_METHODS:
            return [AllowAny()]
        return super().get_permissions()


# ============================================================================
# Health Check Views
# ============================================================================

class RootView(APIView):
    """Service banner at ``/``."""

    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        return Response({
            'status': 'OK',
            'message': 'Hero Home API is running',
            'version': settings.API_VERSION,
        })


class HealthCheckView(APIView):
    """Liveness probe at ``/api/health/``."""

    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        return Response({'status': 'OK', 'message': 'Server is running'})


def handler404(request, exception=None):
    """JSON body for unmatched routes."""
    return JsonResponse(
        {'message': 'Route not found', 'error': 'NOT_FOUND'},
        status=status.HTTP_404_NOT_FOUND
    )


def handler500(request):
    """JSON body for errors raised outside DRF views."""
    return JsonResponse(
        {'message': 'Internal server error.', 'error': 'INTERNAL_ERROR'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


# ============================================================================
# Service Views
# ============================================================================

class ServiceListCreateView(PublicReadMixin, APIView):
    """
    API endpoint for listing and creating services.

    GET /api/services/ (public)

    Query Parameters:
    - category: Filter by category, "all" or empty for every category
    - search: Case-insensitive match on name or description
    - min_price / minPrice: Minimum hourly price
    - max_price / maxPrice: Maximum hourly price
    - limit: Page size (default: 10, max: 100)
    - page: Page number (default: 1)

    Only available services are listed, newest first.

    Success response (200):
    {
        "services": [...],
        "total": 42,
        "total_pages": 5,
        "current_page": 1
    }

    POST /api/services/ (providers only)
    Headers: Authorization: Bearer <id_token>

    Error responses:
    - 400: Invalid query parameters or service data
    - 401: Missing, invalid, or expired token
    - 403: Caller has no provider profile
    """

    permission_classes = [IsAuthenticated, IsRegisteredProvider]

    def get(self, request, *args, **kwargs):
        queryset = Service.objects.filter(available=True)

        # Step 1: Filters
        category = request.query_params.get('category', '').strip().lower()
        if category and category != 'all':
            queryset = queryset.filter(category=category)

        search = request.query_params.get('search', '').strip()
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(description__icontains=search)
            )

        min_price = _price_param(request, 'min_price', 'minPrice')
        max_price = _price_param(request, 'max_price', 'maxPrice')
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError({'min_price': 'Minimum price cannot be greater than maximum price.'})
        if min_price is not None:
            queryset = queryset.filter(price__gte=min_price)
        if max_price is not None:
            queryset = queryset.filter(price__lte=max_price)

        # Step 2: Pagination
        limit = _positive_int_param(request, 'limit', 10, maximum=100)
        page = _positive_int_param(request, 'page', 1)

        queryset = queryset.order_by('-created_at', '-id')
        total = queryset.count()
        offset = (page - 1) * limit
        services = queryset[offset:offset + limit]

        return Response({
            'services': ServiceSerializer(services, many=True).data,
            'total': total,
            'total_pages': math.ceil(total / limit),
            'current_page': page,
        })

    def post(self, request, *args, **kwargs):
        serializer = ServiceSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        service = serializer.save()

        logger.info(
            f"Service created. Service ID: {service.id}, "
            f"Provider: {request.user.uid}, IP: {get_client_ip(request)}"
        )

        return Response(ServiceSerializer(service).data, status=status.HTTP_201_CREATED)


class TopRatedServicesView(APIView):
    """
    GET /api/services/top-rated/?limit=6

    Available services by rating average, then review count, highest first.
    """

    authentication_classes = [OptionalIdentityTokenAuthentication]
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        limit = _positive_int_param(request, 'limit', 6, maximum=50)
        services = Service.objects.filter(available=True).order_by(
            '-rating_average', '-rating_count', 'id'
        )[:limit]
        return Response(ServiceSerializer(services, many=True).data)


class ServiceDetailView(PublicReadMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    API endpoint for a single service.

    GET is public; PUT, PATCH and DELETE are reserved to the provider who
    owns the service. Deleting a service removes its reviews and detaches
    its bookings, which keep their snapshots.
    """

    queryset = Service.objects.all()
    serializer_class = ServiceSerializer
    permission_classes = [IsAuthenticated, IsServiceOwner]

    def get_object(self):
        try:
            service = Service.objects.get(pk=self.kwargs['pk'])
        except Service.DoesNotExist:
            raise NotFound('Service not found.')
        self.check_object_permissions(self.request, service)
        return service

    def perform_update(self, serializer):
        service = serializer.save()
        logger.info(f"Service updated. Service ID: {service.id}, Provider: {self.request.user.uid}")

    def perform_destroy(self, instance):
        service_id = instance.id
        instance.delete()
        logger.info(f"Service deleted. Service ID: {service_id}, Provider: {self.request.user.uid}")

    def destroy(self, request, *args, **kwargs):
        self.perform_destroy(self.get_object())
        return Response({'message': 'Service deleted successfully.'}, status=status.HTTP_200_OK)


class ProviderServicesView(generics.ListAPIView):
    """
    GET /api/services/user/<uid>/

    Every listing of one provider, including unavailable ones. Callers may
    only list their own services unless they are staff.
    """

    serializer_class = ServiceSerializer
    permission_classes = [IsAuthenticated, IsSelfOrStaff]
    pagination_class = None

    def get_queryset(self):
        return Service.objects.filter(provider_uid=self.kwargs['uid']).order_by('-created_at', '-id')


class ServiceReviewCreateView(APIView):
    """
    POST /api/services/<id>/review/

    Request body: {"booking": 12, "rating": 5, "comment": "Great job"}

    Error responses:
    - 400: Invalid data, booking not completed, or booking already reviewed
    - 403: Caller is not the booking's customer
    - 404: Service or booking not found
    """

    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        try:
            service = Service.objects.get(pk=kwargs['pk'])
        except Service.DoesNotExist:
            raise NotFound('Service not found.')

        serializer = ReviewCreateSerializer(
            data=request.data,
            context={'request': request, 'service': service}
        )
        serializer.is_valid(raise_exception=True)
        review = serializer.save()

        logger.info(
            f"Review created. Review ID: {review.id}, Service ID: {service.id}, "
            f"Reviewer: {request.user.uid}"
        )

        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


# ============================================================================
# Booking Views
# ============================================================================

class BookingListCreateView(APIView):
    """
    API endpoint for the caller's bookings.

    GET /api/bookings/?status=pending
    Bookings where the caller is the customer or the provider, newest first.

    POST /api/bookings/
    Request body: {
        "service": 3,
        "booking_date": "2026-11-02",
        "booking_time": "10:00 AM",
        "address": "12 Elm Street",
        "city": "Springfield",
        "zip_code": "12345",
        "duration": 2,
        "notes": "Kitchen sink"
    }

    Error responses:
    - 400: Invalid data, unavailable service, or own service
    - 401: Missing, invalid, or expired token
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        uid = request.user.uid
        queryset = Booking.objects.select_related('service').filter(
            Q(customer_uid=uid) | Q(provider_uid=uid)
        )
        booking_status = _status_param(request)
        if booking_status:
            queryset = queryset.filter(status=booking_status)
        return Response(BookingSerializer(queryset, many=True).data)

    def post(self, request, *args, **kwargs):
        serializer = BookingCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        booking = serializer.save()

        logger.info(
            f"Booking created. Booking ID: {booking.id}, "
            f"Service ID: {booking.service_id}, "
            f"Customer: {booking.customer_uid}, Provider: {booking.provider_uid}, "
            f"IP: {get_client_ip(request)}"
        )

        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)


class BookingDetailView(generics.RetrieveAPIView):
    """GET /api/bookings/<id>/ (customer or provider of the booking only)."""

    serializer_class = BookingSerializer
    permission_classes = [IsAuthenticated, IsBookingParticipant]

    def get_object(self):
        booking = _get_booking(self.kwargs['pk'])
        self.check_object_permissions(self.request, booking)
        return booking


def _get_booking(pk):
    try:
        return Booking.objects.select_related('service').get(pk=pk)
    except Booking.DoesNotExist:
        raise NotFound(f'Booking with ID {pk} does not exist.')


class BookingStatusUpdateView(APIView):
    """
    API endpoint for moving a booking along its lifecycle.

    PUT /api/bookings/<id>/status/
    Request body: {"status": "confirmed", "version": 3}

    ``version`` is optional. Without it the last write wins; with it the
    change is refused with 409 if the booking changed since that version.

    Authorization:
    - Provider: confirm, start (in-progress), complete, cancel
    - Customer: cancel

    Error responses:
    - 400: Unknown status or a transition the lifecycle forbids
    - 403: Caller may not make this change
    - 404: Booking not found
    - 409: Booking changed since ``version``
    """

    permission_classes = [IsAuthenticated, CanUpdateBookingStatus]

    def put(self, request, *args, **kwargs):
        # Step 1: Retrieve booking and check the caller takes part in it
        booking = _get_booking(kwargs['pk'])
        self.check_object_permissions(request, booking)

        # Step 2: Validate input
        serializer = BookingStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data['status']

        # Step 3: Apply the transition
        actor = 'provider' if booking.provider_uid == request.user.uid else 'customer'
        booking.transition_to(
            new_status,
            actor=actor,
            expected_version=serializer.validated_data.get('version'),
        )

        logger.info(
            f"Booking status updated. Booking ID: {booking.id}, "
            f"New Status: {booking.status}, User: {request.user.uid} ({actor}), "
            f"IP: {get_client_ip(request)}"
        )

        return Response(BookingSerializer(booking).data)

    def patch(self, request, *args, **kwargs):
        return self.put(request, *args, **kwargs)


class BookingCancelView(APIView):
    """
    PUT /api/bookings/<id>/cancel/

    Request body: {"reason": "Schedule changed"}

    Either participant may cancel a booking that is not yet completed or
    cancelled. Who cancelled and why are recorded on the booking.
    """

    permission_classes = [IsAuthenticated, CanUpdateBookingStatus]
    requested_status = Booking.Status.CANCELLED

    def put(self, request, *args, **kwargs):
        booking = _get_booking(kwargs['pk'])
        self.check_object_permissions(request, booking)

        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        actor = 'provider' if booking.provider_uid == request.user.uid else 'customer'
        booking.cancel(
            actor,
            reason=serializer.validated_data['reason'],
            expected_version=serializer.validated_data.get('version'),
        )

        logger.info(
            f"Booking cancelled. Booking ID: {booking.id}, "
            f"Cancelled by: {actor} ({request.user.uid})"
        )

        return Response(BookingSerializer(booking).data)

    def patch(self, request, *args, **kwargs):
        return self.put(request, *args, **kwargs)


class CustomerBookingsView(generics.ListAPIView):
    """GET /api/bookings/user/<uid>/?status (that customer or staff only)."""

    serializer_class = BookingSerializer
    permission_classes = [IsAuthenticated, IsSelfOrStaff]
    pagination_class = None
    uid_field = 'customer_uid'

    def get_queryset(self):
        queryset = Booking.objects.select_related('service').filter(
            **{self.uid_field: self.kwargs['uid']}
        )
        booking_status = _status_param(self.request)
        if booking_status:
            queryset = queryset.filter(status=booking_status)
        return queryset.order_by('-created_at', '-id')


class ProviderBookingsView(CustomerBookingsView):
    """GET /api/bookings/provider/<uid>/?status (that provider or staff only)."""

    uid_field = 'provider_uid'


# ============================================================================
# Review Views
# ============================================================================

class ReviewListCreateView(PublicReadMixin, APIView):
    """
    GET /api/reviews/?service=<id> (public)
    POST /api/reviews/ with body {"service", "booking", "rating", "comment"}
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        queryset = Review.objects.select_related('service')
        service_id = request.query_params.get('service')
        if service_id:
            if not service_id.isdigit():
                raise ValidationError({'service': 'Invalid value for "service". Must be a service id.'})
            queryset = queryset.filter(service_id=int(service_id))
        return Response(ReviewSerializer(queryset, many=True).data)

    def post(self, request, *args, **kwargs):
        serializer = ReviewCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        review = serializer.save()

        logger.info(
            f"Review created. Review ID: {review.id}, Service ID: {review.service_id}, "
            f"Reviewer: {request.user.uid}"
        )

        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


class ReviewDetailView(PublicReadMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    API endpoint for a single review.

    GET is public. PUT and PATCH change rating and comment; DELETE removes
    the review. Both are reserved to the reviewer, and both trigger a
    recalculation of the service rating.
    """

    permission_classes = [IsAuthenticated, IsReviewAuthor]

    def get_serializer_class(self):
        if self.request.method in SAFE_METHODS:
            return ReviewSerializer
        return ReviewUpdateSerializer

    def get_object(self):
        try:
            review = Review.objects.select_related('service').get(pk=self.kwargs['pk'])
        except Review.DoesNotExist:
            raise NotFound('Review not found.')
        self.check_object_permissions(self.request, review)
        return review

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        review = self.get_object()
        serializer = ReviewUpdateSerializer(review, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        review = serializer.save()

        logger.info(f"Review updated. Review ID: {review.id}, Reviewer: {request.user.uid}")

        return Response(ReviewSerializer(review).data)

    def destroy(self, request, *args, **kwargs):
        review = self.get_object()
        review_id = review.id
        review.delete()

        logger.info(f"Review deleted. Review ID: {review_id}, Reviewer: {request.user.uid}")

        return Response({'message': 'Review deleted successfully.'}, status=status.HTTP_200_OK)


class ReviewResponseView(APIView):
    """
    PUT /api/reviews/<id>/response/

    Request body: {"text": "Thanks for the kind words!"}

    Only the provider of the reviewed service may respond; a second
    response replaces the first.
    """

    permission_classes = [IsAuthenticated, IsReviewedServiceProvider]

    def put(self, request, *args, **kwargs):
        try:
            review = Review.objects.select_related('service').get(pk=kwargs['pk'])
        except Review.DoesNotExist:
            raise NotFound('Review not found.')
        self.check_object_permissions(request, review)

        serializer = ReviewResponseSerializer(review, data=request.data)
        serializer.is_valid(raise_exception=True)
        review = serializer.save()

        logger.info(f"Review response saved. Review ID: {review.id}, Provider: {request.user.uid}")

        return Response(ReviewSerializer(review).data)


class ServiceReviewsView(APIView):
    """GET /api/reviews/service/<service_id>/ (public), newest first."""

    authentication_classes = [OptionalIdentityTokenAuthentication]
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        try:
            service = Service.objects.get(pk=kwargs['service_id'])
        except Service.DoesNotExist:
            raise NotFound('Service not found.')

        reviews = service.reviews.select_related('service').order_by('-created_at', '-id')
        return Response(ReviewSerializer(reviews, many=True).data)


# ============================================================================
# User Views
# ============================================================================

class UserListCreateView(APIView):
    """
    API endpoint for user profiles.

    POST /api/users/
    Registers a profile for the caller. uid and email come from the
    verified token; the body carries display_name, role, phone_number,
    address and preferences.

    GET /api/users/ (staff only)

    Error responses:
    - 400: Profile or email already registered, invalid data
    - 401: Missing, invalid, or expired token
    - 403: Listing without staff privileges
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [IsAuthenticated(), IsStaffUser()]
        return [IsAuthenticated()]

    def get(self, request, *args, **kwargs):
        users = User.objects.all()
        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role)
        return Response(UserSerializer(users, many=True).data)

    def post(self, request, *args, **kwargs):
        serializer = UserRegistrationSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info(
            f"User registered. uid: {user.uid}, role: {user.role}, "
            f"IP: {get_client_ip(request)}"
        )

        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class CurrentUserView(APIView):
    """GET /api/users/me/: the caller's registered profile."""

    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        profile = request.user.profile
        if profile is None:
            raise NotFound('Profile not found. Register your profile first.')
        return Response(UserSerializer(profile).data)


class UserDetailView(APIView):
    """
    GET|PUT|PATCH /api/users/<uid>/ (that user or staff)
    DELETE /api/users/<uid>/ (staff only)

    Staff may also change ``is_verified`` and ``is_active``.
    """

    def get_permissions(self):
        if self.request.method == 'DELETE':
            return [IsAuthenticated(), IsStaffUser()]
        return [IsAuthenticated(), IsSelfOrStaff()]

    def get_target(self, uid):
        try:
            return User.objects.get(uid=uid)
        except User.DoesNotExist:
            raise NotFound('User not found.')

    def get(self, request, uid, *args, **kwargs):
        return Response(UserSerializer(self.get_target(uid)).data)

    def put(self, request, uid, *args, partial=False, **kwargs):
        user = self.get_target(uid)
        serializer_class = StaffUserUpdateSerializer if request.user.is_staff else UserProfileUpdateSerializer
        serializer = serializer_class(user, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info(f"User profile updated. uid: {user.uid}, by: {request.user.uid}")

        return Response(UserSerializer(user).data)

    def patch(self, request, uid, *args, **kwargs):
        return self.put(request, uid, *args, partial=True, **kwargs)

    def delete(self, request, uid, *args, **kwargs):
        user = self.get_target(uid)
        user.delete()

        logger.info(f"User deleted. uid: {uid}, by: {request.user.uid}")

        return Response({'message': 'User deleted successfully.'}, status=status.HTTP_200_OK)


class ProviderStatisticsView(APIView):
    """
    GET /api/users/<uid>/provider-stats/

    Dashboard snapshot for one provider: booking counts by status, revenue,
    ratings, six months of revenue, top services and recent bookings.
    Computed on request from the provider's services and bookings.
    """

    permission_classes = [IsAuthenticated, IsSelfOrStaff]

    def get(self, request, uid, *args, **kwargs):
        return Response(build_provider_statistics(uid))
