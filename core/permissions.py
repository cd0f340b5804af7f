"""
Custom permission classes for the HomeHero API.

``request.user`` is a ``VerifiedIdentity``: callers are recognised by the
``uid`` of their identity token, and their registered profile (if any) is
available as ``request.user.profile``.
"""

from rest_framework import permissions

from .models import Booking


def caller_uid(request):
    """Return the uid of the authenticated caller, or None."""
    user = getattr(request, 'user', None)
    if not user or not user.is_authenticated:
        return None
    return getattr(user, 'uid', None)


class IsStaffUser(permissions.BasePermission):
    """
    Permission class that allows only staff users to access the endpoint.

    Staff status comes from the caller's registered profile.

    Usage:
        class MyView(APIView):
            permission_classes = [IsAuthenticated, IsStaffUser]
    """

    message = 'You do not have permission to perform this action. Staff privileges required.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return bool(request.user.is_staff)


class IsRegisteredProvider(permissions.BasePermission):
    """
    Allows only callers whose profile has the provider or both role.

    Returns 403 for callers without a profile and for pure customers.
    """

    message = 'Only registered providers can manage services. Register a provider profile first.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        profile = getattr(request.user, 'profile', None)
        if profile is None:
            return False

        return profile.is_provider()


class IsSelfOrStaff(permissions.BasePermission):
    """
    Allows access to per-user resources only to that user or to staff.

    The target uid is read from the ``uid`` URL keyword argument.
    """

    message = 'You can only access your own data.'

    def has_permission(self, request, view):
        uid = caller_uid(request)
        if uid is None:
            return False

        target_uid = view.kwargs.get('uid')
        return target_uid == uid or bool(request.user.is_staff)


class IsServiceOwner(permissions.BasePermission):
    """
    Object-level permission: writes to a service are reserved to its provider.

    Safe methods are always allowed.
    """

    message = 'You can only modify your own services.'

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return obj.provider_uid == caller_uid(request)


class IsBookingParticipant(permissions.BasePermission):
    """Object-level permission: only the booking's customer or provider."""

    message = 'You do not have permission to access this booking.'

    def has_object_permission(self, request, view, obj):
        uid = caller_uid(request)
        return uid is not None and obj.is_participant(uid)


class CanUpdateBookingStatus(permissions.BasePermission):
    """
    Permission class for booking status updates with role-based authorization.

    Authorization rules:
    - Providers can: confirm, start (in-progress), complete their bookings
    - Customers and providers can: cancel their own bookings
    - Nobody else can modify a booking

    Whether the transition itself is legal is left to the booking lifecycle,
    so an illegal move answers 400 rather than 403.

    Usage:
        class BookingStatusUpdateView(APIView):
            permission_classes = [IsAuthenticated, CanUpdateBookingStatus]
    """

    message = 'You do not have permission to update this booking status.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        """
        Check if the caller can move this booking to the requested status.

        Args:
            request: HTTP request object
            view: View being accessed
            obj: Booking instance

        Returns:
            bool: True if the caller may request this status change
        """
        uid = caller_uid(request)
        if uid is None:
            return False

        is_customer = obj.customer_uid == uid
        is_provider = obj.provider_uid == uid

        if not is_customer and not is_provider:
            self.message = 'You do not have permission to modify this booking.'
            return False

        new_status = getattr(view, 'requested_status', None)
        if new_status is None and hasattr(request.data, 'get'):
            new_status = request.data.get('status')

        if isinstance(new_status, str) and new_status in Booking.PROVIDER_ONLY_STATUSES and not is_provider:
            label = Booking.Status(new_status).label.lower()
            self.message = f'Only the provider can mark a booking as {label}.'
            return False

        return True


class IsReviewAuthor(permissions.BasePermission):
    """Object-level permission: review writes are reserved to the reviewer."""

    message = 'You can only modify your own reviews.'

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return obj.reviewer_uid == caller_uid(request)


class IsReviewedServiceProvider(permissions.BasePermission):
    """Object-level permission: only the reviewed service's provider may respond."""

    message = 'Only the provider of this service can respond to its reviews.'

    def has_object_permission(self, request, view, obj):
        return obj.service.provider_uid == caller_uid(request)
