"""
Serializers for the HomeHero API.

Write serializers receive the caller's ``VerifiedIdentity`` through
``context['request'].user`` and copy identity snapshots from it; clients
never supply uids, names or emails for the people involved.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from rest_framework import serializers
from rest_framework.exceptions import NotFound, PermissionDenied

from .exceptions import DuplicateReviewError
from .models import DEFAULT_SERVICE_IMAGE, Booking, Review, Service, User
from .validators import normalize_booking_time, normalize_category, validate_phone_number

logger = logging.getLogger(__name__)


def _identity(serializer):
    """Return the authenticated identity from the serializer context."""
    request = serializer.context.get('request')
    if not request or not request.user or not request.user.is_authenticated:
        raise serializers.ValidationError("Authentication required.")
    return request.user


def _not_blank(value, message):
    if not value or not value.strip():
        raise serializers.ValidationError(message)
    return value.strip()


# ============================================================================
# User Serializers
# ============================================================================

USER_PROFILE_FIELDS = [
    'display_name',
    'photo_url',
    'role',
    'phone_number',
    'street',
    'city',
    'state',
    'zip_code',
    'country',
    'notify_email',
    'notify_sms',
    'language',
]


class UserSerializer(serializers.ModelSerializer):
    """Read representation of a registered profile."""

    class Meta:
        model = User
        fields = [
            'id',
            'uid',
            'email',
            *USER_PROFILE_FIELDS,
            'is_verified',
            'is_active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class UserRegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for registering the caller's profile.

    uid and email come from the verified identity token; the body only
    carries profile details.

    Fields:
    - display_name: Optional, defaults to the token's name
    - photo_url: Optional, defaults to the token's picture
    - role: customer (default), provider or both
    - phone_number, address fields, preferences: Optional
    """

    class Meta:
        model = User
        fields = ['id', 'uid', 'email', *USER_PROFILE_FIELDS, 'is_verified', 'created_at']
        read_only_fields = ['id', 'uid', 'email', 'is_verified', 'created_at']

    def validate_phone_number(self, value):
        try:
            validate_phone_number(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)
        return value

    def validate(self, attrs):
        """
        Reject registration when the identity or its email is already taken.

        Raises:
            ValidationError: If a profile exists for the uid or the email
        """
        identity = _identity(self)

        if not identity.email:
            raise serializers.ValidationError({
                'email': "Your identity token carries no email address."
            })

        if User.objects.filter(uid=identity.uid).exists():
            raise serializers.ValidationError({
                'uid': "A profile for this identity already exists."
            })

        if User.objects.filter(email__iexact=identity.email).exists():
            raise serializers.ValidationError({
                'email': "A user with that email already exists."
            })

        return attrs

    def create(self, validated_data):
        """
        Create the profile for the authenticated identity.

        Returns:
            User: Created user with an unusable password
        """
        identity = _identity(self)

        validated_data.setdefault('display_name', identity.name)
        validated_data.setdefault('photo_url', identity.picture)

        user = User(
            uid=identity.uid,
            username=identity.uid,
            email=identity.email,
            **validated_data
        )
        user.set_unusable_password()
        user.save()
        return user


class UserProfileUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for updating one's own profile.

    uid, email and verification status are not editable here.
    """

    class Meta:
        model = User
        fields = ['id', 'uid', 'email', *USER_PROFILE_FIELDS, 'is_verified', 'is_active', 'updated_at']
        read_only_fields = ['id', 'uid', 'email', 'is_verified', 'is_active', 'updated_at']

    def validate_phone_number(self, value):
        try:
            validate_phone_number(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)
        return value


class StaffUserUpdateSerializer(UserProfileUpdateSerializer):
    """Staff variant that may also change verification and activation."""

    class Meta(UserProfileUpdateSerializer.Meta):
        read_only_fields = ['id', 'uid', 'email', 'updated_at']


# ============================================================================
# Service Serializers
# ============================================================================

class ServiceSerializer(serializers.ModelSerializer):
    """
    Serializer for reading, creating and editing services.

    Provider identity, rating summary and booking count are read-only; the
    provider fields are copied from the caller on creation.

    Fields:
    - name: Required, 1-200 characters, trimmed
    - category: Required, matched case-insensitively
    - description: Required, up to 1000 characters
    - price: Required, hourly, not negative
    - image: Optional URL, defaults to a placeholder
    - available: Optional, defaults to true
    """

    category = serializers.CharField()
    image = serializers.URLField(max_length=500, required=False, allow_blank=True)

    class Meta:
        model = Service
        fields = [
            'id',
            'name',
            'category',
            'description',
            'price',
            'image',
            'provider_uid',
            'provider_name',
            'provider_email',
            'provider_verified',
            'available',
            'rating_average',
            'rating_count',
            'booking_count',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'id',
            'provider_uid',
            'provider_name',
            'provider_email',
            'provider_verified',
            'rating_average',
            'rating_count',
            'booking_count',
            'created_at',
            'updated_at',
        ]

    def validate_name(self, value):
        return _not_blank(value, "Service name cannot be empty or whitespace only.")

    def validate_description(self, value):
        return _not_blank(value, "Description cannot be empty or whitespace only.")

    def validate_category(self, value):
        try:
            return normalize_category(value, Service.Category.values)
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value

    def validate_image(self, value):
        return value or DEFAULT_SERVICE_IMAGE

    def create(self, validated_data):
        """
        Create a service owned by the caller.

        Copies the provider snapshot from the caller's profile.
        """
        identity = _identity(self)
        profile = identity.profile

        validated_data['provider_uid'] = identity.uid
        validated_data['provider_name'] = identity.display_name
        validated_data['provider_email'] = profile.email if profile else identity.email
        validated_data['provider_verified'] = bool(profile and profile.is_verified)

        return Service.objects.create(**validated_data)


# ============================================================================
# Booking Serializers
# ============================================================================

class BookingSerializer(serializers.ModelSerializer):
    """Read representation of a booking."""

    service_name = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            'id',
            'service',
            'service_name',
            'customer_uid',
            'customer_name',
            'customer_email',
            'provider_uid',
            'provider_name',
            'provider_email',
            'booking_date',
            'booking_time',
            'address',
            'city',
            'zip_code',
            'status',
            'price',
            'duration',
            'notes',
            'cancellation_reason',
            'cancelled_by',
            'cancelled_at',
            'version',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_service_name(self, obj):
        return obj.service.name if obj.service_id else None


class BookingCreateSerializer(serializers.ModelSerializer):
    """
    Serializer for booking a service.

    Security features:
    - Customer identity comes from the verified token
    - Price and provider identity are copied from the service
    - The service must exist and be available
    - Providers cannot book their own services

    Fields:
    - service: Required, service id
    - booking_date: Required, today or later
    - booking_time: Required, "HH:MM" or "H:MM AM/PM"
    - address: Required
    - city, zip_code, notes: Optional
    - duration: Optional hours, defaults to 1
    """

    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all())

    class Meta:
        model = Booking
        fields = [
            'id',
            'service',
            'booking_date',
            'booking_time',
            'address',
            'city',
            'zip_code',
            'duration',
            'notes',
            'status',
            'price',
            'customer_uid',
            'customer_name',
            'customer_email',
            'provider_uid',
            'provider_name',
            'provider_email',
            'version',
            'created_at',
        ]
        read_only_fields = [
            'id',
            'status',
            'price',
            'customer_uid',
            'customer_name',
            'customer_email',
            'provider_uid',
            'provider_name',
            'provider_email',
            'version',
            'created_at',
        ]

    def validate_service(self, value):
        if not value.available:
            raise serializers.ValidationError("This service is not currently available for booking.")
        return value

    def validate_booking_date(self, value):
        if value < timezone.localdate():
            raise serializers.ValidationError("Booking date cannot be in the past.")
        return value

    def validate_booking_time(self, value):
        try:
            return normalize_booking_time(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)

    def validate_address(self, value):
        return _not_blank(value, "Address cannot be empty.")

    def validate(self, attrs):
        """
        Check the caller may book this service.

        Raises:
            ValidationError: If the caller owns the service or has no email
        """
        identity = _identity(self)
        service = attrs['service']

        if service.provider_uid == identity.uid:
            raise serializers.ValidationError({
                'service': "You cannot book your own service."
            })

        profile = identity.profile
        if not (profile and profile.email) and not identity.email:
            raise serializers.ValidationError({
                'customer_email': "An email address is required to book a service."
            })

        return attrs

    def create(self, validated_data):
        """
        Create the booking and bump the service's booking count.

        Returns:
            Booking: Created booking in pending status
        """
        identity = _identity(self)
        profile = identity.profile
        service = validated_data['service']

        with transaction.atomic():
            booking = Booking.objects.create(
                customer_uid=identity.uid,
                customer_name=identity.display_name,
                customer_email=profile.email if profile else identity.email,
                provider_uid=service.provider_uid,
                provider_name=service.provider_name,
                provider_email=service.provider_email,
                price=service.price,
                status=Booking.Status.PENDING,
                **validated_data
            )
            Service.objects.filter(pk=service.pk).update(booking_count=F('booking_count') + 1)

        return booking


class BookingStatusUpdateSerializer(serializers.Serializer):
    """
    Input for a booking status change.

    Fields:
    - status: Required, one of the booking statuses
    - version: Optional; when given the change only applies if the booking
      has not been modified since that version was read
    """

    status = serializers.ChoiceField(choices=Booking.Status.choices)
    version = serializers.IntegerField(required=False, min_value=0)


class BookingCancelSerializer(serializers.Serializer):
    """Input for cancelling a booking."""

    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    version = serializers.IntegerField(required=False, min_value=0)


# ============================================================================
# Review Serializers
# ============================================================================

class ReviewSerializer(serializers.ModelSerializer):
    """Read representation of a review."""

    service_name = serializers.CharField(source='service.name', read_only=True)

    class Meta:
        model = Review
        fields = [
            'id',
            'service',
            'service_name',
            'booking',
            'reviewer_uid',
            'reviewer_name',
            'rating',
            'comment',
            'response_text',
            'response_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ReviewCreateSerializer(serializers.ModelSerializer):
    """
    Serializer for reviewing a completed booking.

    The service may come from the URL (``context['service']``) or the body.

    Security features:
    - Reviewer identity comes from the verified token
    - Only the booking's customer may review it
    - The booking must be completed and belong to the service
    - One review per booking (checked here and by the unique constraint)

    Fields:
    - service: Required unless given by the URL
    - booking: Required, booking id
    - rating: Required, integer from 1-5
    - comment: Required, up to 500 characters
    """

    service = serializers.IntegerField(required=False)
    booking = serializers.IntegerField()

    class Meta:
        model = Review
        fields = [
            'id',
            'service',
            'booking',
            'reviewer_uid',
            'reviewer_name',
            'rating',
            'comment',
            'created_at',
        ]
        read_only_fields = ['id', 'reviewer_uid', 'reviewer_name', 'created_at']

    def validate_rating(self, value):
        if value < 1 or value > 5:
            raise serializers.ValidationError("Rating must be between 1 and 5.")
        return value

    def validate_comment(self, value):
        return _not_blank(value, "Comment cannot be empty.")

    def validate(self, attrs):
        """
        Resolve the service and booking and check review eligibility.

        Raises:
            NotFound: If the service or booking does not exist (404)
            PermissionDenied: If the caller is not the booking's customer (403)
            DuplicateReviewError: If the booking has already been reviewed (400)
            ValidationError: For any other eligibility failure (400)
        """
        identity = _identity(self)

        service = self.context.get('service')
        if service is None:
            service_id = attrs.get('service')
            if service_id is None:
                raise serializers.ValidationError({'service': "This field is required."})
            try:
                service = Service.objects.get(pk=service_id)
            except Service.DoesNotExist:
                raise NotFound("Service not found.")

        try:
            booking = Booking.objects.get(pk=attrs['booking'])
        except Booking.DoesNotExist:
            raise NotFound("Booking not found.")

        if booking.service_id != service.pk:
            raise serializers.ValidationError({
                'booking': "This booking is not for the reviewed service."
            })

        if booking.customer_uid != identity.uid:
            raise PermissionDenied("You can only review bookings you made.")

        if booking.status != Booking.Status.COMPLETED:
            raise serializers.ValidationError({
                'booking': f"Only completed bookings can be reviewed. This booking is {booking.status}."
            })

        if Review.objects.filter(booking=booking).exists():
            raise DuplicateReviewError()

        attrs['service'] = service
        attrs['booking'] = booking
        return attrs

    def create(self, validated_data):
        """
        Create the review; the post_save signal refreshes the service rating.

        Raises:
            DuplicateReviewError: If a concurrent request reviewed the booking first
        """
        identity = _identity(self)

        try:
            with transaction.atomic():
                review = Review.objects.create(
                    reviewer_uid=identity.uid,
                    reviewer_name=identity.display_name,
                    **validated_data
                )
        except IntegrityError:
            logger.warning(f"Concurrent duplicate review rejected for booking {validated_data['booking'].pk}")
            raise DuplicateReviewError()

        return review


class ReviewUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for editing a review.

    Only rating and comment may change; everything else is fixed at creation.
    """

    class Meta:
        model = Review
        fields = ['id', 'service', 'booking', 'rating', 'comment', 'created_at', 'updated_at']
        read_only_fields = ['id', 'service', 'booking', 'created_at', 'updated_at']

    def validate_rating(self, value):
        if value < 1 or value > 5:
            raise serializers.ValidationError("Rating must be between 1 and 5.")
        return value

    def validate_comment(self, value):
        return _not_blank(value, "Comment cannot be empty.")


class ReviewResponseSerializer(serializers.Serializer):
    """Input for the provider's public reply to a review."""

    text = serializers.CharField(max_length=500)

    def validate_text(self, value):
        return _not_blank(value, "Response cannot be empty.")

    def update(self, instance, validated_data):
        instance.response_text = validated_data['text']
        instance.response_at = timezone.now()
        instance.save(update_fields=['response_text', 'response_at', 'updated_at'])
        return instance
