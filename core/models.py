"""
Data model for the HomeHero marketplace.

Services, bookings and reviews carry snapshots of the people involved
(uid, name, email) rather than foreign keys to User, so a booking keeps
showing what was agreed even after a provider edits their listing or
profile.
"""

import logging
from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MaxLengthValidator, MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .exceptions import InvalidStatusTransition, StaleBookingError
from .validators import validate_phone_number

logger = logging.getLogger(__name__)


DEFAULT_SERVICE_IMAGE = 'https://via.placeholder.com/400x300'


class User(AbstractUser):
    """
    Registered HomeHero profile for an external identity.

    Identities are owned by the identity provider; ``uid`` is its stable
    subject id. Staff accounts for the admin site are ordinary Django users
    with a password, while marketplace users get ``username = uid`` and an
    unusable password.

    Additional fields:
    - uid: External identity id (unique)
    - email: Required, unique, stored lower-cased
    - display_name, photo_url: Public profile
    - role: customer, provider or both
    - phone_number: Optional, validated
    - street, city, state, zip_code, country: Postal address
    - is_verified: Provider verification flag
    - notify_email, notify_sms, language: Preferences
    """

    class Role(models.TextChoices):
        CUSTOMER = 'customer', _('Customer')
        PROVIDER = 'provider', _('Provider')
        BOTH = 'both', _('Customer and provider')

    uid = models.CharField(
        _('identity uid'),
        max_length=128,
        unique=True,
        error_messages={
            'unique': _('A profile for this identity already exists.'),
        },
        help_text=_('Subject id issued by the identity provider.')
    )

    email = models.EmailField(
        _('email address'),
        unique=True,
        blank=False,
        null=False,
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
        help_text=_('Required. Enter a valid email address.')
    )

    display_name = models.CharField(
        _('display name'),
        max_length=150,
        blank=True,
        default='',
    )

    photo_url = models.URLField(
        _('photo URL'),
        max_length=500,
        blank=True,
        default='',
    )

    role = models.CharField(
        _('role'),
        max_length=10,
        choices=Role.choices,
        default=Role.CUSTOMER,
        help_text=_('Whether the user books services, offers them, or both.')
    )

    phone_number = models.CharField(
        _('phone number'),
        max_length=20,
        blank=True,
        default='',
        validators=[validate_phone_number],
        help_text=_('Optional. Enter phone number in international format.')
    )

    street = models.CharField(_('street'), max_length=200, blank=True, default='')
    city = models.CharField(_('city'), max_length=100, blank=True, default='')
    state = models.CharField(_('state'), max_length=100, blank=True, default='')
    zip_code = models.CharField(_('zip code'), max_length=20, blank=True, default='')
    country = models.CharField(_('country'), max_length=100, blank=True, default='')

    is_verified = models.BooleanField(
        _('verified status'),
        default=False,
        help_text=_('Indicates whether a service provider has been verified.')
    )

    notify_email = models.BooleanField(_('email notifications'), default=True)
    notify_sms = models.BooleanField(_('SMS notifications'), default=False)
    language = models.CharField(_('language'), max_length=10, default='en')

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    REQUIRED_FIELDS = ['email', 'uid']

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role'], name='user_role_idx'),
            models.Index(fields=['is_verified'], name='user_verified_idx'),
        ]

    def __str__(self):
        """Return email as string representation."""
        return self.email or self.username

    def is_provider(self):
        """True if the user may list services."""
        return self.role in (self.Role.PROVIDER, self.Role.BOTH)

    def is_customer(self):
        """True if the user may book services."""
        return self.role in (self.Role.CUSTOMER, self.Role.BOTH)

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - Email is provided and lower-cased
        - uid is provided

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if self.email:
            self.email = self.email.lower()

        if not self.email:
            raise ValidationError({
                'email': _('Email address is required.')
            })

        if not self.uid:
            raise ValidationError({
                'uid': _('Identity uid is required.')
            })

    def save(self, *args, **kwargs):
        """
        Normalise email and default the username to the uid.

        Creation skips full_clean so concurrent duplicates surface as
        IntegrityError from the database.
        """
        if self.email:
            self.email = self.email.lower()

        if not self.username:
            self.username = self.uid

        if self.pk is not None:
            self.full_clean()

        super().save(*args, **kwargs)


class Service(models.Model):
    """
    A home service offered by a provider.

    Fields:
    - name, category, description, price (hourly), image
    - provider_uid, provider_name, provider_email, provider_verified: Provider snapshot
    - available: Whether the service can currently be booked
    - rating_average, rating_count: Summary of the service's reviews
    - booking_count: Number of bookings ever made
    """

    class Category(models.TextChoices):
        PLUMBING = 'plumbing', _('Plumbing')
        ELECTRICAL = 'electrical', _('Electrical')
        CLEANING = 'cleaning', _('Cleaning')
        CARPENTRY = 'carpentry', _('Carpentry')
        HVAC = 'hvac', _('HVAC')
        PAINTING = 'painting', _('Painting')
        OTHER = 'other', _('Other')

    name = models.CharField(
        _('name'),
        max_length=200,
        help_text=_('Name of the service')
    )

    category = models.CharField(
        _('category'),
        max_length=20,
        choices=Category.choices,
    )

    description = models.TextField(
        _('description'),
        max_length=1000,
        validators=[MaxLengthValidator(1000)],
        help_text=_('Detailed description of the service')
    )

    price = models.DecimalField(
        _('price'),
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'), message=_('Price cannot be negative.'))],
        help_text=_('Hourly price in USD')
    )

    image = models.URLField(
        _('image'),
        max_length=500,
        default=DEFAULT_SERVICE_IMAGE,
    )

    provider_uid = models.CharField(_('provider uid'), max_length=128)
    provider_name = models.CharField(_('provider name'), max_length=150)
    provider_email = models.EmailField(_('provider email'))
    provider_verified = models.BooleanField(_('provider verified'), default=False)

    available = models.BooleanField(
        _('available'),
        default=True,
        help_text=_('Whether the service is currently available')
    )

    rating_average = models.FloatField(
        _('rating average'),
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(5)],
        help_text=_('Mean rating of the service reviews, 0 when unreviewed')
    )

    rating_count = models.PositiveIntegerField(
        _('rating count'),
        default=0,
        help_text=_('Number of reviews')
    )

    booking_count = models.PositiveIntegerField(
        _('booking count'),
        default=0,
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('service')
        verbose_name_plural = _('services')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['category', 'available'], name='service_category_avail_idx'),
            models.Index(fields=['provider_uid'], name='service_provider_idx'),
            models.Index(fields=['rating_average'], name='service_rating_idx'),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - Name and description are not blank
        - Price is not negative
        - Rating average lies within 0 to 5

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if self.name is not None:
            self.name = self.name.strip()
        if not self.name:
            raise ValidationError({
                'name': _('Service name cannot be empty.')
            })

        if not self.description or not self.description.strip():
            raise ValidationError({
                'description': _('Description cannot be empty.')
            })

        if self.price is not None and self.price < 0:
            raise ValidationError({
                'price': _('Price cannot be negative.')
            })

        if self.rating_average is not None and not 0 <= self.rating_average <= 5:
            raise ValidationError({
                'rating_average': _('Rating average must be between 0 and 5.')
            })

    def save(self, *args, **kwargs):
        """Run full validation before saving."""
        self.full_clean()
        super().save(*args, **kwargs)


class Booking(models.Model):
    """
    A customer's booking of a service.

    Provider identity and price are copied from the service when the booking
    is created and never follow later edits of the listing.

    Lifecycle::

        pending -> confirmed -> in-progress -> completed
           \\           \\              \\
            +-----------+--------------+--> cancelled
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        CONFIRMED = 'confirmed', _('Confirmed')
        IN_PROGRESS = 'in-progress', _('In progress')
        COMPLETED = 'completed', _('Completed')
        CANCELLED = 'cancelled', _('Cancelled')

    TRANSITIONS = {
        Status.PENDING: {Status.CONFIRMED, Status.CANCELLED},
        Status.CONFIRMED: {Status.IN_PROGRESS, Status.CANCELLED},
        Status.IN_PROGRESS: {Status.COMPLETED, Status.CANCELLED},
        Status.COMPLETED: set(),
        Status.CANCELLED: set(),
    }

    # Statuses only the provider may move a booking into
    PROVIDER_ONLY_STATUSES = {Status.CONFIRMED, Status.IN_PROGRESS, Status.COMPLETED}

    service = models.ForeignKey(
        Service,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bookings',
        help_text=_('Service being booked')
    )

    customer_uid = models.CharField(_('customer uid'), max_length=128)
    customer_name = models.CharField(_('customer name'), max_length=150)
    customer_email = models.EmailField(_('customer email'))

    provider_uid = models.CharField(_('provider uid'), max_length=128)
    provider_name = models.CharField(_('provider name'), max_length=150)
    provider_email = models.EmailField(_('provider email'))

    booking_date = models.DateField(
        _('booking date'),
        help_text=_('Date when the service is scheduled')
    )

    booking_time = models.CharField(
        _('booking time'),
        max_length=20,
        help_text=_('Time of day, as entered by the customer')
    )

    address = models.CharField(_('address'), max_length=300)
    city = models.CharField(_('city'), max_length=100, blank=True, default='')
    zip_code = models.CharField(_('zip code'), max_length=20, blank=True, default='')

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )

    price = models.DecimalField(
        _('price'),
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text=_('Price agreed at booking time')
    )

    duration = models.PositiveIntegerField(
        _('duration'),
        default=1,
        validators=[MinValueValidator(1)],
        help_text=_('Expected duration in hours')
    )

    notes = models.TextField(
        _('notes'),
        max_length=500,
        blank=True,
        default='',
        validators=[MaxLengthValidator(500)],
    )

    cancellation_reason = models.CharField(
        _('cancellation reason'),
        max_length=500,
        blank=True,
        default='',
    )

    cancelled_by = models.CharField(
        _('cancelled by'),
        max_length=10,
        blank=True,
        default='',
        help_text=_('customer or provider')
    )

    cancelled_at = models.DateTimeField(_('cancelled at'), null=True, blank=True)

    version = models.PositiveIntegerField(
        _('version'),
        default=0,
        help_text=_('Incremented on every status change')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('booking')
        verbose_name_plural = _('bookings')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['customer_uid', 'status'], name='booking_customer_status_idx'),
            models.Index(fields=['provider_uid', 'status'], name='booking_provider_status_idx'),
            models.Index(fields=['booking_date'], name='booking_date_idx'),
        ]

    def __str__(self):
        service_name = self.service.name if self.service_id else 'deleted service'
        return f"Booking by {self.customer_email} - {service_name}"

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - Address is not blank
        - Customer and provider are different identities
        - Price is not negative

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if not self.address or not self.address.strip():
            raise ValidationError({
                'address': _('Address cannot be empty.')
            })

        if self.customer_uid and self.customer_uid == self.provider_uid:
            raise ValidationError({
                'service': _('You cannot book your own service.')
            })

        if self.price is not None and self.price < 0:
            raise ValidationError({
                'price': _('Price cannot be negative.')
            })

    def save(self, *args, **kwargs):
        """Run full validation before saving."""
        self.full_clean()
        super().save(*args, **kwargs)

    def is_participant(self, uid):
        """True if ``uid`` is the customer or the provider of this booking."""
        return uid in (self.customer_uid, self.provider_uid)

    def can_transition_to(self, new_status):
        """
        Check whether the lifecycle allows moving to ``new_status``.

        Args:
            new_status: Target status

        Returns:
            tuple: (is_valid: bool, error_message: str or None)
        """
        current_status = self.status

        if new_status not in self.Status.values:
            return False, f'Invalid status "{new_status}". Must be one of: {", ".join(self.Status.values)}.'

        if current_status == new_status:
            return False, f'Booking is already {current_status}.'

        if not self.TRANSITIONS[current_status]:
            return False, f'Cannot modify a {current_status} booking.'

        if new_status not in self.TRANSITIONS[current_status]:
            return False, f'Cannot change booking status from {current_status} to {new_status}.'

        return True, None

    def transition_to(self, new_status, *, actor='', reason='', expected_version=None):
        """
        Move the booking to ``new_status``.

        The write is a single UPDATE that bumps ``version``. Without
        ``expected_version`` the last writer wins; with it the update only
        applies if the stored version still matches.

        Args:
            new_status: Target status
            actor: 'customer' or 'provider', recorded on cancellation
            reason: Cancellation reason
            expected_version: Version the caller last saw, or None

        Returns:
            Booking: self, refreshed from the database

        Raises:
            InvalidStatusTransition: If the lifecycle forbids the move
            StaleBookingError: If expected_version no longer matches
            Booking.DoesNotExist: If the booking was deleted meanwhile
        """
        is_valid, error_message = self.can_transition_to(new_status)
        if not is_valid:
            raise InvalidStatusTransition(self.status, new_status, message=error_message)

        now = timezone.now()
        changes = {
            'status': new_status,
            'version': F('version') + 1,
            'updated_at': now,
        }
        if new_status == self.Status.CANCELLED:
            changes['cancellation_reason'] = reason or ''
            changes['cancelled_by'] = actor or ''
            changes['cancelled_at'] = now

        queryset = Booking.objects.filter(pk=self.pk)
        if expected_version is not None:
            queryset = queryset.filter(version=expected_version)

        updated = queryset.update(**changes)
        if not updated:
            if not Booking.objects.filter(pk=self.pk).exists():
                raise Booking.DoesNotExist(f'Booking {self.pk} no longer exists.')
            raise StaleBookingError()

        old_status = self.status
        self.refresh_from_db()

        logger.info(
            f"Booking {self.pk} status changed: {old_status} -> {new_status} "
            f"(actor={actor or 'unknown'}, version={self.version})"
        )
        return self

    def cancel(self, actor, reason='', expected_version=None):
        """Cancel the booking, recording who cancelled it and why."""
        return self.transition_to(
            self.Status.CANCELLED,
            actor=actor,
            reason=reason,
            expected_version=expected_version,
        )


class Review(models.Model):
    """
    A customer's review of a service, tied to one completed booking.

    Reviews are owned by their service; the service's rating summary is
    recomputed from them whenever one is saved or deleted.
    """

    service = models.ForeignKey(
        Service,
        on_delete=models.CASCADE,
        related_name='reviews',
        help_text=_('Service being reviewed')
    )

    booking = models.OneToOneField(
        Booking,
        on_delete=models.CASCADE,
        related_name='review',
        error_messages={
            'unique': _('This booking has already been reviewed.'),
        },
        help_text=_('Booking being reviewed (one review per booking)')
    )

    reviewer_uid = models.CharField(_('reviewer uid'), max_length=128)
    reviewer_name = models.CharField(_('reviewer name'), max_length=150)

    rating = models.PositiveSmallIntegerField(
        _('rating'),
        validators=[
            MinValueValidator(1, message=_('Rating must be at least 1.')),
            MaxValueValidator(5, message=_('Rating must be at most 5.'))
        ],
        help_text=_('Rating from 1 to 5 stars')
    )

    comment = models.TextField(
        _('comment'),
        max_length=500,
        validators=[MaxLengthValidator(500)],
        help_text=_('Written feedback about the service')
    )

    response_text = models.TextField(
        _('provider response'),
        max_length=500,
        blank=True,
        default='',
        validators=[MaxLengthValidator(500)],
    )
    response_at = models.DateTimeField(_('responded at'), null=True, blank=True)

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('review')
        verbose_name_plural = _('reviews')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['service', '-created_at'], name='review_service_created_idx'),
            models.Index(fields=['reviewer_uid'], name='review_reviewer_idx'),
        ]

    def __str__(self):
        return f"Review by {self.reviewer_name} for {self.service_id} - {self.rating}★"

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - The booking belongs to the reviewed service
        - The booking is completed
        - The reviewer is the booking's customer
        - Comment is not empty or whitespace-only

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if self.booking_id:
            booking = self.booking
            if self.service_id and booking.service_id != self.service_id:
                raise ValidationError({
                    'booking': _('This booking is not for the reviewed service.')
                })
            if booking.status != Booking.Status.COMPLETED:
                raise ValidationError({
                    'booking': _('Only completed bookings can be reviewed.')
                })
            if self.reviewer_uid and self.reviewer_uid != booking.customer_uid:
                raise ValidationError({
                    'reviewer_uid': _('Only the customer of the booking can review it.')
                })

        if not self.comment or not self.comment.strip():
            raise ValidationError({
                'comment': _('Comment cannot be empty.')
            })

    def save(self, *args, **kwargs):
        """
        Validate business rules, leaving uniqueness to the database.

        The one-review-per-booking rule is enforced by the unique constraint so
        concurrent submissions surface as IntegrityError.
        """
        self.full_clean(validate_unique=False)
        super().save(*args, **kwargs)
