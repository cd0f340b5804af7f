"""
Django admin configuration for the HomeHero models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import Booking, Review, Service, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for marketplace profiles and staff accounts.

    Extends Django's UserAdmin with the identity uid, role and profile fields.
    """

    list_display = [
        'email',
        'uid',
        'display_name',
        'role',
        'is_verified',
        'is_staff',
        'is_active',
        'created_at',
    ]

    list_filter = [
        'role',
        'is_verified',
        'is_staff',
        'is_active',
        'created_at',
    ]

    search_fields = [
        'email',
        'uid',
        'username',
        'display_name',
    ]

    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('username', 'uid', 'password')
        }),
        (_('Profile'), {
            'fields': (
                'email',
                'display_name',
                'photo_url',
                'phone_number',
                'role',
                'is_verified',
            )
        }),
        (_('Address'), {
            'fields': ('street', 'city', 'state', 'zip_code', 'country'),
            'classes': ('collapse',),
        }),
        (_('Preferences'), {
            'fields': ('notify_email', 'notify_sms', 'language'),
            'classes': ('collapse',),
        }),
        (_('Permissions'), {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'username',
                'uid',
                'email',
                'password1',
                'password2',
                'role',
            ),
        }),
    )

    readonly_fields = ['created_at', 'updated_at', 'last_login', 'date_joined']

    date_hierarchy = 'created_at'

    list_per_page = 25


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    """Admin interface for Service model."""

    list_display = [
        'name',
        'category',
        'provider_name',
        'price',
        'available',
        'rating_average',
        'rating_count',
        'booking_count',
        'created_at',
    ]

    list_filter = [
        'category',
        'available',
        'provider_verified',
        'created_at',
    ]

    search_fields = [
        'name',
        'description',
        'provider_name',
        'provider_email',
        'provider_uid',
    ]

    # Maintained from reviews and bookings
    readonly_fields = ['rating_average', 'rating_count', 'booking_count', 'created_at', 'updated_at']

    ordering = ['-created_at']

    list_per_page = 25

    fieldsets = (
        (None, {
            'fields': ('name', 'category', 'description', 'image')
        }),
        (_('Pricing & Availability'), {
            'fields': ('price', 'available')
        }),
        (_('Provider'), {
            'fields': ('provider_uid', 'provider_name', 'provider_email', 'provider_verified')
        }),
        (_('Statistics'), {
            'fields': ('rating_average', 'rating_count', 'booking_count'),
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Admin interface for Booking model."""

    list_display = [
        'id',
        'service',
        'customer_name',
        'provider_name',
        'booking_date',
        'booking_time',
        'status',
        'price',
        'created_at',
    ]

    list_filter = [
        'status',
        'booking_date',
        'created_at',
    ]

    search_fields = [
        'customer_name',
        'customer_email',
        'customer_uid',
        'provider_name',
        'provider_email',
        'provider_uid',
        'service__name',
    ]

    list_select_related = ['service']

    readonly_fields = ['version', 'cancelled_at', 'created_at', 'updated_at']

    ordering = ['-created_at']

    date_hierarchy = 'booking_date'

    list_per_page = 25

    fieldsets = (
        (None, {
            'fields': ('service', 'status', 'price', 'duration')
        }),
        (_('Customer'), {
            'fields': ('customer_uid', 'customer_name', 'customer_email')
        }),
        (_('Provider'), {
            'fields': ('provider_uid', 'provider_name', 'provider_email')
        }),
        (_('Schedule & Location'), {
            'fields': ('booking_date', 'booking_time', 'address', 'city', 'zip_code', 'notes')
        }),
        (_('Cancellation'), {
            'fields': ('cancellation_reason', 'cancelled_by', 'cancelled_at'),
            'classes': ('collapse',),
        }),
        (_('Timestamps'), {
            'fields': ('version', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    """Admin interface for Review model."""

    list_display = [
        'id',
        'service',
        'reviewer_name',
        'booking',
        'rating',
        'created_at',
    ]

    list_filter = [
        'rating',
        'created_at',
    ]

    search_fields = [
        'reviewer_name',
        'reviewer_uid',
        'service__name',
        'comment',
    ]

    list_select_related = ['service']

    readonly_fields = ['created_at', 'updated_at', 'response_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25

    fieldsets = (
        (None, {
            'fields': ('service', 'booking', 'reviewer_uid', 'reviewer_name')
        }),
        (_('Review Content'), {
            'fields': ('rating', 'comment')
        }),
        (_('Provider Response'), {
            'fields': ('response_text', 'response_at')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )
