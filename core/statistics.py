"""
Provider dashboard statistics.

``compute_provider_statistics`` is a pure function over already-loaded
services and bookings; ``build_provider_statistics`` loads them for one
provider and calls it.
"""

import logging
from collections import Counter, defaultdict
from datetime import date
from decimal import Decimal

from django.utils import timezone

from .models import Booking, Service

logger = logging.getLogger(__name__)


MONTHS_OF_REVENUE = 6
TOP_SERVICES_LIMIT = 5
RECENT_BOOKINGS_LIMIT = 10

# Booking status -> key in the bookings_by_status block
STATUS_KEYS = {
    Booking.Status.PENDING: 'pending',
    Booking.Status.CONFIRMED: 'confirmed',
    Booking.Status.IN_PROGRESS: 'in_progress',
    Booking.Status.COMPLETED: 'completed',
    Booking.Status.CANCELLED: 'cancelled',
}

OPEN_STATUSES = {
    Booking.Status.PENDING,
    Booking.Status.CONFIRMED,
    Booking.Status.IN_PROGRESS,
}

ZERO = Decimal('0.00')


def _local(dt):
    """Convert aware datetimes to the active time zone; leave naive ones alone."""
    if timezone.is_aware(dt):
        return timezone.localtime(dt)
    return dt


def month_window(now, months=MONTHS_OF_REVENUE):
    """
    List the last ``months`` calendar months, oldest first, ending with the
    month containing ``now``.

    Returns:
        list: (year, month) tuples
    """
    now = _local(now)
    year, month = now.year, now.month
    window = []
    for _ in range(months):
        window.append((year, month))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    window.reverse()
    return window


def _month_label(year, month):
    return date(year, month, 1).strftime('%b %Y')


def compute_provider_statistics(services, bookings, now=None):
    """
    Aggregate one provider's services and bookings into dashboard figures.

    Args:
        services: Services owned by the provider
        bookings: Bookings whose provider is the provider
        now: Reference time for the monthly window (defaults to timezone.now())

    Returns:
        dict: Statistics snapshot with keys
            total_services, total_bookings, bookings_by_status,
            total_revenue, pending_revenue, average_rating,
            weighted_average_rating, total_reviews, monthly_revenue,
            top_services, recent_bookings
    """
    if now is None:
        now = timezone.now()

    services = list(services)
    bookings = list(bookings)

    # Status breakdown, every key present even when zero
    status_counts = Counter(booking.status for booking in bookings)
    bookings_by_status = {
        key: status_counts.get(status, 0)
        for status, key in STATUS_KEYS.items()
    }

    total_revenue = sum(
        (b.price for b in bookings if b.status == Booking.Status.COMPLETED),
        ZERO
    )
    pending_revenue = sum(
        (b.price for b in bookings if b.status in OPEN_STATUSES),
        ZERO
    )

    # Ratings: plain mean of per-service averages, plus a review-weighted mean
    total_reviews = sum(service.rating_count for service in services)
    if services:
        average_rating = sum(service.rating_average for service in services) / len(services)
    else:
        average_rating = 0
    if total_reviews:
        weighted_average_rating = sum(
            service.rating_average * service.rating_count for service in services
        ) / total_reviews
    else:
        weighted_average_rating = 0

    # Monthly buckets by booking creation month
    window = month_window(now)
    monthly_bookings = Counter()
    monthly_revenue = defaultdict(lambda: ZERO)
    for booking in bookings:
        created = _local(booking.created_at)
        key = (created.year, created.month)
        monthly_bookings[key] += 1
        if booking.status == Booking.Status.COMPLETED:
            monthly_revenue[key] += booking.price

    monthly = [
        {
            'month': _month_label(year, month),
            'year': year,
            'month_number': month,
            'revenue': monthly_revenue.get((year, month), ZERO),
            'bookings': monthly_bookings.get((year, month), 0),
        }
        for year, month in window
    ]

    # Top services by bookings counted from the loaded bookings
    bookings_per_service = Counter()
    revenue_per_service = defaultdict(lambda: ZERO)
    for booking in bookings:
        if booking.service_id is None:
            continue
        bookings_per_service[booking.service_id] += 1
        if booking.status == Booking.Status.COMPLETED:
            revenue_per_service[booking.service_id] += booking.price

    ranked = sorted(
        services,
        key=lambda service: (-bookings_per_service.get(service.id, 0), service.id)
    )
    top_services = [
        {
            'id': service.id,
            'name': service.name,
            'category': service.category,
            'rating': service.rating_average,
            'review_count': service.rating_count,
            'booking_count': bookings_per_service.get(service.id, 0),
            'revenue': revenue_per_service.get(service.id, ZERO),
        }
        for service in ranked[:TOP_SERVICES_LIMIT]
    ]

    # Most recent bookings
    service_names = {service.id: service.name for service in services}
    newest_first = sorted(bookings, key=lambda booking: booking.created_at, reverse=True)
    recent_bookings = [
        {
            'id': booking.id,
            'customer_name': booking.customer_name,
            'booking_date': booking.booking_date,
            'status': booking.status,
            'price': booking.price,
            'service': service_names.get(booking.service_id, 'Unknown'),
        }
        for booking in newest_first[:RECENT_BOOKINGS_LIMIT]
    ]

    return {
        'total_services': len(services),
        'total_bookings': len(bookings),
        'bookings_by_status': bookings_by_status,
        'total_revenue': total_revenue,
        'pending_revenue': pending_revenue,
        'average_rating': average_rating,
        'weighted_average_rating': weighted_average_rating,
        'total_reviews': total_reviews,
        'monthly_revenue': monthly,
        'top_services': top_services,
        'recent_bookings': recent_bookings,
    }


def build_provider_statistics(provider_uid, now=None):
    """
    Load a provider's services and bookings and aggregate them.

    Bookings are those whose service is one of the provider's services;
    bookings left without a service after a deletion are not counted.

    Args:
        provider_uid: Identity uid of the provider
        now: Reference time for the monthly window

    Returns:
        dict: See compute_provider_statistics
    """
    services = Service.objects.filter(provider_uid=provider_uid).order_by('id')
    bookings = Booking.objects.filter(service__in=services).only(
        'id', 'service', 'status', 'price', 'created_at',
        'customer_name', 'booking_date',
    )

    stats = compute_provider_statistics(services, bookings, now=now)

    logger.info(
        f"Provider statistics built for {provider_uid}: "
        f"{stats['total_services']} services, {stats['total_bookings']} bookings"
    )
    return stats
