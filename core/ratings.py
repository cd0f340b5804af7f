"""
Service rating summaries.

A service's ``rating_average`` and ``rating_count`` are always derived from
the reviews it owns. Every path that changes reviews ends up in
``recalculate_service_rating``.
"""

import logging

from django.db import transaction

from .models import Review, Service

logger = logging.getLogger(__name__)


def summarize_ratings(ratings):
    """
    Compute the rating summary for a list of ratings.

    Args:
        ratings: Iterable of integer ratings

    Returns:
        tuple: (average: float, count: int); (0, 0) for no ratings
    """
    ratings = list(ratings)
    if not ratings:
        return 0, 0
    return sum(ratings) / len(ratings), len(ratings)


def recalculate_service_rating(service_id):
    """
    Recompute and store the rating summary of one service.

    Args:
        service_id: Primary key of the service

    Returns:
        bool: True if a service row was updated, False if it does not exist
    """
    with transaction.atomic():
        ratings = Review.objects.filter(service_id=service_id).values_list('rating', flat=True)
        average, count = summarize_ratings(ratings)

        updated = Service.objects.filter(pk=service_id).update(
            rating_average=average,
            rating_count=count,
        )

    if updated:
        logger.info(
            f"Recalculated rating for service {service_id}: "
            f"average={average:.2f}, count={count}"
        )
    else:
        logger.debug(f"Skipped rating recalculation for missing service {service_id}")

    return bool(updated)
