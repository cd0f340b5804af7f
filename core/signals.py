"""
Django signals for automatic rating recalculation.

Whenever a review is created, updated or deleted, the owning service's rating
summary is recomputed from the reviews that remain.
"""

import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Review
from .ratings import recalculate_service_rating

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Review)
def update_rating_on_review_save(sender, instance, created, **kwargs):
    """
    Recalculate the service rating after a review is created or updated.

    Runs inside the caller's transaction, so a failure here rolls the review
    write back and ratings never drift from the stored reviews.

    Args:
        sender: The Review model class
        instance: The Review instance that was saved
        created: Boolean indicating if this is a new review
        **kwargs: Additional keyword arguments
    """
    try:
        recalculate_service_rating(instance.service_id)
    except Exception as e:
        logger.error(
            f"Error updating rating for review {instance.id}: {e}",
            exc_info=True
        )
        raise

    action = "created" if created else "updated"
    logger.info(
        f"Review {instance.id} {action}: service={instance.service_id}, rating={instance.rating}"
    )


@receiver(post_delete, sender=Review)
def update_rating_on_review_delete(sender, instance, **kwargs):
    """
    Recalculate the service rating after a review is deleted.

    When a service is deleted its reviews cascade with it; the recalculation
    is then a no-op because the service row is gone.

    Args:
        sender: The Review model class
        instance: The Review instance that was deleted
        **kwargs: Additional keyword arguments
    """
    try:
        recalculate_service_rating(instance.service_id)
    except Exception as e:
        logger.error(
            f"Error updating rating after deleting review {instance.id}: {e}",
            exc_info=True
        )
        raise

    logger.info(f"Review {instance.id} deleted: service={instance.service_id}")
