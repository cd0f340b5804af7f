"""
Tests for service rating summaries.

The stored rating_average and rating_count of a service must always equal
the mean and count of the reviews it owns, whichever path changed them.
"""

import pytest
from django.test import TestCase

from core.models import Booking, Review, Service
from core.ratings import recalculate_service_rating, summarize_ratings
from tests.factories import create_booking, create_review, create_service


class SummarizeRatingsTests(TestCase):
    def test_no_ratings_is_zero(self):
        self.assertEqual(summarize_ratings([]), (0, 0))

    def test_mean_and_count(self):
        self.assertEqual(summarize_ratings([5, 4, 3]), (4.0, 3))

    def test_accepts_any_iterable(self):
        average, count = summarize_ratings(r for r in (5, 4))
        self.assertEqual(count, 2)
        self.assertAlmostEqual(average, 4.5)


class RecalculateServiceRatingTests(TestCase):
    def setUp(self):
        self.service = create_service()

    def _completed_booking(self, customer_uid):
        return create_booking(self.service, customer_uid=customer_uid, status=Booking.Status.COMPLETED)

    def test_unreviewed_service_is_reset_to_zero(self):
        Service.objects.filter(pk=self.service.pk).update(rating_average=4.2, rating_count=7)

        self.assertTrue(recalculate_service_rating(self.service.pk))

        self.service.refresh_from_db()
        self.assertEqual(self.service.rating_average, 0)
        self.assertEqual(self.service.rating_count, 0)

    def test_missing_service_is_noop(self):
        self.assertFalse(recalculate_service_rating(999999))

    def test_recalculation_matches_stored_reviews(self):
        for uid, rating in (('customer-1', 5), ('customer-2', 4), ('customer-3', 3)):
            create_review(self._completed_booking(uid), rating=rating)

        # Drift the summary, then repair it
        Service.objects.filter(pk=self.service.pk).update(rating_average=1, rating_count=1)
        recalculate_service_rating(self.service.pk)

        self.service.refresh_from_db()
        self.assertAlmostEqual(self.service.rating_average, 4.0)
        self.assertEqual(self.service.rating_count, 3)


@pytest.mark.django_db
class TestRatingSignals:
    """Review writes keep the owning service's summary in step."""

    def _review(self, service, uid, rating):
        booking = create_booking(service, customer_uid=uid, status=Booking.Status.COMPLETED)
        return create_review(booking, rating=rating)

    def test_first_review_sets_summary(self):
        service = create_service()

        self._review(service, 'customer-1', 4)

        service.refresh_from_db()
        assert service.rating_average == 4
        assert service.rating_count == 1

    def test_each_new_review_updates_mean(self):
        service = create_service()

        self._review(service, 'customer-1', 5)
        self._review(service, 'customer-2', 4)

        service.refresh_from_db()
        assert service.rating_average == pytest.approx(4.5)
        assert service.rating_count == 2

    def test_editing_a_review_updates_mean(self):
        service = create_service()
        review = self._review(service, 'customer-1', 5)
        self._review(service, 'customer-2', 3)

        review.rating = 1
        review.save()

        service.refresh_from_db()
        assert service.rating_average == pytest.approx(2.0)
        assert service.rating_count == 2

    def test_deleting_a_review_updates_mean(self):
        service = create_service()
        review = self._review(service, 'customer-1', 5)
        self._review(service, 'customer-2', 3)

        review.delete()

        service.refresh_from_db()
        assert service.rating_average == pytest.approx(3.0)
        assert service.rating_count == 1

    def test_deleting_last_review_resets_summary(self):
        service = create_service()
        review = self._review(service, 'customer-1', 5)

        review.delete()

        service.refresh_from_db()
        assert service.rating_average == 0
        assert service.rating_count == 0

    def test_reviews_of_other_services_do_not_leak(self):
        service = create_service()
        other = create_service('provider-2', name='Deep Cleaning Service', category='cleaning')

        self._review(service, 'customer-1', 5)
        self._review(other, 'customer-2', 1)

        service.refresh_from_db()
        other.refresh_from_db()
        assert (service.rating_average, service.rating_count) == (5, 1)
        assert (other.rating_average, other.rating_count) == (1, 1)

    def test_summary_always_matches_reviews(self):
        service = create_service()
        reviews = [
            self._review(service, f'customer-{i}', rating)
            for i, rating in enumerate([5, 2, 4, 4, 1])
        ]
        reviews[1].delete()
        reviews[3].rating = 5
        reviews[3].save()

        service.refresh_from_db()
        stored = list(Review.objects.filter(service=service).values_list('rating', flat=True))
        assert service.rating_count == len(stored)
        assert service.rating_average == pytest.approx(sum(stored) / len(stored))
