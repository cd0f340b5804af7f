"""
Tests for the provider statistics aggregator and its endpoint.
"""

from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from django.test import TestCase

from core.models import Booking
from core.statistics import build_provider_statistics, compute_provider_statistics, month_window
from tests.factories import bearer, create_booking, create_service

S = Booking.Status
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=dt_timezone.utc)


def _service(id, rating_average=0, rating_count=0, name=None):
    return SimpleNamespace(
        id=id, name=name or f'Service {id}', category='plumbing',
        rating_average=rating_average, rating_count=rating_count,
    )


def _booking(id, service_id, status, price, created_at=NOW):
    return SimpleNamespace(
        id=id, service_id=service_id, status=status, price=Decimal(price),
        created_at=created_at, customer_name=f'Customer {id}', booking_date=date(2026, 3, 20),
    )


class MonthWindowTests(TestCase):
    def test_six_months_oldest_first(self):
        self.assertEqual(
            month_window(NOW),
            [(2025, 10), (2025, 11), (2025, 12), (2026, 1), (2026, 2), (2026, 3)]
        )

    def test_window_crossing_year_start(self):
        window = month_window(datetime(2026, 1, 5, tzinfo=dt_timezone.utc))
        self.assertEqual(window[0], (2025, 8))
        self.assertEqual(window[-1], (2026, 1))


class ComputeProviderStatisticsTests(TestCase):
    """Aggregation over in-memory services and bookings."""

    def setUp(self):
        self.service_a = _service(1, rating_average=4.0, rating_count=3, name='Plumbing A')
        self.service_b = _service(2, rating_average=5.0, rating_count=1, name='Plumbing B')
        self.bookings = [
            _booking(1, 1, S.COMPLETED, '50.00'),
            _booking(2, 1, S.COMPLETED, '50.00'),
            _booking(3, 1, S.COMPLETED, '50.00'),
            _booking(4, 1, S.CANCELLED, '50.00'),
            _booking(5, 2, S.COMPLETED, '80.00'),
        ]

    def test_revenue_and_status_counts(self):
        stats = compute_provider_statistics([self.service_a, self.service_b], self.bookings, now=NOW)

        self.assertEqual(stats['total_revenue'], Decimal('230.00'))
        self.assertEqual(stats['total_bookings'], 5)
        self.assertEqual(stats['total_services'], 2)
        self.assertEqual(stats['bookings_by_status'], {
            'pending': 0,
            'confirmed': 0,
            'in_progress': 0,
            'completed': 4,
            'cancelled': 1,
        })

    def test_pending_revenue_counts_open_bookings(self):
        bookings = [
            _booking(1, 1, S.PENDING, '10.00'),
            _booking(2, 1, S.CONFIRMED, '20.00'),
            _booking(3, 1, S.IN_PROGRESS, '30.00'),
            _booking(4, 1, S.CANCELLED, '40.00'),
            _booking(5, 1, S.COMPLETED, '50.00'),
        ]

        stats = compute_provider_statistics([self.service_a], bookings, now=NOW)

        self.assertEqual(stats['pending_revenue'], Decimal('60.00'))
        self.assertEqual(stats['total_revenue'], Decimal('50.00'))

    def test_average_rating_is_mean_of_service_averages(self):
        stats = compute_provider_statistics([self.service_a, self.service_b], self.bookings, now=NOW)

        self.assertAlmostEqual(stats['average_rating'], 4.5)
        self.assertAlmostEqual(stats['weighted_average_rating'], 4.25)
        self.assertEqual(stats['total_reviews'], 4)

    def test_no_services_gives_zeroes(self):
        stats = compute_provider_statistics([], [], now=NOW)

        self.assertEqual(stats['average_rating'], 0)
        self.assertEqual(stats['weighted_average_rating'], 0)
        self.assertEqual(stats['total_revenue'], Decimal('0.00'))
        self.assertEqual(stats['top_services'], [])
        self.assertEqual(stats['recent_bookings'], [])
        self.assertEqual(len(stats['monthly_revenue']), 6)

    def test_monthly_buckets(self):
        bookings = [
            _booking(1, 1, S.COMPLETED, '50.00', created_at=datetime(2026, 1, 10, tzinfo=dt_timezone.utc)),
            _booking(2, 1, S.COMPLETED, '30.00', created_at=datetime(2026, 1, 20, tzinfo=dt_timezone.utc)),
            _booking(3, 1, S.PENDING, '99.00', created_at=datetime(2026, 1, 25, tzinfo=dt_timezone.utc)),
            _booking(4, 1, S.COMPLETED, '70.00', created_at=datetime(2026, 3, 1, tzinfo=dt_timezone.utc)),
            # Outside the window
            _booking(5, 1, S.COMPLETED, '10.00', created_at=datetime(2025, 6, 1, tzinfo=dt_timezone.utc)),
        ]

        stats = compute_provider_statistics([self.service_a], bookings, now=NOW)
        monthly = stats['monthly_revenue']

        self.assertEqual([m['month'] for m in monthly],
                         ['Oct 2025', 'Nov 2025', 'Dec 2025', 'Jan 2026', 'Feb 2026', 'Mar 2026'])
        january = monthly[3]
        self.assertEqual((january['year'], january['month_number']), (2026, 1))
        self.assertEqual(january['revenue'], Decimal('80.00'))
        self.assertEqual(january['bookings'], 3)
        self.assertEqual(monthly[4]['revenue'], Decimal('0.00'))
        self.assertEqual(monthly[5]['revenue'], Decimal('70.00'))
        self.assertEqual(sum(m['bookings'] for m in monthly), 4)

    def test_top_services_ranked_by_booking_count(self):
        services = [_service(i) for i in range(1, 8)]
        bookings = []
        # service id -> number of bookings: 7:6, 3:5, 5:4, 1:4, 2:2, 4:1, 6:0
        counts = {7: 6, 3: 5, 5: 4, 1: 4, 2: 2, 4: 1}
        next_id = 1
        for service_id, count in counts.items():
            for _ in range(count):
                bookings.append(_booking(next_id, service_id, S.COMPLETED, '10.00'))
                next_id += 1

        stats = compute_provider_statistics(services, bookings, now=NOW)
        top = stats['top_services']

        self.assertEqual([s['id'] for s in top], [7, 3, 1, 5, 2])
        self.assertEqual(top[0]['booking_count'], 6)
        self.assertEqual(top[0]['revenue'], Decimal('60.00'))

    def test_recent_bookings_newest_ten(self):
        bookings = [
            _booking(i, 1, S.PENDING, '10.00', created_at=datetime(2026, 3, i, tzinfo=dt_timezone.utc))
            for i in range(1, 13)
        ]

        stats = compute_provider_statistics([self.service_a], bookings, now=NOW)
        recent = stats['recent_bookings']

        self.assertEqual(len(recent), 10)
        self.assertEqual(recent[0]['id'], 12)
        self.assertEqual(recent[-1]['id'], 3)
        self.assertEqual(recent[0]['service'], 'Plumbing A')

    def test_booking_without_loaded_service_is_labelled_unknown(self):
        bookings = [_booking(1, 99, S.PENDING, '50.00')]

        stats = compute_provider_statistics([self.service_a], bookings, now=NOW)

        self.assertEqual(stats['recent_bookings'][0]['service'], 'Unknown')


@pytest.mark.django_db
class TestBuildProviderStatistics:

    def _scenario(self, provider_uid):
        service_a = create_service(provider_uid, name='Plumbing A', price=Decimal('50.00'))
        service_b = create_service(provider_uid, name='Plumbing B', price=Decimal('80.00'))
        for i in range(3):
            create_booking(service_a, customer_uid=f'customer-{i}', status=S.COMPLETED)
        create_booking(service_a, customer_uid='customer-9', status=S.CANCELLED)
        create_booking(service_b, customer_uid='customer-1', status=S.COMPLETED)
        return service_a, service_b

    def test_scenario_totals(self):
        self._scenario('provider-1')
        create_booking(create_service('provider-2', name='Other'), status=S.COMPLETED)

        stats = build_provider_statistics('provider-1')

        assert stats['total_revenue'] == Decimal('230.00')
        assert stats['total_bookings'] == 5
        assert stats['bookings_by_status']['completed'] == 4
        assert stats['bookings_by_status']['cancelled'] == 1
        assert stats['top_services'][0]['name'] == 'Plumbing A'
        assert stats['top_services'][0]['booking_count'] == 4

    def test_monthly_buckets_use_creation_month(self):
        service_a, _ = self._scenario('provider-1')
        old = create_booking(service_a, customer_uid='customer-old', status=S.COMPLETED)
        Booking.objects.filter(pk=old.pk).update(created_at=datetime(2026, 1, 10, tzinfo=dt_timezone.utc))
        Booking.objects.exclude(pk=old.pk).update(created_at=datetime(2026, 3, 2, tzinfo=dt_timezone.utc))

        stats = build_provider_statistics('provider-1', now=NOW)
        by_month = {m['month']: m for m in stats['monthly_revenue']}

        assert by_month['Jan 2026']['revenue'] == Decimal('50.00')
        assert by_month['Mar 2026']['revenue'] == Decimal('230.00')
        assert by_month['Mar 2026']['bookings'] == 5

    def test_bookings_of_deleted_service_are_excluded(self):
        kept = create_service('provider-1', name='Kept', price=Decimal('80.00'))
        removed = create_service('provider-1', name='Removed', price=Decimal('50.00'))
        create_booking(kept, status=S.COMPLETED)
        orphan = create_booking(removed, customer_uid='customer-2', status=S.COMPLETED)

        removed.delete()
        orphan.refresh_from_db()
        assert orphan.service_id is None

        stats = build_provider_statistics('provider-1')

        assert stats['total_services'] == 1
        assert stats['total_bookings'] == 1
        assert stats['total_revenue'] == Decimal('80.00')
        assert stats['bookings_by_status']['completed'] == 1
        assert sum(m['bookings'] for m in stats['monthly_revenue']) == 1
        assert [b['service'] for b in stats['recent_bookings']] == ['Kept']

    def test_reverting_completed_booking_removes_its_revenue(self):
        service_a, _ = self._scenario('provider-1')
        before = build_provider_statistics('provider-1')
        completed = Booking.objects.filter(service=service_a, status=S.COMPLETED).first()

        Booking.objects.filter(pk=completed.pk).update(status=S.IN_PROGRESS)
        after = build_provider_statistics('provider-1')

        assert before['total_revenue'] == Decimal('230.00')
        assert after['total_revenue'] == before['total_revenue'] - completed.price
        assert after['pending_revenue'] == before['pending_revenue'] + completed.price
        assert after['bookings_by_status']['completed'] == 3

    def test_unknown_provider_gives_empty_snapshot(self):
        stats = build_provider_statistics('nobody')

        assert stats['total_services'] == 0
        assert stats['total_bookings'] == 0


@pytest.mark.django_db
class TestProviderStatisticsEndpoint:

    def test_provider_reads_own_statistics(self, api_client, provider, service):
        create_booking(service, status=S.COMPLETED)

        response = api_client.get(f'/api/users/{provider.uid}/provider-stats/', **bearer(provider.uid))

        assert response.status_code == 200
        body = response.json()
        assert body['total_revenue'] == 50.0
        assert body['total_bookings'] == 1
        assert len(body['monthly_revenue']) == 6
        assert body['recent_bookings'][0]['service'] == service.name

    def test_other_user_is_forbidden(self, api_client, provider, customer):
        response = api_client.get(f'/api/users/{provider.uid}/provider-stats/', **bearer(customer.uid))

        assert response.status_code == 403

    def test_staff_can_read_any_provider(self, api_client, provider, staff):
        response = api_client.get(f'/api/users/{provider.uid}/provider-stats/', **bearer(staff.uid))

        assert response.status_code == 200

    def test_requires_authentication(self, api_client, provider):
        response = api_client.get(f'/api/users/{provider.uid}/provider-stats/')

        assert response.status_code == 401
