"""
Tests for the review endpoints.

Test Coverage:
- Creating reviews through the service route and the reviews route
- Eligibility: completed booking, booking's customer, one review per booking
- Editing, deleting and responding
- Rating summary updates seen through the API
"""

import pytest
from rest_framework import status

from core.models import Booking, Review
from tests.factories import bearer, create_booking, create_review, create_service


@pytest.fixture
def completed_booking(service, customer):
    return create_booking(service, customer_uid=customer.uid, status=Booking.Status.COMPLETED)


@pytest.mark.django_db
class TestReviewCreation:

    def test_customer_reviews_completed_booking(self, api_client, service, customer, completed_booking):
        response = api_client.post(
            f'/api/services/{service.id}/review/',
            {'booking': completed_booking.id, 'rating': 4, 'comment': 'Fixed the leak quickly.'},
            format='json',
            **bearer(customer.uid)
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['rating'] == 4
        assert response.data['reviewer_uid'] == customer.uid
        assert response.data['reviewer_name'] == customer.display_name
        assert response.data['service'] == service.id

        service.refresh_from_db()
        assert service.rating_average == 4
        assert service.rating_count == 1

    def test_reviews_route_takes_service_in_body(self, api_client, service, customer, completed_booking):
        response = api_client.post(
            '/api/reviews/',
            {'service': service.id, 'booking': completed_booking.id, 'rating': 5, 'comment': 'Spotless.'},
            format='json',
            **bearer(customer.uid)
        )

        assert response.status_code == status.HTTP_201_CREATED

    def test_duplicate_review_is_400(self, api_client, service, customer, completed_booking):
        body = {'booking': completed_booking.id, 'rating': 5, 'comment': 'Great.'}
        url = f'/api/services/{service.id}/review/'
        api_client.post(url, body, format='json', **bearer(customer.uid))

        response = api_client.post(url, body, format='json', **bearer(customer.uid))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'DUPLICATE_REVIEW'
        assert Review.objects.filter(booking=completed_booking).count() == 1

        service.refresh_from_db()
        assert service.rating_count == 1

    def test_unknown_service_is_404(self, api_client, customer, completed_booking):
        response = api_client.post(
            '/api/services/999999/review/',
            {'booking': completed_booking.id, 'rating': 5, 'comment': 'Great.'},
            format='json',
            **bearer(customer.uid)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unknown_booking_is_404(self, api_client, service, customer):
        response = api_client.post(
            f'/api/services/{service.id}/review/',
            {'booking': 999999, 'rating': 5, 'comment': 'Great.'},
            format='json',
            **bearer(customer.uid)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_pending_booking_cannot_be_reviewed(self, api_client, service, customer):
        booking = create_booking(service, customer_uid=customer.uid)

        response = api_client.post(
            f'/api/services/{service.id}/review/',
            {'booking': booking.id, 'rating': 5, 'comment': 'Great.'},
            format='json',
            **bearer(customer.uid)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'booking' in response.data['errors']

    def test_only_the_bookings_customer_can_review(self, api_client, service, completed_booking):
        response = api_client.post(
            f'/api/services/{service.id}/review/',
            {'booking': completed_booking.id, 'rating': 1, 'comment': 'Never hired them.'},
            format='json',
            **bearer('stranger')
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_booking_must_belong_to_service(self, api_client, customer, completed_booking):
        other_service = create_service('provider-2', name='Expert Electrician', category='electrical')

        response = api_client.post(
            f'/api/services/{other_service.id}/review/',
            {'booking': completed_booking.id, 'rating': 5, 'comment': 'Great.'},
            format='json',
            **bearer(customer.uid)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.parametrize('rating', [0, 6])
    def test_rating_out_of_range_is_rejected(self, api_client, service, customer, completed_booking, rating):
        response = api_client.post(
            f'/api/services/{service.id}/review/',
            {'booking': completed_booking.id, 'rating': rating, 'comment': 'Great.'},
            format='json',
            **bearer(customer.uid)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'rating' in response.data['errors']

    def test_blank_comment_is_rejected(self, api_client, service, customer, completed_booking):
        response = api_client.post(
            f'/api/services/{service.id}/review/',
            {'booking': completed_booking.id, 'rating': 5, 'comment': '   '},
            format='json',
            **bearer(customer.uid)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestReviewModification:

    def test_reviewer_edits_rating(self, api_client, service, customer, completed_booking):
        review = create_review(completed_booking, rating=5)

        response = api_client.patch(
            f'/api/reviews/{review.id}/', {'rating': 2}, format='json', **bearer(customer.uid)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['rating'] == 2
        service.refresh_from_db()
        assert service.rating_average == 2

    def test_other_user_cannot_edit(self, api_client, completed_booking):
        review = create_review(completed_booking)

        response = api_client.patch(
            f'/api/reviews/{review.id}/', {'rating': 1}, format='json', **bearer('stranger')
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_reviewer_deletes_review(self, api_client, service, customer, completed_booking):
        review = create_review(completed_booking)

        response = api_client.delete(f'/api/reviews/{review.id}/', **bearer(customer.uid))

        assert response.status_code == status.HTTP_200_OK
        service.refresh_from_db()
        assert service.rating_count == 0
        assert service.rating_average == 0

    def test_review_detail_is_public(self, api_client, completed_booking):
        review = create_review(completed_booking)

        response = api_client.get(f'/api/reviews/{review.id}/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['comment'] == review.comment


@pytest.mark.django_db
class TestReviewResponse:

    def test_provider_responds(self, api_client, provider, completed_booking):
        review = create_review(completed_booking)

        response = api_client.put(
            f'/api/reviews/{review.id}/response/', {'text': 'Thanks for the kind words!'},
            format='json', **bearer(provider.uid)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['response_text'] == 'Thanks for the kind words!'
        assert response.data['response_at'] is not None

    def test_reviewer_cannot_respond(self, api_client, customer, completed_booking):
        review = create_review(completed_booking)

        response = api_client.put(
            f'/api/reviews/{review.id}/response/', {'text': 'Me again'}, format='json', **bearer(customer.uid)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestReviewListings:

    def test_service_reviews_newest_first(self, api_client, service):
        first = create_review(create_booking(service, customer_uid='customer-1', status=Booking.Status.COMPLETED))
        second = create_review(create_booking(service, customer_uid='customer-2', status=Booking.Status.COMPLETED))

        response = api_client.get(f'/api/reviews/service/{service.id}/')

        assert response.status_code == status.HTTP_200_OK
        assert [r['id'] for r in response.data] == [second.id, first.id]

    def test_service_reviews_for_unknown_service_is_404(self, api_client):
        response = api_client.get('/api/reviews/service/999999/')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_review_list_filters_by_service(self, api_client, service):
        create_review(create_booking(service, customer_uid='customer-1', status=Booking.Status.COMPLETED))
        other = create_service('provider-2', name='Expert Electrician', category='electrical')
        create_review(create_booking(other, customer_uid='customer-1', status=Booking.Status.COMPLETED))

        everything = api_client.get('/api/reviews/')
        filtered = api_client.get(f'/api/reviews/?service={other.id}')

        assert len(everything.data) == 2
        assert [r['service'] for r in filtered.data] == [other.id]
