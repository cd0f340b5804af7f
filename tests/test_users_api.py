"""
Tests for profile registration and management.
"""

import pytest
from rest_framework import status

from core.models import User
from tests.factories import bearer, create_profile


@pytest.mark.django_db
class TestUserRegistration:

    def test_registers_caller_from_token(self, api_client):
        response = api_client.post(
            '/api/users/',
            {'role': 'provider', 'phone_number': '+1-234-567-8900', 'city': 'Springfield'},
            format='json',
            **bearer('firebase-uid-1', email='Jane@Example.com', name='Jane Doe')
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['uid'] == 'firebase-uid-1'
        assert response.data['email'] == 'jane@example.com'
        assert response.data['display_name'] == 'Jane Doe'
        assert response.data['role'] == 'provider'
        assert response.data['is_verified'] is False

        user = User.objects.get(uid='firebase-uid-1')
        assert not user.has_usable_password()

    def test_body_cannot_choose_uid_or_email(self, api_client):
        response = api_client.post(
            '/api/users/',
            {'uid': 'hijacked', 'email': 'other@example.com', 'is_verified': True},
            format='json',
            **bearer('firebase-uid-2')
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['uid'] == 'firebase-uid-2'
        assert response.data['email'] == 'firebase-uid-2@example.com'
        assert response.data['is_verified'] is False

    def test_second_registration_is_rejected(self, api_client, customer):
        response = api_client.post('/api/users/', {}, format='json', **bearer(customer.uid))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'uid' in response.data['errors']

    def test_email_taken_by_another_identity_is_rejected(self, api_client, customer):
        response = api_client.post('/api/users/', {}, format='json', **bearer('new-uid', email=customer.email))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'email' in response.data['errors']

    def test_token_without_email_is_rejected(self, api_client):
        response = api_client.post('/api/users/', {}, format='json', **bearer('phone-only', email=''))

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_invalid_phone_is_rejected(self, api_client):
        response = api_client.post(
            '/api/users/', {'phone_number': '1111111111'}, format='json', **bearer('firebase-uid-3')
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'phone_number' in response.data['errors']

    def test_invalid_role_is_rejected(self, api_client):
        response = api_client.post('/api/users/', {'role': 'admin'}, format='json', **bearer('firebase-uid-4'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_requires_token(self, api_client):
        response = api_client.post('/api/users/', {}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestUserProfiles:

    def test_me_returns_profile(self, api_client, customer):
        response = api_client.get('/api/users/me', **bearer(customer.uid))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['uid'] == customer.uid

    def test_listing_requires_staff(self, api_client, customer, staff):
        assert api_client.get('/api/users/', **bearer(customer.uid)).status_code == status.HTTP_403_FORBIDDEN

        response = api_client.get('/api/users/', **bearer(staff.uid))
        assert response.status_code == status.HTTP_200_OK
        assert {u['uid'] for u in response.data} == {customer.uid, staff.uid}

    def test_user_reads_own_profile(self, api_client, customer):
        response = api_client.get(f'/api/users/{customer.uid}/', **bearer(customer.uid))

        assert response.status_code == status.HTTP_200_OK

    def test_user_cannot_read_other_profile(self, api_client, customer, provider):
        response = api_client.get(f'/api/users/{provider.uid}/', **bearer(customer.uid))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_user_updates_own_profile(self, api_client, customer):
        response = api_client.patch(
            f'/api/users/{customer.uid}/',
            {'display_name': 'Casey Customer', 'notify_sms': True, 'is_verified': True},
            format='json',
            **bearer(customer.uid)
        )

        assert response.status_code == status.HTTP_200_OK
        customer.refresh_from_db()
        assert customer.display_name == 'Casey Customer'
        assert customer.notify_sms is True
        assert customer.is_verified is False

    def test_staff_verifies_provider(self, api_client, staff):
        provider = create_profile('provider-9', role=User.Role.PROVIDER)

        response = api_client.patch(
            f'/api/users/{provider.uid}/', {'is_verified': True}, format='json', **bearer(staff.uid)
        )

        assert response.status_code == status.HTTP_200_OK
        provider.refresh_from_db()
        assert provider.is_verified is True

    def test_delete_requires_staff(self, api_client, customer, staff):
        response = api_client.delete(f'/api/users/{customer.uid}/', **bearer(customer.uid))
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = api_client.delete(f'/api/users/{customer.uid}/', **bearer(staff.uid))
        assert response.status_code == status.HTTP_200_OK
        assert not User.objects.filter(uid=customer.uid).exists()

    def test_unknown_user_is_404_for_staff(self, api_client, staff):
        response = api_client.get('/api/users/ghost/', **bearer(staff.uid))

        assert response.status_code == status.HTTP_404_NOT_FOUND
