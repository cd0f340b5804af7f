import pytest
from rest_framework.test import APIClient

from core.models import User
from tests.factories import create_profile, create_service


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def provider(db):
    """Registered provider profile."""
    return create_profile('provider-1', role=User.Role.PROVIDER, is_verified=True)


@pytest.fixture
def customer(db):
    """Registered customer profile."""
    return create_profile('customer-1')


@pytest.fixture
def staff(db):
    """Registered staff profile."""
    return create_profile('staff-1', is_staff=True)


@pytest.fixture
def service(provider):
    """Available service owned by ``provider``."""
    return create_service(
        provider.uid,
        provider_name=provider.display_name,
        provider_email=provider.email,
        provider_verified=True,
    )
