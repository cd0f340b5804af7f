"""
Settings used by the test suite.

In-memory SQLite and a shared HS256 key so tests can mint their own
identity tokens without reaching the identity provider.
"""

from .settings import *  # noqa: F401,F403
from .settings import IDENTITY_PROVIDER, LOGGING

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

TEST_SIGNING_KEY = 'homehero-test-signing-key-0123456789abcdef'

IDENTITY_PROVIDER = {
    **IDENTITY_PROVIDER,
    'PROJECT_ID': 'homehero-test',
    'ISSUER': 'https://securetoken.google.com/homehero-test',
    'AUDIENCE': 'homehero-test',
    'JWKS_URL': '',
    'ALGORITHMS': ['HS256'],
    'SIGNING_KEY': TEST_SIGNING_KEY,
    'LEEWAY': 0,
}

LOGGING = {
    **LOGGING,
    'loggers': {
        **LOGGING['loggers'],
        'core': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False,
        },
    },
}
