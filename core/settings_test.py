"""
Settings for the test suite: SQLite, local-memory cache and a shared-key
identity token algorithm so tests can mint their own bearer tokens.
"""

from .settings import *  # noqa: F401,F403

SECRET_KEY = 'test-secret-key-not-for-production'
DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'campus-marketplace-tests',
    }
}

IDENTITY_PROJECT_ID = 'campus-marketplace-test'
IDENTITY_TOKEN_ALGORITHM = 'HS256'
IDENTITY_SIGNING_KEY = 'identity-test-signing-key-0123456789abcdef'
IDENTITY_JWK_URL = None
IDENTITY_AUDIENCE = IDENTITY_PROJECT_ID
IDENTITY_ISSUER = f'https://securetoken.google.com/{IDENTITY_PROJECT_ID}'

MARKETPLACE_DELIVERY_FEE = 50
INSTITUTION_EMAIL_SUFFIX = '.edu'
CHECKOUT_RETRY_BASE_DELAY = 0

SECURE_SSL_REDIRECT = False

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
