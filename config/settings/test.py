"""
Test settings: in-memory database, fast hashing, no throttling
"""
from .base import *  # noqa: F401,F403

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

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    'DEFAULT_THROTTLE_CLASSES': [],
    'TEST_REQUEST_DEFAULT_FORMAT': 'json',
}

TIME_ZONE = 'Asia/Ho_Chi_Minh'

JWT_SECRET = 'test-jwt-secret'
GOOGLE_CLIENT_ID = 'test-client-id.apps.googleusercontent.com'

LOGGING['root']['level'] = 'WARNING'  # noqa: F405
