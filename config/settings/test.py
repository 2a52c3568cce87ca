"""
Test settings: in-memory database, eager Celery, dummy lock credentials.

SQLite serialises writers, so the concurrent display-code test skips
itself there. Run it against PostgreSQL (``pip install -e .[postgres,test]``)::

    TEST_DB_ENGINE=django.db.backends.postgresql TEST_DB_NAME=boxrental \
    DB_USER=boxrental DB_PASSWORD=boxrental DB_HOST=localhost DB_PORT=5432 \
    pytest apps/bookings/tests/test_booking_creation.py -k concurrent
"""


from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('TEST_DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('TEST_DB_NAME', ':memory:'),
        'USER': os.environ.get('DB_USER', ''),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', ''),
        'PORT': os.environ.get('DB_PORT', ''),
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

IGLOO_CLIENT_ID = 'test-client'
IGLOO_CLIENT_SECRET = 'test-secret'
IGLOO_DEVICE_ID = 'TESTDEVICE01'
