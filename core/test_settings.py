"""
Settings used by the pytest run.

Keeps tests self-contained: in-memory SQLite, local memory cache and the
locmem email backend so sent messages land in ``django.core.mail.outbox``.
"""
import os

os.environ.setdefault('SECRET_KEY', 'test-secret-key-not-for-production')

from core.settings import *  # noqa: E402,F401,F403

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'contact-tests',
    }
}
SESSION_ENGINE = 'django.contrib.sessions.backends.db'

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
EMAIL_HOST = 'smtp.example.com'
EMAIL_HOST_USER = 'contact@example.com'

CONTACT_SITE_NAME = 'Chidavisa Synergy Hub'
CONTACT_EMAIL_TO = 'operator@example.com'
CONTACT_EMAIL_FROM = 'contact@example.com'
CONTACT_EMAIL_BCC = 'monitor@example.com'
CONTACT_FORM_RATE_LIMIT_SECONDS = 60

LOGGING['root']['level'] = 'WARNING'  # noqa: F405
