"""
Django settings for claimsplit.

Everything environment-specific is read from environment variables so the
same module serves development, CI and production.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-insecure-secret-key-change-me')

DEBUG = _env_bool('DEBUG', False)

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get('ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')
    if host.strip()
]

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'splits.apps.SplitsConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'splits.middleware.IdentityMiddleware',
    'splits.middleware.QueryCountMiddleware',
    'django_ratelimit.middleware.RatelimitMiddleware',
]

ROOT_URLCONF = 'claimsplit.urls'

TEMPLATES = []

WSGI_APPLICATION = 'claimsplit.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('DATABASE_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.filebased.FileBasedCache',
        'LOCATION': os.environ.get('CACHE_DIR', str(BASE_DIR / '.cache')),
    }
}

SESSION_ENGINE = 'django.contrib.sessions.backends.db'
SESSION_COOKIE_AGE = 60 * 60 * 24 * 30

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = False
USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Upload limit for receipt images sent to the extraction endpoint
MAX_RECEIPT_IMAGE_BYTES = 10 * 1024 * 1024
DATA_UPLOAD_MAX_MEMORY_SIZE = MAX_RECEIPT_IMAGE_BYTES

# Rate limiting
RATELIMIT_ENABLE = _env_bool('RATELIMIT_ENABLE', True)
RATELIMIT_VIEW = 'splits.views.ratelimit_exceeded'

# Join codes
JOIN_CODE_MAX_ATTEMPTS = 3

# Change feed
CHANGE_FEED_PAGE_SIZE = int(os.environ.get('CHANGE_FEED_PAGE_SIZE', '200'))
CHANGE_FEED_RETENTION_DAYS = int(os.environ.get('CHANGE_FEED_RETENTION_DAYS', '7'))

# External extraction services
OCR_SPACE_API_KEY = os.environ.get('OCR_SPACE_API_KEY', '')
OCR_SPACE_URL = os.environ.get('OCR_SPACE_URL', 'https://api.ocr.space/parse/image')
OCR_TIMEOUT_SECONDS = int(os.environ.get('OCR_TIMEOUT_SECONDS', '30'))
GEMINI_API_KEY = os.environ.get('GEMINI_API_KEY', '')
GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-2.5-flash')

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'splits': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'lib': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
