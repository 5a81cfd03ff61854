"""Test-specific Django settings"""
from claimsplit.settings import *

# Disable rate limiting for tests
RATELIMIT_ENABLE = False

# Use in-memory cache for tests
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

# locmem is not shared between processes, which django-ratelimit complains about
SILENCED_SYSTEM_CHECKS = ['django_ratelimit.E003', 'django_ratelimit.W001']

DATABASES['default']['NAME'] = ':memory:'
DATABASES['default'].setdefault('OPTIONS', {})
DATABASES['default']['OPTIONS'].update({
    'timeout': 30,
})

# Never call the real extraction services from tests
OCR_SPACE_API_KEY = ''
GEMINI_API_KEY = ''

# Ensure test mode
DEBUG = False
TESTING = True
