"""
WSGI config for claimsplit.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'claimsplit.settings')

application = get_wsgi_application()
