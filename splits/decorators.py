from functools import wraps
import json
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.http import JsonResponse
from django_ratelimit.decorators import ratelimit

from lib.extraction import OCRError
from splits.services import SplitError, ValidationPipeline

logger = logging.getLogger(__name__)

validator = ValidationPipeline()


def conditional_ratelimit(key, rate, method, block=True):
    """Apply rate limiting only if RATELIMIT_ENABLE is True"""
    def decorator(func):
        if not getattr(settings, 'RATELIMIT_ENABLE', True):
            return func
        return ratelimit(key=key, rate=rate, method=method, block=block)(func)
    return decorator


# Predefined rate limit decorators for different endpoint types
rate_limit_upload = conditional_ratelimit(key='ip', rate='10/h', method='POST')
rate_limit_edit = conditional_ratelimit(key='ip', rate='30/m', method=['POST', 'PUT'])
rate_limit_view = conditional_ratelimit(key='ip', rate='200/m', method='GET')
rate_limit_join = conditional_ratelimit(key='ip', rate='30/m', method='POST')
rate_limit_claim = conditional_ratelimit(key='ip', rate='120/m', method=['POST', 'DELETE'])
rate_limit_poll = conditional_ratelimit(key='ip', rate='600/m', method='GET')


def json_errors(view):
    """Turn service and validation failures into {"error": ...} responses"""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except SplitError as e:
            return JsonResponse({'error': e.message}, status=e.status_code)
        except ValidationError as e:
            return JsonResponse({'error': validator.format_validation_errors(e)}, status=400)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return JsonResponse({'error': 'Invalid JSON'}, status=400)
        except OCRError as e:
            logger.warning(f"Extraction failed in {view.__name__}: {e}")
            return JsonResponse({'error': "We couldn't read that receipt. Try a clearer photo."}, status=502)
        except DatabaseError:
            logger.exception(f"Database error in {view.__name__}")
            return JsonResponse({'error': 'Service temporarily unavailable. Please try again.'}, status=503)
        except Exception:
            logger.exception(f"Unhandled error in {view.__name__}")
            return JsonResponse({'error': 'Something went wrong. Please try again later.'}, status=500)
    return wrapper
