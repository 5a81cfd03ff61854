"""
Query monitoring for requests and service calls.

Only active with DEBUG on, since ``connection.queries`` is only populated
then.
"""
import functools
import logging
import time

from django.conf import settings
from django.db import connection

logger = logging.getLogger(__name__)


class QueryCountMiddleware:
    """Adds X-Query-Count / X-Response-Time-Ms headers and logs chatty requests"""

    QUERY_COUNT_WARNING_THRESHOLD = 10
    SLOW_REQUEST_MS = 500

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not settings.DEBUG:
            return self.get_response(request)

        connection.queries_log.clear()
        start_time = time.monotonic()
        queries_before = len(connection.queries)

        response = self.get_response(request)

        query_count = len(connection.queries) - queries_before
        duration_ms = (time.monotonic() - start_time) * 1000

        response['X-Query-Count'] = str(query_count)
        response['X-Response-Time-Ms'] = f"{duration_ms:.2f}"

        if query_count > self.QUERY_COUNT_WARNING_THRESHOLD:
            logger.warning(
                f"High query count: {query_count} queries in {duration_ms:.2f}ms "
                f"for {request.method} {request.path}"
            )
            for query in connection.queries[:5]:
                logger.debug(f"  - {query['time']}s: {query['sql'][:100]}...")
        elif duration_ms > self.SLOW_REQUEST_MS:
            logger.info(
                f"Slow request: {duration_ms:.2f}ms with {query_count} queries "
                f"for {request.method} {request.path}"
            )

        return response


def log_query_performance(func):
    """Log service methods that are slow or issue many queries"""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if not settings.DEBUG:
            return func(*args, **kwargs)

        start_time = time.monotonic()
        start_queries = len(connection.queries)
        try:
            return func(*args, **kwargs)
        finally:
            duration_ms = (time.monotonic() - start_time) * 1000
            query_count = len(connection.queries) - start_queries
            name = f"{func.__module__}.{func.__qualname__}"

            if duration_ms > 500 or query_count > 15:
                logger.warning(f"Performance issue in {name}: {duration_ms:.2f}ms, {query_count} queries")
            elif duration_ms > 100 or query_count > 5:
                logger.info(f"{name}: {duration_ms:.2f}ms, {query_count} queries")

    return wrapper
