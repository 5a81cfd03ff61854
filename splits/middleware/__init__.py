# Middleware package
from .identity_middleware import IdentityMiddleware
from .query_monitor import QueryCountMiddleware, log_query_performance

__all__ = ['IdentityMiddleware', 'QueryCountMiddleware', 'log_query_performance']
