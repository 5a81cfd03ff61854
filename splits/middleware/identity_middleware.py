"""
Attaches the caller's identity to every request.
"""

from ..identity_manager import IdentityManager
from ..user_context import UserContext


class IdentityMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.identity = IdentityManager(request)
        request.user_context = lambda split_session=None: UserContext(
            request.identity, split_session
        )
        return self.get_response(request)
