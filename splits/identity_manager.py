"""
Caller identity kept in the Django session.

Each browser or device gets a stable opaque user id the first time it talks
to the API, plus the display name it last chose. Nothing here is an account:
losing the session cookie means becoming a new user.
"""

import logging
import uuid

logger = logging.getLogger(__name__)


class IdentityManager:
    """Namespaced access to identity data in ``request.session``"""

    NAMESPACE = 'identity'

    def __init__(self, request):
        self.request = request

    def _data(self):
        if not hasattr(self.request, 'session'):
            return {}
        return self.request.session.get(self.NAMESPACE, {})

    def _save(self, data):
        if not hasattr(self.request, 'session'):
            return
        self.request.session[self.NAMESPACE] = data
        self.request.session.modified = True

    @property
    def user_id(self):
        """The caller's user id, minted on first use"""
        data = self._data()
        user_id = data.get('user_id')
        if not user_id:
            user_id = uuid.uuid4().hex
            data = {**data, 'user_id': user_id}
            self._save(data)
            logger.debug(f"[IdentityManager] issued user_id={user_id}")
        return user_id

    @property
    def display_name(self):
        return self._data().get('display_name')

    def set_display_name(self, name):
        data = {**self._data(), 'display_name': name}
        data.setdefault('user_id', self.user_id)
        self._save(data)

    def as_dict(self):
        return {'user_id': self.user_id, 'display_name': self.display_name}
