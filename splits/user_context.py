"""
User context for session operations.
"""


class UserContext:
    """The caller as seen from one split session"""

    def __init__(self, identity, split_session=None):
        self.identity = identity
        self.split_session = split_session

    @property
    def user_id(self):
        return self.identity.user_id

    @property
    def display_name(self):
        return self.identity.display_name

    @property
    def is_host(self):
        if self.split_session is None:
            return False
        return self.split_session.host_id == self.user_id
