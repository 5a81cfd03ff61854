"""
Service-layer failures.

Every error carries a short message that is safe to show to the user, and
the HTTP status the JSON API should answer with.
"""


class SplitError(Exception):
    status_code = 400
    default_message = "Something went wrong"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(SplitError):
    status_code = 404
    default_message = "Not found"


class ReceiptNotFoundError(NotFoundError):
    default_message = "Receipt not found."


class SessionNotFoundError(NotFoundError):
    default_message = "Session not found."


class PermissionDeniedError(SplitError):
    status_code = 403
    default_message = "You don't have permission to do that."


class NotAParticipantError(PermissionDeniedError):
    default_message = "Join the session before claiming items."


class JoinCodeAllocationError(SplitError):
    status_code = 409
    default_message = "Failed to generate a unique join code."


class SessionClosedError(SplitError):
    status_code = 409
    default_message = "This split has already finished."


class ReceiptLockedError(SplitError):
    status_code = 409
    default_message = "This receipt is being split and can no longer be edited."


class InvalidTransitionError(SplitError):
    default_message = "That session change is not allowed."


class SessionNotActiveError(SplitError):
    default_message = "Items can only be claimed while the split is active."


class ItemIndexError(SplitError):
    default_message = "That item is not on this receipt."
