from .errors import (
    SplitError,
    NotFoundError,
    ReceiptNotFoundError,
    SessionNotFoundError,
    PermissionDeniedError,
    NotAParticipantError,
    JoinCodeAllocationError,
    SessionClosedError,
    ReceiptLockedError,
    InvalidTransitionError,
    SessionNotActiveError,
    ItemIndexError,
)
from .validation_pipeline import ValidationPipeline
from .receipt_service import ReceiptService
from .session_service import SessionService
from .roster_service import RosterService
from .claim_service import ClaimService

__all__ = [
    'SplitError', 'NotFoundError', 'ReceiptNotFoundError', 'SessionNotFoundError',
    'PermissionDeniedError', 'NotAParticipantError', 'JoinCodeAllocationError',
    'SessionClosedError', 'ReceiptLockedError', 'InvalidTransitionError',
    'SessionNotActiveError', 'ItemIndexError',
    'ValidationPipeline', 'ReceiptService', 'SessionService', 'RosterService', 'ClaimService',
]
