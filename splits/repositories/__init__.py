from .receipt_repository import ReceiptRepository
from .session_repository import SessionRepository
from .participant_repository import ParticipantRepository
from .claim_repository import ClaimRepository

__all__ = ['ReceiptRepository', 'SessionRepository', 'ParticipantRepository', 'ClaimRepository']
