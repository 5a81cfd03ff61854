"""
Service layer for split sessions: creation, lookup and the status machine
"""
import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from splits.join_codes import generate_join_code
from splits.middleware.query_monitor import log_query_performance
from splits.models import SplitSession
from splits.repositories import ClaimRepository, ParticipantRepository, ReceiptRepository, SessionRepository
from splits.services.errors import (
    InvalidTransitionError,
    JoinCodeAllocationError,
    PermissionDeniedError,
    ReceiptNotFoundError,
    SessionNotFoundError,
)
from splits.services.validation_pipeline import ValidationPipeline

logger = logging.getLogger(__name__)

# The only forward step allowed out of each status
NEXT_STATUS = {
    SplitSession.LOBBY: SplitSession.ACTIVE,
    SplitSession.ACTIVE: SplitSession.FINISHED,
}


class SessionService:
    """Handles all business logic for split sessions"""

    def __init__(self):
        self.sessions = SessionRepository()
        self.receipts = ReceiptRepository()
        self.participants = ParticipantRepository()
        self.claims = ClaimRepository()
        self.validator = ValidationPipeline()

    @log_query_performance
    def create_session(self, receipt_id, host_id: str, host_name=None) -> SplitSession:
        """
        Open a lobby for a receipt and seat the host as its first participant.

        The session row and the host's roster row are written in one
        transaction. A join-code collision with another open session is
        retried with a fresh code, JOIN_CODE_MAX_ATTEMPTS times in total.
        """
        display_name = self.validator.validate_display_name(host_name)

        receipt = self.receipts.get_by_id(receipt_id)
        if not receipt:
            raise ReceiptNotFoundError()
        if receipt.owner_id != host_id:
            raise PermissionDeniedError("Only the receipt's owner can start a split.")

        max_attempts = settings.JOIN_CODE_MAX_ATTEMPTS
        for attempt in range(1, max_attempts + 1):
            join_code = generate_join_code()
            try:
                with transaction.atomic():
                    # Serializes against update_receipt so item positions are final
                    self.receipts.get_for_update(receipt.id)
                    split_session = self.sessions.create(receipt.id, host_id, join_code)
                    self.participants.upsert(split_session.id, host_id, display_name)
            except IntegrityError:
                if not self.sessions.code_in_use(join_code):
                    raise
                logger.warning(f"Join code collision on attempt {attempt}/{max_attempts}")
                continue

            logger.info(f"Created session {split_session.id} ({join_code}) for receipt {receipt.id}")
            return split_session

        logger.error(f"Could not allocate a join code for receipt {receipt.id} after {max_attempts} attempts")
        raise JoinCodeAllocationError()

    def find_session_by_code(self, code) -> SplitSession:
        join_code = self.validator.validate_join_code(code)
        split_session = self.sessions.get_open_by_code(join_code)
        if not split_session:
            raise SessionNotFoundError("No active session found with that code.")
        return split_session

    def get_session(self, session_id) -> SplitSession:
        split_session = self.sessions.get_by_id(session_id)
        if not split_session:
            raise SessionNotFoundError()
        return split_session

    @log_query_performance
    def transition(self, session_id, target_status: str, actor_id: str) -> SplitSession:
        """
        Move a session one step along lobby -> active -> finished.

        Asking for the status the session already has is a no-op. Finishing
        freezes the roster and claim ledger into ``settlement_snapshot`` in
        the same write as the status change.
        """
        target_status = self.validator.validate_status(target_status)

        with transaction.atomic():
            split_session = self.sessions.get_for_update(session_id)
            if not split_session:
                raise SessionNotFoundError()
            if split_session.host_id != actor_id:
                raise PermissionDeniedError("Only the host can change the session status.")

            current = split_session.status
            if current == target_status:
                return split_session
            if NEXT_STATUS.get(current) != target_status:
                raise InvalidTransitionError(f"A {current} session cannot move to {target_status}.")

            split_session.status = target_status
            if target_status == SplitSession.FINISHED:
                split_session.settlement_snapshot = self.build_snapshot(split_session.id)
            self.sessions.save_status(split_session)

        logger.info(f"Session {split_session.id} moved {current} -> {target_status}")
        return split_session

    def build_snapshot(self, session_id) -> dict:
        return {
            'participants': [p.as_row() for p in self.participants.list_for_session(session_id)],
            'claims': [c.as_row() for c in self.claims.list_for_session(session_id)],
            'taken_at': timezone.now().isoformat(),
        }
