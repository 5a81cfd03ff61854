"""
Service layer for the claim ledger
"""
from typing import List
import logging

from django.db import transaction

from splits.middleware.query_monitor import log_query_performance
from splits.models import ItemClaim, SplitSession
from splits.repositories import ClaimRepository, ParticipantRepository, SessionRepository
from splits.services.errors import (
    ItemIndexError,
    NotAParticipantError,
    SessionNotActiveError,
    SessionNotFoundError,
)
from splits.services.validation_pipeline import ValidationPipeline

logger = logging.getLogger(__name__)


class ClaimService:
    """
    Claims are (session, item_index, user) keys. Several users claiming the
    same item is sharing, not a conflict.
    """

    def __init__(self):
        self.sessions = SessionRepository()
        self.participants = ParticipantRepository()
        self.claims = ClaimRepository()
        self.validator = ValidationPipeline()

    def _lock_open_session(self, session_id, item_index: int) -> SplitSession:
        """Row-lock the session and check it accepts ledger changes for this item"""
        split_session = self.sessions.get_for_update(session_id)
        if not split_session:
            raise SessionNotFoundError()
        if split_session.status != SplitSession.ACTIVE:
            raise SessionNotActiveError()
        if not 0 <= item_index < split_session.receipt.item_count:
            raise ItemIndexError()
        return split_session

    @log_query_performance
    def claim(self, session_id, item_index, user_id: str) -> ItemClaim:
        item_index = self.validator.validate_item_index(item_index)

        with transaction.atomic():
            split_session = self._lock_open_session(session_id, item_index)
            if not self.participants.is_member(split_session.id, user_id):
                raise NotAParticipantError()
            claim, created = self.claims.create_if_absent(split_session.id, item_index, user_id)

        if created:
            logger.info(f"{user_id} claimed item #{item_index} in session {split_session.id}")
        return claim

    @log_query_performance
    def unclaim(self, session_id, item_index, user_id: str) -> bool:
        """Returns whether a claim was removed; removing nothing is still success"""
        item_index = self.validator.validate_item_index(item_index)

        with transaction.atomic():
            split_session = self._lock_open_session(session_id, item_index)
            removed = self.claims.delete(split_session.id, item_index, user_id)

        if removed:
            logger.info(f"{user_id} released item #{item_index} in session {split_session.id}")
        return removed

    def toggle(self, session_id, item_index, user_id: str) -> bool:
        """
        Flip the caller's claim on an item. Returns True if it is now claimed.

        The read and the write are separate steps. Two concurrent toggles by
        the same user can both see the same state; each of claim and unclaim
        is idempotent, so the ledger still ends in one of the two valid states.
        """
        item_index = self.validator.validate_item_index(item_index)

        if self.claims.exists(session_id, item_index, user_id):
            self.unclaim(session_id, item_index, user_id)
            return False
        self.claim(session_id, item_index, user_id)
        return True

    def list_claims(self, session_id) -> List[ItemClaim]:
        if not self.sessions.get_by_id(session_id):
            raise SessionNotFoundError()
        return list(self.claims.list_for_session(session_id))
