"""
Service layer for the participant roster
"""
from typing import List, Tuple
import logging

from django.db import transaction

from splits.models import SessionParticipant, SplitSession
from splits.repositories import ParticipantRepository, SessionRepository
from splits.services.errors import SessionClosedError, SessionNotFoundError
from splits.services.session_service import SessionService
from splits.services.validation_pipeline import ValidationPipeline

logger = logging.getLogger(__name__)


class RosterService:
    """Joining sessions and listing who is in them"""

    def __init__(self):
        self.sessions = SessionRepository()
        self.participants = ParticipantRepository()
        self.session_service = SessionService()
        self.validator = ValidationPipeline()

    def join(self, session_id, user_id: str, display_name=None) -> SessionParticipant:
        """
        Idempotent upsert on (session, user). Rejoining renames but keeps
        ``joined_at``. Newcomers cannot join a finished session; members
        rejoining one get their existing row back unchanged.
        """
        display_name = self.validator.validate_display_name(display_name)

        with transaction.atomic():
            split_session = self.sessions.get_for_update(session_id)
            if not split_session:
                raise SessionNotFoundError()

            if split_session.is_finished:
                participant = self.participants.get(split_session.id, user_id)
                if not participant:
                    raise SessionClosedError()
                return participant

            participant, created = self.participants.upsert(split_session.id, user_id, display_name)

        if created:
            logger.info(f"{user_id} joined session {split_session.id}")
        return participant

    def join_by_code(self, code, user_id: str, display_name=None) -> Tuple[SplitSession, SessionParticipant]:
        split_session = self.session_service.find_session_by_code(code)
        participant = self.join(split_session.id, user_id, display_name)
        return split_session, participant

    def list(self, session_id) -> List[SessionParticipant]:
        if not self.sessions.get_by_id(session_id):
            raise SessionNotFoundError()
        return list(self.participants.list_for_session(session_id))
