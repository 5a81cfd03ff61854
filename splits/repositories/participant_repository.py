"""
Repository for roster data access
"""
from typing import Optional, Tuple

from django.db.models import QuerySet

from splits.models import SessionParticipant


class ParticipantRepository:
    """Handles all data access for session participants"""

    def list_for_session(self, session_id) -> QuerySet:
        return SessionParticipant.objects.filter(session_id=session_id).order_by('joined_at', 'id')

    def get(self, session_id, user_id: str) -> Optional[SessionParticipant]:
        try:
            return SessionParticipant.objects.get(session_id=session_id, user_id=user_id)
        except SessionParticipant.DoesNotExist:
            return None

    def is_member(self, session_id, user_id: str) -> bool:
        return SessionParticipant.objects.filter(session_id=session_id, user_id=user_id).exists()

    def upsert(self, session_id, user_id: str, display_name: str) -> Tuple[SessionParticipant, bool]:
        """
        Insert or rename a participant. Returns (participant, created).
        joined_at is kept on rename; an unchanged name is not rewritten.
        """
        participant, created = SessionParticipant.objects.get_or_create(
            session_id=session_id,
            user_id=user_id,
            defaults={'display_name': display_name},
        )
        if not created and participant.display_name != display_name:
            participant.display_name = display_name
            participant.save(update_fields=['display_name'])
        return participant, created
