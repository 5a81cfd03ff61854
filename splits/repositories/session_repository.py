"""
Repository for SplitSession data access
"""
from typing import Optional

from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from splits.models import SplitSession


class SessionRepository:
    """Handles all data access for split sessions"""

    def get_by_id(self, session_id) -> Optional[SplitSession]:
        try:
            return SplitSession.objects.select_related('receipt').get(id=session_id)
        except (SplitSession.DoesNotExist, ValidationError, ValueError):
            return None

    def get_for_update(self, session_id) -> Optional[SplitSession]:
        """Fetch and row-lock a session; must be called inside transaction.atomic"""
        try:
            return SplitSession.objects.select_for_update().get(id=session_id)
        except (SplitSession.DoesNotExist, ValidationError, ValueError):
            return None

    def get_open_by_code(self, join_code: str) -> Optional[SplitSession]:
        return (
            self.open_sessions()
            .select_related('receipt')
            .filter(join_code=join_code)
            .first()
        )

    def open_sessions(self) -> QuerySet:
        return SplitSession.objects.exclude(status=SplitSession.FINISHED)

    def code_in_use(self, join_code: str) -> bool:
        return self.open_sessions().filter(join_code=join_code).exists()

    def create(self, receipt_id, host_id: str, join_code: str) -> SplitSession:
        return SplitSession.objects.create(
            receipt_id=receipt_id,
            host_id=host_id,
            join_code=join_code,
            status=SplitSession.LOBBY,
        )

    def save_status(self, split_session: SplitSession) -> SplitSession:
        split_session.save(update_fields=['status', 'settlement_snapshot'])
        return split_session
