"""
Repository for ItemClaim data access
"""
from django.db.models import QuerySet

from splits.models import ItemClaim


class ClaimRepository:
    """Handles all data access for item claims"""

    def list_for_session(self, session_id) -> QuerySet:
        return ItemClaim.objects.filter(session_id=session_id).order_by('item_index', 'claimed_at', 'id')

    def exists(self, session_id, item_index: int, user_id: str) -> bool:
        return ItemClaim.objects.filter(
            session_id=session_id, item_index=item_index, user_id=user_id
        ).exists()

    def create_if_absent(self, session_id, item_index: int, user_id: str):
        claim, created = ItemClaim.objects.get_or_create(
            session_id=session_id, item_index=item_index, user_id=user_id
        )
        return claim, created

    def delete(self, session_id, item_index: int, user_id: str) -> bool:
        # queryset.delete() still sends post_delete per row, which the change feed relies on
        deleted_count, _ = ItemClaim.objects.filter(
            session_id=session_id, item_index=item_index, user_id=user_id
        ).delete()
        return deleted_count > 0

