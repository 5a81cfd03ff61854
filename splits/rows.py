"""
Plain row values as they travel through the change feed and snapshots.

They carry the same attribute names as the models, so the settlement
calculator accepts either.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ParticipantRow:
    id: Optional[int]
    user_id: str
    display_name: str
    joined_at: Optional[str] = None

    @classmethod
    def from_dict(cls, row: dict) -> 'ParticipantRow':
        return cls(
            id=row.get('id'),
            user_id=row['user_id'],
            display_name=row.get('display_name') or '',
            joined_at=row.get('joined_at'),
        )

    @property
    def sort_key(self):
        return (self.joined_at or '', self.id or 0)


@dataclass(frozen=True)
class ClaimRow:
    id: Optional[int]
    item_index: int
    user_id: str
    claimed_at: Optional[str] = None

    @classmethod
    def from_dict(cls, row: dict) -> 'ClaimRow':
        return cls(
            id=row.get('id'),
            item_index=int(row['item_index']),
            user_id=row['user_id'],
            claimed_at=row.get('claimed_at'),
        )

    @property
    def key(self):
        return (self.item_index, self.user_id)

    @property
    def sort_key(self):
        return (self.item_index, self.claimed_at or '', self.id or 0)


@dataclass(frozen=True)
class SessionRow:
    id: str
    receipt_id: str
    host_id: str
    join_code: str
    status: str
    settlement_snapshot: Optional[dict] = None

    @classmethod
    def from_dict(cls, row: dict) -> 'SessionRow':
        return cls(
            id=str(row['id']),
            receipt_id=str(row['receipt_id']),
            host_id=row['host_id'],
            join_code=row['join_code'],
            status=row['status'],
            settlement_snapshot=row.get('settlement_snapshot'),
        )
