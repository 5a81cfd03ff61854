from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.db.models import Q
from django.utils import timezone
import uuid

from lib.extraction.models import ReceiptRecord


def _iso(value):
    return value.isoformat() if value else None


class Receipt(models.Model):
    """A saved receipt. ``items`` is an ordered list; position is the item's address."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.CharField(max_length=64, db_index=True)
    merchant_name = models.CharField(max_length=100, blank=True, null=True)
    address = models.CharField(max_length=255, blank=True, null=True)
    date_time = models.CharField(max_length=64, blank=True, null=True)
    subtotal = models.DecimalField(max_digits=12, decimal_places=6, null=True, blank=True)
    tax = models.DecimalField(max_digits=12, decimal_places=6, null=True, blank=True)
    tip = models.DecimalField(max_digits=12, decimal_places=6, null=True, blank=True)
    total = models.DecimalField(max_digits=12, decimal_places=6, null=True, blank=True)
    items = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'receipts'

    @property
    def item_count(self):
        return len(self.items or [])

    def to_record(self) -> ReceiptRecord:
        return ReceiptRecord.model_validate({
            'merchant_name': self.merchant_name,
            'address': self.address,
            'date_time': self.date_time,
            'subtotal': self.subtotal,
            'tax': self.tax,
            'tip': self.tip,
            'total': self.total,
            'items': list(self.items or []),
        })

    def __str__(self):
        return f"{self.merchant_name or 'Receipt'} ({self.item_count} items) - ${self.total}"


class SplitSession(models.Model):
    LOBBY = 'lobby'
    ACTIVE = 'active'
    FINISHED = 'finished'

    STATUS_CHOICES = [
        (LOBBY, 'Lobby'),
        (ACTIVE, 'Active'),
        (FINISHED, 'Finished'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    receipt = models.ForeignKey(Receipt, on_delete=models.PROTECT, related_name='sessions')
    host_id = models.CharField(max_length=64)
    join_code = models.CharField(max_length=6, db_index=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=LOBBY)
    # Roster and claims frozen at the moment the session finished
    settlement_snapshot = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sessions'
        constraints = [
            models.UniqueConstraint(
                fields=['join_code'],
                condition=~Q(status='finished'),
                name='unique_open_join_code',
            ),
        ]

    @property
    def is_finished(self):
        return self.status == self.FINISHED

    def as_row(self):
        return {
            'id': str(self.id),
            'receipt_id': str(self.receipt_id),
            'host_id': self.host_id,
            'join_code': self.join_code,
            'status': self.status,
            'settlement_snapshot': self.settlement_snapshot,
            'created_at': _iso(self.created_at),
        }

    def __str__(self):
        return f"Session {self.join_code} ({self.status})"


class SessionParticipant(models.Model):
    session = models.ForeignKey(SplitSession, on_delete=models.CASCADE, related_name='participants')
    user_id = models.CharField(max_length=64)
    display_name = models.CharField(max_length=50)
    joined_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'session_participants'
        ordering = ['joined_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['session', 'user_id'], name='unique_session_participant'),
        ]

    def as_row(self):
        return {
            'id': self.id,
            'session_id': str(self.session_id),
            'user_id': self.user_id,
            'display_name': self.display_name,
            'joined_at': _iso(self.joined_at),
        }

    def __str__(self):
        return f"{self.display_name} in {self.session_id}"


class ItemClaim(models.Model):
    session = models.ForeignKey(SplitSession, on_delete=models.CASCADE, related_name='claims')
    item_index = models.PositiveIntegerField()
    user_id = models.CharField(max_length=64)
    claimed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'item_claims'
        constraints = [
            models.UniqueConstraint(
                fields=['session', 'item_index', 'user_id'],
                name='unique_item_claim',
            ),
        ]
        indexes = [
            models.Index(fields=['session', 'item_index'], name='item_claim_session_idx'),
        ]

    def as_row(self):
        return {
            'id': self.id,
            'session_id': str(self.session_id),
            'item_index': self.item_index,
            'user_id': self.user_id,
            'claimed_at': _iso(self.claimed_at),
        }

    def __str__(self):
        return f"{self.user_id} claimed item #{self.item_index}"


class ChangeEvent(models.Model):
    """One entry of the per-session change feed. ``id`` doubles as the poll cursor."""

    SESSIONS = 'sessions'
    PARTICIPANTS = 'session_participants'
    CLAIMS = 'item_claims'

    TABLE_CHOICES = [
        (SESSIONS, 'Sessions'),
        (PARTICIPANTS, 'Participants'),
        (CLAIMS, 'Claims'),
    ]

    INSERT = 'INSERT'
    UPDATE = 'UPDATE'
    DELETE = 'DELETE'

    EVENT_CHOICES = [
        (INSERT, 'Insert'),
        (UPDATE, 'Update'),
        (DELETE, 'Delete'),
    ]

    id = models.BigAutoField(primary_key=True)
    session_id = models.UUIDField(db_index=True)
    table = models.CharField(max_length=32, choices=TABLE_CHOICES)
    event = models.CharField(max_length=6, choices=EVENT_CHOICES)
    row_id = models.CharField(max_length=64)
    row = models.JSONField(encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'change_events'
        ordering = ['id']
        indexes = [
            models.Index(fields=['session_id', 'id'], name='change_event_cursor_idx'),
        ]

    def as_dict(self):
        return {
            'id': self.id,
            'session_id': str(self.session_id),
            'table': self.table,
            'event': self.event,
            'row_id': self.row_id,
            'row': self.row,
            'created_at': _iso(self.created_at),
        }

    def __str__(self):
        return f"#{self.id} {self.event} {self.table}:{self.row_id}"
