"""
Repository for Receipt data access
"""
from typing import Optional

from django.core.exceptions import ValidationError

from lib.extraction.models import ReceiptRecord
from splits.models import Receipt


class ReceiptRepository:
    """Handles all data access for receipts"""

    def get_by_id(self, receipt_id) -> Optional[Receipt]:
        try:
            return Receipt.objects.get(id=receipt_id)
        except (Receipt.DoesNotExist, ValidationError, ValueError):
            return None

    def create(self, record: ReceiptRecord, owner_id: str) -> Receipt:
        return Receipt.objects.create(owner_id=owner_id, **self._fields(record))

    def update(self, receipt: Receipt, record: ReceiptRecord) -> Receipt:
        fields = self._fields(record)
        for name, value in fields.items():
            setattr(receipt, name, value)
        receipt.save(update_fields=list(fields))
        return receipt

    def is_referenced_by_session(self, receipt_id) -> bool:
        return Receipt.objects.filter(id=receipt_id, sessions__isnull=False).exists()

    def _fields(self, record: ReceiptRecord) -> dict:
        return {
            'merchant_name': record.merchant_name,
            'address': record.address,
            'date_time': record.date_time,
            'subtotal': record.subtotal,
            'tax': record.tax,
            'tip': record.tip,
            'total': record.total,
            'items': record.item_rows(),
        }

    def get_for_update(self, receipt_id) -> Optional[Receipt]:
        """Fetch and row-lock a receipt; must be called inside transaction.atomic"""
        try:
            return Receipt.objects.select_for_update().get(id=receipt_id)
        except (Receipt.DoesNotExist, ValidationError, ValueError):
            return None
