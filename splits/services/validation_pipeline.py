"""
Centralized validation for receipts, names, codes and claims
"""
from typing import Dict, List, Tuple, Union

from django.core.exceptions import ValidationError
from pydantic import ValidationError as SchemaError

from lib.extraction.models import ReceiptRecord
from splits.join_codes import is_valid_join_code, normalize_join_code
from splits.models import SplitSession
from splits.validation import validate_receipt_balance
from splits.validators import InputValidator

DEFAULT_DISPLAY_NAME = 'Guest'


class ValidationPipeline:
    """Single entry point for input validation"""

    def validate_name(self, name: str, field_name: str = "Name") -> str:
        try:
            return InputValidator.validate_name(name, field_name)
        except ValidationError as e:
            raise ValidationError({field_name.lower().replace(' ', '_'): e.messages})

    def validate_display_name(self, name) -> str:
        """Blank names fall back to "Guest"; anything else must be a valid name"""
        if name is None or not str(name).strip():
            return DEFAULT_DISPLAY_NAME
        cleaned = InputValidator.clean_text(name)
        if not cleaned:
            return DEFAULT_DISPLAY_NAME
        return self.validate_name(cleaned, "Display name")

    def validate_join_code(self, code) -> str:
        normalized = normalize_join_code(code)
        if not is_valid_join_code(normalized):
            raise ValidationError({'join_code': "Enter a 6-character code."})
        return normalized

    def validate_status(self, status) -> str:
        valid = [value for value, _ in SplitSession.STATUS_CHOICES]
        if status not in valid:
            raise ValidationError({'status': f"Status must be one of: {', '.join(valid)}"})
        return status

    def validate_item_index(self, value) -> int:
        """Parse an item index; range checks against the receipt happen in the claim service"""
        try:
            index = int(value)
        except (TypeError, ValueError):
            raise ValidationError({'item_index': "Item index must be a whole number"})
        if index < 0:
            raise ValidationError({'item_index': "Item index cannot be negative"})
        return index

    def parse_receipt(self, data: Union[Dict, ReceiptRecord]) -> ReceiptRecord:
        if isinstance(data, ReceiptRecord):
            return data
        if not isinstance(data, dict):
            raise ValidationError({'receipt': "Receipt data must be an object"})
        try:
            return ReceiptRecord.model_validate(data)
        except SchemaError as e:
            raise ValidationError(self._schema_errors(e))

    def validate_receipt_data(self, data: Union[Dict, ReceiptRecord]) -> Tuple[ReceiptRecord, List[str]]:
        """
        Validate a receipt for saving. Returns (cleaned_record, warnings).
        Unbalanced receipts are allowed through with warnings; malformed ones are not.
        """
        record = self.parse_receipt(data)

        errors = {}
        items = []
        for i, item in enumerate(record.items):
            try:
                name = InputValidator.validate_name(item.name, f"Item {i + 1} name", max_length=100)
            except ValidationError as e:
                errors.setdefault('items', []).extend(e.messages)
                continue
            for field in ('unit_price', 'line_total'):
                try:
                    InputValidator.validate_money(getattr(item, field), f"Item {i + 1} {field.replace('_', ' ')}")
                except ValidationError as e:
                    errors.setdefault('items', []).extend(e.messages)
            items.append(item.model_copy(update={'name': name}))

        for field in ('subtotal', 'total'):
            try:
                InputValidator.validate_money(getattr(record, field), field.capitalize())
            except ValidationError as e:
                errors.setdefault(field, []).extend(e.messages)
        for field in ('tax', 'tip'):
            try:
                InputValidator.validate_money(getattr(record, field), field.capitalize(), allow_negative=True)
            except ValidationError as e:
                errors.setdefault(field, []).extend(e.messages)

        if errors:
            raise ValidationError(errors)

        cleaned = record.model_copy(update={
            'merchant_name': self._optional_text(record.merchant_name, 100),
            'address': self._optional_text(record.address, 255),
            'date_time': self._optional_text(record.date_time, 64),
            'items': items,
        })

        _, problems = validate_receipt_balance(cleaned)
        warnings = [message for messages in problems.values() for message in messages]
        return cleaned, warnings

    def format_validation_errors(self, error: ValidationError) -> str:
        """Flatten a ValidationError into one short message for JSON responses"""
        if hasattr(error, 'message_dict'):
            messages = []
            for value in error.message_dict.values():
                messages.extend(value)
            return "; ".join(messages)
        return "; ".join(error.messages)

    @staticmethod
    def _optional_text(value, max_length):
        if value is None:
            return None
        cleaned = InputValidator.clean_text(value)[:max_length]
        return cleaned or None

    @staticmethod
    def _schema_errors(error: SchemaError) -> Dict[str, List[str]]:
        errors: Dict[str, List[str]] = {}
        for detail in error.errors():
            field = str(detail['loc'][0]) if detail['loc'] else 'receipt'
            location = '.'.join(str(part) for part in detail['loc'])
            errors.setdefault(field, []).append(f"{location}: {detail['msg']}")
        return errors
