"""
Input validators for user-supplied text and numbers
"""

from decimal import Decimal, InvalidOperation
import logging

import bleach
from django.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

SUSPICIOUS_PATTERNS = (
    '<script', 'javascript:', 'onclick', 'onerror', 'onload',
    'eval(', '<iframe', '<embed', '<object', '<svg', '\x00',
)


class InputValidator:
    """Validate and sanitize user text inputs"""

    @staticmethod
    def clean_text(value):
        """Strip markup and surrounding whitespace"""
        if value is None:
            return ''
        return bleach.clean(str(value), tags=[], strip=True).strip()

    @classmethod
    def validate_name(cls, name, field_name="Name", min_length=1, max_length=50):
        if not name or not isinstance(name, str):
            raise ValidationError(f"{field_name} is required")

        cleaned = cls.clean_text(name)

        if len(cleaned) < min_length:
            raise ValidationError(f"{field_name} must be at least {min_length} characters")
        if len(cleaned) > max_length:
            raise ValidationError(f"{field_name} must not exceed {max_length} characters")

        lowered = cleaned.lower()
        if any(pattern in lowered for pattern in SUSPICIOUS_PATTERNS):
            logger.warning(f"Rejected {field_name.lower()} with suspicious content")
            raise ValidationError(f"{field_name} contains invalid characters")

        return cleaned

    @staticmethod
    def validate_money(value, field_name="Amount", max_digits=12, decimal_places=6, allow_negative=False):
        """Validate an optional money value; None passes through"""
        if value is None:
            return None
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, TypeError):
            raise ValidationError(f"Invalid {field_name.lower()}: must be a valid number")

        if not amount.is_finite():
            raise ValidationError(f"{field_name} must be a valid number")
        if not allow_negative and amount < 0:
            raise ValidationError(f"{field_name} cannot be negative")
        if amount.as_tuple().exponent < -decimal_places:
            raise ValidationError(f"{field_name} has too many decimal places (max {decimal_places})")
        if abs(amount) > Decimal('9' * (max_digits - decimal_places)):
            raise ValidationError(f"{field_name} is too large")
        return amount
