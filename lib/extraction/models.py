"""
Pydantic models for the structured receipt record

This is the data contract between the extraction pipeline, the user's
corrections and the splitting sessions. Items are addressed by position, so
the order of ``items`` is significant and preserved everywhere.
"""

from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple
import logging

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

MONEY_TOLERANCE = Decimal('0.01')


def _to_decimal(value):
    """Coerce numbers and money-looking strings to Decimal, keeping None"""
    if value is None or isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("Money values must be numbers")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        cleaned = value.strip().replace('$', '').replace(',', '')
        if not cleaned:
            return None
        try:
            return Decimal(cleaned)
        except InvalidOperation:
            raise ValueError(f"Not a money value: {value!r}")
    return value


class ReceiptLineItem(BaseModel):
    """A single line on the receipt"""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    quantity: Decimal = Field(default=Decimal('1'), gt=0)
    unit_price: Optional[Decimal] = Field(
        default=None, validation_alias=AliasChoices('unit_price', 'unitPrice')
    )
    line_total: Optional[Decimal] = Field(
        default=None, validation_alias=AliasChoices('line_total', 'lineTotal', 'total_price')
    )

    @field_validator('quantity', mode='before')
    @classmethod
    def default_quantity(cls, v):
        """Missing quantities mean one of the item; weighed items may be fractional"""
        return Decimal('1') if v is None else _to_decimal(v)

    @field_validator('unit_price', 'line_total', mode='before')
    @classmethod
    def coerce_money(cls, v):
        return _to_decimal(v)

    def to_row(self) -> dict:
        """JSON-safe representation used for the receipts.items blob"""
        return {
            'name': self.name,
            'quantity': str(self.quantity),
            'unit_price': None if self.unit_price is None else str(self.unit_price),
            'line_total': None if self.line_total is None else str(self.line_total),
        }


class ReceiptRecord(BaseModel):
    """Validated, editable representation of a whole receipt"""
    model_config = ConfigDict(populate_by_name=True)

    merchant_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices('merchant_name', 'merchantName')
    )
    address: Optional[str] = None
    server_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices('server_name', 'serverName')
    )
    date_time: Optional[str] = Field(
        default=None, validation_alias=AliasChoices('date_time', 'dateTime')
    )
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    tip: Optional[Decimal] = None
    total: Optional[Decimal] = None
    items: List[ReceiptLineItem] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @field_validator('subtotal', 'tax', 'tip', 'total', mode='before')
    @classmethod
    def coerce_money(cls, v):
        return _to_decimal(v)

    @field_validator('items', 'warnings', mode='before')
    @classmethod
    def null_to_empty(cls, v):
        return [] if v is None else v

    @classmethod
    def blank(cls, warning: Optional[str] = None) -> 'ReceiptRecord':
        """An empty record, optionally explaining why extraction produced nothing"""
        return cls(warnings=[warning] if warning else [])

    def items_sum(self) -> Decimal:
        return sum((item.line_total or Decimal('0') for item in self.items), Decimal('0'))

    def validate_totals(self) -> Tuple[bool, List[str]]:
        """Check the record for internal consistency; missing values are skipped"""
        errors = []

        if self.subtotal is not None and self.items:
            items_sum = self.items_sum()
            if abs(items_sum - self.subtotal) > MONEY_TOLERANCE:
                errors.append(f"Items sum ({items_sum}) doesn't match subtotal ({self.subtotal})")

        if self.total is not None and self.subtotal is not None:
            calculated = self.subtotal + (self.tax or Decimal('0')) + (self.tip or Decimal('0'))
            if abs(calculated - self.total) > MONEY_TOLERANCE:
                errors.append(f"Calculated total ({calculated}) doesn't match receipt total ({self.total})")

        return len(errors) == 0, errors

    def item_rows(self) -> List[dict]:
        return [item.to_row() for item in self.items]
