"""
Receipt balance checks.

Receipts are allowed to be saved unbalanced (OCR is imperfect and the user
may not have finished correcting), so these checks only produce warnings.
Missing values are skipped rather than treated as zero.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Tuple

from lib.extraction.models import ReceiptRecord

TOLERANCE = Decimal('0.01')


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half up"""
    return value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def validate_receipt_balance(record: ReceiptRecord) -> Tuple[bool, Dict[str, List[str]]]:
    """
    Returns (is_balanced, problems) where problems maps a field to messages.
    """
    problems: Dict[str, List[str]] = {}

    def add(field, message):
        problems.setdefault(field, []).append(message)

    for i, item in enumerate(record.items):
        if item.unit_price is None or item.line_total is None:
            continue
        expected = item.unit_price * item.quantity
        if abs(expected - item.line_total) > TOLERANCE:
            add('items', f"Item {i + 1} ({item.name}): {item.quantity} x ${item.unit_price:.2f} "
                         f"is ${expected:.2f}, not ${item.line_total:.2f}")

    if record.subtotal is not None and record.items:
        items_sum = record.items_sum()
        if abs(items_sum - record.subtotal) > TOLERANCE:
            add('subtotal', f"Subtotal ${record.subtotal:.2f} doesn't match sum of items ${items_sum:.2f}")

    if record.subtotal is not None and record.total is not None:
        calculated = record.subtotal + (record.tax or Decimal('0')) + (record.tip or Decimal('0'))
        if abs(calculated - record.total) > TOLERANCE:
            add('total', f"Total ${record.total:.2f} doesn't match subtotal + tax + tip = ${calculated:.2f}")

    # Tax and tip may be negative: that is how discounts and corrections show up
    if record.subtotal is not None and record.subtotal < 0:
        add('subtotal', "Subtotal cannot be negative")
    if record.total is not None and record.total < 0:
        add('total', "Total cannot be negative")

    if record.subtotal and record.subtotal > 0:
        if record.tax is not None and record.tax > record.subtotal * Decimal('0.20'):
            add('tax', f"Tax (${record.tax:.2f}) is more than 20% of subtotal (${record.subtotal:.2f})")
        if record.tip is not None and record.tip > record.subtotal:
            add('tip', f"Tip (${record.tip:.2f}) is more than 100% of subtotal (${record.subtotal:.2f})")

    return not problems, problems
