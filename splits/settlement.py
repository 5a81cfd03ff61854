"""
Settlement: what one participant owes for a finished split.

``settle`` is a pure function over the converged roster, claim ledger and
receipt. Every client computes it independently, so it must depend on
nothing but its arguments. Participants and claims are read by attribute,
which lets callers pass model instances, mirror rows or snapshot rows.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Set, Tuple

from lib.extraction.models import ReceiptRecord
from splits.validation import round_money

ZERO = Decimal('0')


@dataclass(frozen=True)
class ClaimedItemShare:
    item_index: int
    name: str
    line_total: Decimal
    my_share: Decimal
    claimant_count: int

    def as_dict(self):
        return {
            'item_index': self.item_index,
            'name': self.name,
            'line_total': str(round_money(self.line_total)),
            'my_share': str(round_money(self.my_share)),
            'claimant_count': self.claimant_count,
        }


@dataclass(frozen=True)
class Settlement:
    user_id: str
    claimed_items: Tuple[ClaimedItemShare, ...] = field(default_factory=tuple)
    unclaimed_share: Decimal = ZERO
    item_subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    tip: Decimal = ZERO
    total: Decimal = ZERO

    def as_dict(self):
        """Cent-rounded view for display and JSON"""
        return {
            'user_id': self.user_id,
            'claimed_items': [item.as_dict() for item in self.claimed_items],
            'unclaimed_share': str(round_money(self.unclaimed_share)),
            'item_subtotal': str(round_money(self.item_subtotal)),
            'tax': str(round_money(self.tax)),
            'tip': str(round_money(self.tip)),
            'total': str(round_money(self.total)),
        }


def claim_map(claims: Iterable) -> Dict[int, Set[str]]:
    """item_index -> distinct claimant user ids"""
    claimants = defaultdict(set)
    for claim in claims:
        claimants[claim.item_index].add(claim.user_id)
    return claimants


def settle(my_user_id: str, participants: Iterable, receipt: ReceiptRecord, claims: Iterable) -> Settlement:
    participant_count = len({p.user_id for p in participants})
    claimants = claim_map(claims)

    item_subtotal = ZERO
    unclaimed_share = ZERO
    claimed_items = []

    for index, item in enumerate(receipt.items):
        line_total = item.line_total if item.line_total is not None else ZERO
        claimed_by = claimants.get(index)

        if not claimed_by:
            share = line_total / max(1, participant_count)
            unclaimed_share += share
            item_subtotal += share
        elif my_user_id in claimed_by:
            share = line_total / len(claimed_by)
            claimed_items.append(ClaimedItemShare(
                item_index=index,
                name=item.name,
                line_total=line_total,
                my_share=share,
                claimant_count=len(claimed_by),
            ))
            item_subtotal += share

    subtotal = receipt.subtotal or ZERO
    if subtotal > 0:
        proportion = item_subtotal / subtotal
    elif participant_count:
        proportion = Decimal(1) / participant_count
    else:
        proportion = Decimal(1)

    tax = (receipt.tax or ZERO) * proportion
    tip = (receipt.tip or ZERO) * proportion

    return Settlement(
        user_id=my_user_id,
        claimed_items=tuple(claimed_items),
        unclaimed_share=unclaimed_share,
        item_subtotal=item_subtotal,
        tax=tax,
        tip=tip,
        total=item_subtotal + tax + tip,
    )


def settle_all(participants: Iterable, receipt: ReceiptRecord, claims: Iterable) -> Dict[str, Settlement]:
    participants = list(participants)
    claims = list(claims)
    return {
        p.user_id: settle(p.user_id, participants, receipt, claims)
        for p in participants
    }
