from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from salespipe.models.enums import BlockType, PricingItemType
from salespipe.services.record_store import ProposalRecord


def pricing_subtotal(record: ProposalRecord) -> Decimal:
    total = Decimal("0")
    for line in record.pricing_lines:
        if line.block_type != BlockType.pricing_table:
            continue
        if line.item_type == PricingItemType.optional:
            continue
        total += line.price
    return total


def proposal_value(record: ProposalRecord) -> Decimal:
    """Monetary value of a proposal.

    A non-zero ``estimated_value`` overrides everything. Otherwise the
    committed pricing-table items are summed and a positive ``tax_rate``
    (a percentage) is applied on top.
    """
    if record.estimated_value:
        return record.estimated_value

    total = pricing_subtotal(record)
    if record.tax_rate is not None and record.tax_rate > 0:
        total = total * (Decimal("1") + record.tax_rate / Decimal("100"))
    return total


def total_value(records: Iterable[ProposalRecord]) -> Decimal:
    return sum((proposal_value(record) for record in records), Decimal("0"))
