from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session

from salespipe.models.enums import DECIDED_STATUSES, ProposalStatus
from salespipe.services.record_store import ProposalFilter, ProposalRecord, find_proposals
from salespipe.services.valuation import proposal_value
from salespipe.utils.decimal_math import pct, safe_rate, whole
from salespipe.utils.periods import hours_between, month_label


# (label, inclusive lower bound, exclusive upper bound)
VALUE_RANGES: tuple[tuple[str, Decimal, Decimal | None], ...] = (
    ("$0-1k", Decimal("0"), Decimal("1000")),
    ("$1k-5k", Decimal("1000"), Decimal("5000")),
    ("$5k-10k", Decimal("5000"), Decimal("10000")),
    ("$10k-25k", Decimal("10000"), Decimal("25000")),
    ("$25k+", Decimal("25000"), None),
)


@dataclass(frozen=True)
class MonthWinRate:
    month: str
    rate: Decimal
    deals: int


@dataclass(frozen=True)
class ValueRangeWinRate:
    range: str
    rate: Decimal
    deals: int


@dataclass(frozen=True)
class IndustryWinRate:
    industry: str
    rate: Decimal
    deals: int


@dataclass(frozen=True)
class WinRatePayload:
    overall: Decimal
    by_month: list[MonthWinRate]
    by_value: list[ValueRangeWinRate]
    avg_time_to_close: int
    # no industry attribute is tracked on proposals yet
    by_industry: list[IndustryWinRate] = field(default_factory=list)


def _is_won(record: ProposalRecord) -> bool:
    return record.status == ProposalStatus.approved


def group_by_month(records: Sequence[ProposalRecord]) -> list[MonthWinRate]:
    groups: dict[tuple[int, int], list[int]] = {}
    for record in records:
        decided = record.approved_at or record.declined_at or record.sent_at
        if decided is None:
            continue
        tally = groups.setdefault((decided.year, decided.month), [0, 0])
        tally[0] += 1 if _is_won(record) else 0
        tally[1] += 1

    return [
        MonthWinRate(month=month_label(year, month), rate=safe_rate(won, total), deals=total)
        for (year, month), (won, total) in sorted(groups.items())
    ]


def value_range_label(value: Decimal) -> str | None:
    for label, lower, upper in VALUE_RANGES:
        if value >= lower and (upper is None or value < upper):
            return label
    return None


def group_by_value(records: Sequence[ProposalRecord]) -> list[ValueRangeWinRate]:
    tallies = {label: [0, 0] for label, _, _ in VALUE_RANGES}
    for record in records:
        label = value_range_label(proposal_value(record))
        if label is None:
            continue
        tallies[label][0] += 1 if _is_won(record) else 0
        tallies[label][1] += 1
    return [
        ValueRangeWinRate(range=label, rate=safe_rate(won, total), deals=total)
        for label, (won, total) in tallies.items()
    ]


def average_hours_to_close(records: Sequence[ProposalRecord]) -> int:
    durations = [
        hours_between(record.sent_at, record.approved_at)
        for record in records
        if _is_won(record) and record.sent_at is not None and record.approved_at is not None
    ]
    if not durations:
        return 0
    return int(whole(sum(durations) / len(durations)))


def summarize_win_rate(records: Sequence[ProposalRecord]) -> WinRatePayload:
    population = [
        record for record in records if record.status in DECIDED_STATUSES and record.sent_at is not None
    ]
    won = sum(1 for record in population if _is_won(record))
    return WinRatePayload(
        overall=pct(safe_rate(won, len(population))),
        by_month=group_by_month(population),
        by_value=group_by_value(population),
        avg_time_to_close=average_hours_to_close(population),
    )


def analyze_win_rate(db: Session, user_id: int) -> WinRatePayload:
    records = find_proposals(
        db,
        ProposalFilter.for_user(user_id, statuses=DECIDED_STATUSES, not_null=("sent_at",)),
    )
    return summarize_win_rate(records)
