from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from salespipe.models.enums import OPEN_STATUSES, ProposalStatus
from salespipe.services.record_store import DateRange, ProposalFilter, ProposalRecord, find_proposals
from salespipe.services.valuation import proposal_value, total_value
from salespipe.utils.decimal_math import whole
from salespipe.utils.periods import (
    month_label,
    month_start,
    month_window,
    quarter_of,
    quarter_window,
    shift_month,
    shift_quarter,
    today_utc,
)


# Confidence weights are business policy, not tunables.
CURRENT_MONTH_CONFIDENCE = Decimal("0.5")
NEXT_MONTH_CONFIDENCE = Decimal("0.3")

TREND_MONTHS = 12
TRAILING_QUARTERS = 4

ACTIVE_STATUSES = (ProposalStatus.sent, ProposalStatus.viewed)


@dataclass(frozen=True)
class CurrentMonthForecast:
    projected: Decimal
    actual: Decimal


@dataclass(frozen=True)
class NextMonthForecast:
    projected: Decimal


@dataclass(frozen=True)
class QuarterPoint:
    quarter: str
    projected: Decimal
    actual: Decimal


@dataclass(frozen=True)
class TrendPoint:
    period: str
    revenue: Decimal
    deals: int
    avg_deal_size: Decimal


@dataclass(frozen=True)
class ForecastPayload:
    current_month: CurrentMonthForecast
    next_month: NextMonthForecast
    quarterly: list[QuarterPoint]
    trends: list[TrendPoint]


def _approved_by_month(records: list[ProposalRecord]) -> dict[tuple[int, int], list[ProposalRecord]]:
    buckets: dict[tuple[int, int], list[ProposalRecord]] = defaultdict(list)
    for record in records:
        if record.approved_at is None:
            continue
        buckets[(record.approved_at.year, record.approved_at.month)].append(record)
    return buckets


def build_quarterly(buckets: dict[tuple[int, int], list[ProposalRecord]], today: date) -> list[QuarterPoint]:
    current = (today.year, quarter_of(today.month))
    points: list[QuarterPoint] = []
    for offset in range(TRAILING_QUARTERS - 1, -1, -1):
        year, quarter = shift_quarter(current[0], current[1], -offset)
        first_month = (quarter - 1) * 3 + 1
        actual = Decimal("0")
        for step in range(3):
            actual += total_value(buckets.get(shift_month(year, first_month, step), []))
        # no projection model for closed quarters
        points.append(QuarterPoint(quarter=f"Q{quarter} {year}", projected=actual, actual=actual))
    return points


def build_trends(buckets: dict[tuple[int, int], list[ProposalRecord]], today: date) -> list[TrendPoint]:
    points: list[TrendPoint] = []
    for offset in range(TREND_MONTHS - 1, -1, -1):
        year, month = shift_month(today.year, today.month, -offset)
        deals = buckets.get((year, month), [])
        revenue = total_value(deals)
        points.append(
            TrendPoint(
                period=month_label(year, month),
                revenue=revenue,
                deals=len(deals),
                avg_deal_size=revenue / len(deals) if deals else Decimal("0"),
            )
        )
    return points


def _history_start(today: date) -> date:
    trend_year, trend_month = shift_month(today.year, today.month, -(TREND_MONTHS - 1))
    q_year, q_number = shift_quarter(today.year, quarter_of(today.month), -(TRAILING_QUARTERS - 1))
    quarter_start = quarter_window(q_year, q_number)[0].date()
    return min(date(trend_year, trend_month, 1), quarter_start)


def generate_forecast(db: Session, user_id: int, *, today: date | None = None) -> ForecastPayload:
    today = today or today_utc()
    month_open, month_close = month_window(today.year, today.month)

    approved_this_month = find_proposals(
        db,
        ProposalFilter.for_user(
            user_id,
            statuses=(ProposalStatus.approved,),
            date_range=DateRange("approved_at", month_open, month_close),
        ),
    )
    actual = total_value(approved_this_month)

    active_this_month = find_proposals(
        db,
        ProposalFilter.for_user(
            user_id,
            statuses=ACTIVE_STATUSES,
            date_range=DateRange("created_at", month_open, month_close),
        ),
    )
    projected = actual + sum(
        (proposal_value(record) * CURRENT_MONTH_CONFIDENCE for record in active_this_month),
        Decimal("0"),
    )

    # Flat weight over the whole open pipeline, not only next-month-dated items.
    open_pipeline = find_proposals(db, ProposalFilter.for_user(user_id, statuses=OPEN_STATUSES))
    next_month_projected = sum(
        (proposal_value(record) * NEXT_MONTH_CONFIDENCE for record in open_pipeline),
        Decimal("0"),
    )

    history_start = _history_start(today)
    history = find_proposals(
        db,
        ProposalFilter.for_user(
            user_id,
            statuses=(ProposalStatus.approved,),
            date_range=DateRange(
                "approved_at",
                month_start(history_start.year, history_start.month),
                quarter_window(today.year, quarter_of(today.month))[1],
            ),
        ),
    )
    buckets = _approved_by_month(history)

    return ForecastPayload(
        current_month=CurrentMonthForecast(projected=whole(projected), actual=whole(actual)),
        next_month=NextMonthForecast(projected=whole(next_month_projected)),
        quarterly=build_quarterly(buckets, today),
        trends=build_trends(buckets, today),
    )
