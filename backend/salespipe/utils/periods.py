from __future__ import annotations

from datetime import date, datetime, timezone


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def month_window(year: int, month: int) -> tuple[datetime, datetime]:
    """Half-open UTC window covering one calendar month."""
    next_year, next_month = shift_month(year, month, 1)
    return month_start(year, month), month_start(next_year, next_month)


def quarter_of(month: int) -> int:
    return (month - 1) // 3 + 1


def shift_quarter(year: int, quarter: int, delta: int) -> tuple[int, int]:
    index = year * 4 + (quarter - 1) + delta
    return index // 4, index % 4 + 1


def quarter_window(year: int, quarter: int) -> tuple[datetime, datetime]:
    first_month = (quarter - 1) * 3 + 1
    end_year, end_month = shift_month(year, first_month, 3)
    return month_start(year, first_month), month_start(end_year, end_month)


def month_label(year: int, month: int) -> str:
    return date(year, month, 1).strftime("%b %Y")


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600
