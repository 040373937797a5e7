from datetime import datetime, timedelta, timezone
from decimal import Decimal

from salespipe.models.enums import ProposalStatus
from salespipe.services.record_store import ProposalRecord
from salespipe.services.win_rate import (
    analyze_win_rate,
    group_by_month,
    summarize_win_rate,
    value_range_label,
)


def _at(year: int, month: int, day: int, hour: int = 12) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def test_overall_rate_over_sent_and_decided_proposals(db, user, make_proposal) -> None:
    sent = _at(2026, 9, 1)
    for _ in range(7):
        make_proposal(
            user,
            status=ProposalStatus.approved,
            created_at=sent,
            sent_at=sent,
            approved_at=sent + timedelta(hours=10),
            prices=["1000"],
        )
    for _ in range(3):
        make_proposal(
            user,
            status=ProposalStatus.declined,
            created_at=sent,
            sent_at=sent,
            declined_at=sent + timedelta(days=2),
            prices=["1000"],
        )

    analysis = analyze_win_rate(db, user.id)

    assert analysis.overall == Decimal("70.00")
    assert analysis.avg_time_to_close == 10
    assert analysis.by_industry == []


def test_never_sent_proposals_are_excluded(db, user, make_proposal) -> None:
    make_proposal(user, status=ProposalStatus.declined, created_at=_at(2026, 9, 1), declined_at=_at(2026, 9, 3))
    make_proposal(user, status=ProposalStatus.draft, created_at=_at(2026, 9, 1))
    make_proposal(
        user,
        status=ProposalStatus.approved,
        created_at=_at(2026, 9, 1),
        sent_at=_at(2026, 9, 2),
        approved_at=_at(2026, 9, 4),
    )

    analysis = analyze_win_rate(db, user.id)

    assert analysis.overall == Decimal("100.00")
    assert sum(row.deals for row in analysis.by_value) == 1
    assert sum(row.deals for row in analysis.by_month) == 1


def test_empty_population_yields_zero_metrics(db, user) -> None:
    analysis = analyze_win_rate(db, user.id)
    assert analysis.overall == Decimal("0")
    assert analysis.by_month == []
    assert [row.deals for row in analysis.by_value] == [0, 0, 0, 0, 0]
    assert all(row.rate == Decimal("0") for row in analysis.by_value)
    assert analysis.avg_time_to_close == 0


def test_overall_rate_rounds_to_two_decimals(db, user, make_proposal) -> None:
    sent = _at(2026, 8, 1)
    make_proposal(user, status=ProposalStatus.approved, created_at=sent, sent_at=sent, approved_at=sent)
    for _ in range(2):
        make_proposal(user, status=ProposalStatus.declined, created_at=sent, sent_at=sent, declined_at=sent)

    assert analyze_win_rate(db, user.id).overall == Decimal("33.33")


def test_value_ranges_are_left_inclusive() -> None:
    assert value_range_label(Decimal("0")) == "$0-1k"
    assert value_range_label(Decimal("999.99")) == "$0-1k"
    assert value_range_label(Decimal("1000")) == "$1k-5k"
    assert value_range_label(Decimal("5000")) == "$5k-10k"
    assert value_range_label(Decimal("24999.99")) == "$10k-25k"
    assert value_range_label(Decimal("25000")) == "$25k+"


def test_by_value_buckets_rates(db, user, make_proposal) -> None:
    sent = _at(2026, 7, 1)
    make_proposal(user, status=ProposalStatus.approved, created_at=sent, sent_at=sent, approved_at=sent, estimated_value="1000")
    make_proposal(user, status=ProposalStatus.declined, created_at=sent, sent_at=sent, declined_at=sent, prices=["3000"])
    make_proposal(user, status=ProposalStatus.approved, created_at=sent, sent_at=sent, approved_at=sent, estimated_value="30000")

    by_value = {row.range: row for row in analyze_win_rate(db, user.id).by_value}

    assert list(by_value) == ["$0-1k", "$1k-5k", "$5k-10k", "$10k-25k", "$25k+"]
    assert by_value["$1k-5k"].deals == 2
    assert by_value["$1k-5k"].rate == Decimal("50")
    assert by_value["$25k+"].rate == Decimal("100")
    assert by_value["$0-1k"].deals == 0


def test_by_month_is_chronological_across_year_boundary() -> None:
    records = [
        ProposalRecord(
            id=1,
            user_id=1,
            status=ProposalStatus.approved,
            created_at=_at(2026, 1, 1),
            sent_at=_at(2026, 1, 2),
            approved_at=_at(2026, 1, 20),
        ),
        ProposalRecord(
            id=2,
            user_id=1,
            status=ProposalStatus.declined,
            created_at=_at(2025, 12, 1),
            sent_at=_at(2025, 12, 2),
            declined_at=_at(2025, 12, 9),
        ),
        ProposalRecord(
            id=3,
            user_id=1,
            status=ProposalStatus.declined,
            created_at=_at(2026, 1, 1),
            sent_at=_at(2026, 1, 3),
        ),
        ProposalRecord(
            id=4,
            user_id=1,
            status=ProposalStatus.approved,
            created_at=_at(2025, 2, 1),
            sent_at=_at(2025, 2, 2),
            approved_at=_at(2025, 2, 8),
        ),
    ]

    rows = group_by_month(records)

    assert [row.month for row in rows] == ["Feb 2025", "Dec 2025", "Jan 2026"]
    assert [row.deals for row in rows] == [1, 1, 2]
    assert rows[2].rate == Decimal("50")


def test_time_to_close_averages_approved_deals_in_hours() -> None:
    sent = _at(2026, 5, 1, 0)
    records = [
        ProposalRecord(id=1, user_id=1, status=ProposalStatus.approved, created_at=sent, sent_at=sent, approved_at=sent + timedelta(hours=5)),
        ProposalRecord(id=2, user_id=1, status=ProposalStatus.approved, created_at=sent, sent_at=sent, approved_at=sent + timedelta(hours=10)),
        ProposalRecord(id=3, user_id=1, status=ProposalStatus.declined, created_at=sent, sent_at=sent, declined_at=sent + timedelta(hours=90)),
    ]

    # 7.5 hours rounds half up
    assert summarize_win_rate(records).avg_time_to_close == 8
