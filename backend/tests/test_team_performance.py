from datetime import datetime, timedelta, timezone
from decimal import Decimal

from salespipe.models.enums import ProposalStatus
from salespipe.models.user import User
from salespipe.services.team_performance import team_performance


SENT = datetime(2026, 9, 1, 8, tzinfo=timezone.utc)


def test_single_member_aggregates_and_echoed_totals(db, user, make_proposal) -> None:
    make_proposal(
        user,
        status=ProposalStatus.approved,
        created_at=SENT,
        sent_at=SENT,
        first_viewed_at=SENT + timedelta(hours=2),
        approved_at=SENT + timedelta(days=1),
        prices=["3000"],
    )
    make_proposal(
        user,
        status=ProposalStatus.declined,
        created_at=SENT,
        sent_at=SENT,
        first_viewed_at=SENT + timedelta(hours=5),
        declined_at=SENT + timedelta(days=2),
        prices=["500"],
    )
    make_proposal(user, status=ProposalStatus.sent, created_at=SENT, sent_at=SENT, prices=["800"])
    make_proposal(user, status=ProposalStatus.approved, created_at=SENT, estimated_value="1000")
    make_proposal(user, status=ProposalStatus.draft, created_at=SENT, prices=["250"])

    payload = team_performance(db, user.id)

    assert len(payload.members) == 1
    member = payload.members[0]
    assert member.user_id == user.id
    assert member.name == "Sam Seller"
    assert member.proposals_sent == 3
    assert member.proposals_won == 2
    assert member.total_revenue == Decimal("4000")
    assert member.win_rate == Decimal("200") / Decimal("3")
    assert member.avg_deal_size == Decimal("2000")
    # mean of 2h and 5h, half up
    assert member.avg_response_time == 4

    assert payload.totals.proposals_sent == member.proposals_sent
    assert payload.totals.proposals_won == member.proposals_won
    assert payload.totals.total_revenue == member.total_revenue
    assert payload.totals.avg_win_rate == member.win_rate


def test_user_without_proposals_still_reports_name(db, user) -> None:
    member = team_performance(db, user.id).members[0]
    assert member.name == "Sam Seller"
    assert member.proposals_sent == 0
    assert member.win_rate == Decimal("0")
    assert member.avg_deal_size == Decimal("0")
    assert member.avg_response_time == 0


def test_multiple_members_are_aggregated_independently(db, user, make_proposal) -> None:
    teammate = User(email="mate@test.com", full_name="Tia Mate", is_active=True)
    db.add(teammate)
    db.flush()
    make_proposal(user, status=ProposalStatus.approved, created_at=SENT, sent_at=SENT, estimated_value="1000")
    make_proposal(teammate, status=ProposalStatus.declined, created_at=SENT, sent_at=SENT, estimated_value="700")
    make_proposal(teammate, status=ProposalStatus.approved, created_at=SENT, sent_at=SENT, estimated_value="300")

    payload = team_performance(db, user.id, member_ids=[user.id, teammate.id, 404])

    assert [member.name for member in payload.members] == ["Sam Seller", "Tia Mate", "Unknown"]
    assert [member.proposals_won for member in payload.members] == [1, 1, 0]
    assert payload.totals.proposals_sent == 3
    assert payload.totals.total_revenue == Decimal("1300")
    assert payload.totals.avg_win_rate == Decimal("50")
