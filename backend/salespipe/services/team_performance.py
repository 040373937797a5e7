from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from salespipe.models.enums import ProposalStatus
from salespipe.services.record_store import ProposalFilter, ProposalRecord, find_proposals, find_users
from salespipe.services.valuation import total_value
from salespipe.utils.decimal_math import safe_rate, whole
from salespipe.utils.periods import hours_between


UNKNOWN_MEMBER_NAME = "Unknown"


@dataclass(frozen=True)
class MemberPerformance:
    user_id: int
    name: str
    proposals_sent: int
    proposals_won: int
    total_revenue: Decimal
    win_rate: Decimal
    avg_deal_size: Decimal
    avg_response_time: int


@dataclass(frozen=True)
class TeamTotals:
    proposals_sent: int
    proposals_won: int
    total_revenue: Decimal
    avg_win_rate: Decimal


@dataclass(frozen=True)
class TeamPerformancePayload:
    members: list[MemberPerformance]
    totals: TeamTotals


def member_performance(user_id: int, name: str, records: Sequence[ProposalRecord]) -> MemberPerformance:
    sent = [record for record in records if record.sent_at is not None]
    won = [record for record in records if record.status == ProposalStatus.approved]
    revenue = total_value(won)

    response_hours = [
        hours_between(record.sent_at, record.first_viewed_at)
        for record in records
        if record.sent_at is not None and record.first_viewed_at is not None
    ]
    avg_response = whole(sum(response_hours) / len(response_hours)) if response_hours else Decimal("0")

    return MemberPerformance(
        user_id=user_id,
        name=name,
        proposals_sent=len(sent),
        proposals_won=len(won),
        total_revenue=revenue,
        win_rate=safe_rate(len(won), len(sent)),
        avg_deal_size=revenue / len(won) if won else Decimal("0"),
        avg_response_time=int(avg_response),
    )


def team_totals(members: Sequence[MemberPerformance]) -> TeamTotals:
    win_rates = [member.win_rate for member in members]
    return TeamTotals(
        proposals_sent=sum(member.proposals_sent for member in members),
        proposals_won=sum(member.proposals_won for member in members),
        total_revenue=sum((member.total_revenue for member in members), Decimal("0")),
        avg_win_rate=sum(win_rates, Decimal("0")) / len(win_rates) if win_rates else Decimal("0"),
    )


def team_performance(
    db: Session,
    user_id: int,
    *,
    member_ids: Sequence[int] | None = None,
) -> TeamPerformancePayload:
    """Per-member send/win aggregates.

    Scope defaults to the calling user alone; passing ``member_ids`` widens it
    without changing the shape of the result.
    """
    ids = tuple(dict.fromkeys(member_ids)) if member_ids else (user_id,)
    records = find_proposals(db, ProposalFilter(user_ids=ids))
    users = find_users(db, ids)

    by_member: dict[int, list[ProposalRecord]] = {member_id: [] for member_id in ids}
    for record in records:
        by_member[record.user_id].append(record)

    members = []
    for member_id in ids:
        user = users.get(member_id)
        name = user.full_name if user is not None and user.full_name else UNKNOWN_MEMBER_NAME
        members.append(member_performance(member_id, name, by_member[member_id]))

    return TeamPerformancePayload(members=members, totals=team_totals(members))
