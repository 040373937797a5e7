from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Literal

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from salespipe.models.enums import BlockType, PricingItemType, ProposalStatus
from salespipe.models.pipeline import PipelineStage
from salespipe.models.proposal import Proposal, ProposalBlock
from salespipe.models.user import User


DateField = Literal["created_at", "approved_at", "sent_at"]
TimestampField = Literal["sent_at", "first_viewed_at", "approved_at", "declined_at"]

STAGE_FIELDS = ("name", "order", "probability", "color")


@dataclass(frozen=True)
class PricingLine:
    block_type: BlockType
    item_type: PricingItemType
    price: Decimal


@dataclass(frozen=True)
class ProposalRecord:
    id: int
    user_id: int
    status: ProposalStatus
    created_at: datetime
    sent_at: datetime | None = None
    first_viewed_at: datetime | None = None
    approved_at: datetime | None = None
    declined_at: datetime | None = None
    estimated_value: Decimal | None = None
    tax_rate: Decimal | None = None
    pipeline_stage_id: int | None = None
    pricing_lines: tuple[PricingLine, ...] = ()
    owner_name: str | None = None


@dataclass(frozen=True)
class DateRange:
    field: DateField
    start: datetime
    end: datetime


@dataclass(frozen=True)
class ProposalFilter:
    user_ids: tuple[int, ...]
    statuses: tuple[ProposalStatus, ...] | None = None
    date_range: DateRange | None = None
    not_null: tuple[TimestampField, ...] = ()

    @classmethod
    def for_user(cls, user_id: int, **kwargs: Any) -> "ProposalFilter":
        return cls(user_ids=(user_id,), **kwargs)


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_record(row: Proposal) -> ProposalRecord:
    lines = tuple(
        PricingLine(
            block_type=BlockType(block.block_type),
            item_type=PricingItemType(item.item_type),
            price=Decimal(str(item.price)),
        )
        for block in row.blocks
        for item in block.pricing_items
    )
    return ProposalRecord(
        id=row.id,
        user_id=row.user_id,
        status=ProposalStatus(row.status),
        created_at=as_utc(row.created_at),
        sent_at=as_utc(row.sent_at),
        first_viewed_at=as_utc(row.first_viewed_at),
        approved_at=as_utc(row.approved_at),
        declined_at=as_utc(row.declined_at),
        estimated_value=Decimal(str(row.estimated_value)) if row.estimated_value is not None else None,
        tax_rate=Decimal(str(row.tax_rate)) if row.tax_rate is not None else None,
        pipeline_stage_id=row.pipeline_stage_id,
        pricing_lines=lines,
        owner_name=row.user.full_name if row.user is not None else None,
    )


def find_proposals(db: Session, proposal_filter: ProposalFilter) -> list[ProposalRecord]:
    query = (
        select(Proposal)
        .where(Proposal.user_id.in_(proposal_filter.user_ids))
        .options(
            selectinload(Proposal.blocks).selectinload(ProposalBlock.pricing_items),
            selectinload(Proposal.user),
        )
    )
    if proposal_filter.statuses is not None:
        query = query.where(Proposal.status.in_(proposal_filter.statuses))
    if proposal_filter.date_range is not None:
        column = getattr(Proposal, proposal_filter.date_range.field)
        query = query.where(
            column >= proposal_filter.date_range.start,
            column < proposal_filter.date_range.end,
        )
    for name in proposal_filter.not_null:
        query = query.where(getattr(Proposal, name).is_not(None))

    rows = db.scalars(query.order_by(Proposal.created_at.asc(), Proposal.id.asc())).all()
    return [_to_record(row) for row in rows]


def find_users(db: Session, user_ids: Iterable[int]) -> dict[int, User]:
    ids = list(user_ids)
    if not ids:
        return {}
    return {user.id: user for user in db.scalars(select(User).where(User.id.in_(ids))).all()}


def find_pipeline_stages(db: Session, user_id: int) -> list[PipelineStage]:
    return list(
        db.scalars(
            select(PipelineStage)
            .where(PipelineStage.user_id == user_id)
            .order_by(PipelineStage.order.asc(), PipelineStage.id.asc())
        ).all()
    )


def find_pipeline_stage_by_name(db: Session, user_id: int, name: str) -> PipelineStage | None:
    return db.scalar(
        select(PipelineStage).where(PipelineStage.user_id == user_id, PipelineStage.name == name)
    )


def get_pipeline_stage(db: Session, stage_id: int) -> PipelineStage | None:
    return db.get(PipelineStage, stage_id)


def create_pipeline_stage(
    db: Session,
    user_id: int,
    *,
    name: str,
    order: int,
    probability: int,
    color: str,
) -> PipelineStage:
    stage = PipelineStage(
        user_id=user_id,
        name=name,
        order=order,
        probability=probability,
        color=color,
    )
    db.add(stage)
    db.flush()
    return stage


def update_pipeline_stage(db: Session, stage: PipelineStage, fields: dict[str, Any]) -> PipelineStage:
    for key, value in fields.items():
        if key in STAGE_FIELDS:
            setattr(stage, key, value)
    db.flush()
    return stage


def delete_pipeline_stage(db: Session, stage: PipelineStage) -> None:
    db.execute(
        update(Proposal)
        .where(Proposal.pipeline_stage_id == stage.id)
        .values(pipeline_stage_id=None)
    )
    db.delete(stage)
    db.flush()


def stage_state(stage: PipelineStage) -> dict[str, Any]:
    return {
        "name": stage.name,
        "order": stage.order,
        "probability": stage.probability,
        "color": stage.color,
    }
