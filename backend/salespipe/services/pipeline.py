from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from salespipe.core.config import get_settings
from salespipe.models.enums import OPEN_STATUSES, ProposalStatus
from salespipe.models.pipeline import PipelineStage
from salespipe.services import record_store
from salespipe.services.audit import log_audit
from salespipe.services.record_store import ProposalFilter, ProposalRecord
from salespipe.services.valuation import proposal_value


logger = logging.getLogger("salespipe.pipeline")

DEFAULT_STAGES: tuple[dict[str, Any], ...] = (
    {"name": "Lead", "order": 1, "probability": 10, "color": "#94a3b8"},
    {"name": "Qualified", "order": 2, "probability": 25, "color": "#3b82f6"},
    {"name": "Proposal Sent", "order": 3, "probability": 50, "color": "#8b5cf6"},
    {"name": "Negotiation", "order": 4, "probability": 75, "color": "#f59e0b"},
    {"name": "Closed Won", "order": 5, "probability": 100, "color": "#22c55e"},
    {"name": "Closed Lost", "order": 6, "probability": 0, "color": "#ef4444"},
)

# Fallback stage for open proposals without an explicit stage assignment.
STATUS_STAGE_NAMES: dict[ProposalStatus, str] = {
    ProposalStatus.draft: "Lead",
    ProposalStatus.sent: "Proposal Sent",
    ProposalStatus.viewed: "Negotiation",
}


class StageLike(Protocol):
    id: int
    name: str
    order: int
    probability: int
    color: str


@dataclass(frozen=True)
class StageSummary:
    id: int
    name: str
    order: int
    probability: int
    color: str
    proposal_count: int
    total_value: Decimal
    weighted_value: Decimal


@dataclass(frozen=True)
class PipelinePayload:
    stages: list[StageSummary]
    total_pipeline: Decimal
    weighted_pipeline: Decimal


def _stage_or_404(db: Session, stage_id: int, user_id: int) -> PipelineStage:
    stage = record_store.get_pipeline_stage(db, stage_id)
    if stage is None or stage.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pipeline stage not found.")
    return stage


def _ensure_name_available(db: Session, user_id: int, name: str, *, exclude_id: int | None = None) -> None:
    existing = record_store.find_pipeline_stage_by_name(db, user_id, name)
    if existing is not None and existing.id != exclude_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A pipeline stage with this name already exists.",
        )


def list_pipeline_stages(db: Session, user_id: int) -> list[PipelineStage]:
    return record_store.find_pipeline_stages(db, user_id)


def create_stage(
    db: Session,
    user_id: int,
    *,
    name: str,
    order: int,
    probability: int,
    color: str | None = None,
) -> PipelineStage:
    _ensure_name_available(db, user_id, name)
    stage = record_store.create_pipeline_stage(
        db,
        user_id,
        name=name,
        order=order,
        probability=probability,
        color=color or get_settings().default_stage_color,
    )
    log_audit(
        db,
        actor_user_id=user_id,
        action="pipeline_stage.create",
        entity_type="pipeline_stage",
        entity_id=str(stage.id),
        after_state=record_store.stage_state(stage),
    )
    return stage


def update_stage(db: Session, stage_id: int, user_id: int, fields: dict[str, Any]) -> PipelineStage:
    stage = _stage_or_404(db, stage_id, user_id)
    if "name" in fields and fields["name"] != stage.name:
        _ensure_name_available(db, user_id, fields["name"], exclude_id=stage.id)
    before = record_store.stage_state(stage)
    record_store.update_pipeline_stage(db, stage, fields)
    log_audit(
        db,
        actor_user_id=user_id,
        action="pipeline_stage.update",
        entity_type="pipeline_stage",
        entity_id=str(stage.id),
        before_state=before,
        after_state=record_store.stage_state(stage),
    )
    return stage


def delete_stage(db: Session, stage_id: int, user_id: int) -> None:
    stage = _stage_or_404(db, stage_id, user_id)
    before = record_store.stage_state(stage)
    record_store.delete_pipeline_stage(db, stage)
    log_audit(
        db,
        actor_user_id=user_id,
        action="pipeline_stage.delete",
        entity_type="pipeline_stage",
        entity_id=str(stage_id),
        before_state=before,
    )


def initialize_default_stages(db: Session, user_id: int) -> list[PipelineStage]:
    """Create the default stage set for a user that has none.

    Safe to call repeatedly. A concurrent first-use call that loses the race
    hits the (user_id, name) unique constraint; its savepoint is rolled back
    and the winner's stages are returned.
    """
    existing = record_store.find_pipeline_stages(db, user_id)
    if existing:
        return existing

    try:
        with db.begin_nested():
            for defaults in DEFAULT_STAGES:
                record_store.create_pipeline_stage(db, user_id, **defaults)
    except IntegrityError:
        logger.warning("Default pipeline stages for user %s already provisioned concurrently.", user_id)
        return record_store.find_pipeline_stages(db, user_id)

    log_audit(
        db,
        actor_user_id=user_id,
        action="pipeline_stage.initialize",
        entity_type="pipeline_stage",
        entity_id="defaults",
        after_state={"stages": [row["name"] for row in DEFAULT_STAGES]},
    )
    logger.info("Provisioned %d default pipeline stages for user %s.", len(DEFAULT_STAGES), user_id)
    return record_store.find_pipeline_stages(db, user_id)


def match_stage(record: ProposalRecord, stages: Sequence[StageLike]) -> StageLike | None:
    if record.pipeline_stage_id is not None:
        for stage in stages:
            if stage.id == record.pipeline_stage_id:
                return stage
    mapped_name = STATUS_STAGE_NAMES.get(record.status)
    if mapped_name is None:
        return None
    for stage in stages:
        if stage.name == mapped_name:
            return stage
    return None


def summarize_pipeline(stages: Sequence[StageLike], records: Sequence[ProposalRecord]) -> PipelinePayload:
    members: dict[int, list[ProposalRecord]] = {stage.id: [] for stage in stages}
    for record in records:
        stage = match_stage(record, stages)
        if stage is not None:
            members[stage.id].append(record)

    summaries: list[StageSummary] = []
    for stage in stages:
        matched = members[stage.id]
        total = sum((proposal_value(record) for record in matched), Decimal("0"))
        summaries.append(
            StageSummary(
                id=stage.id,
                name=stage.name,
                order=stage.order,
                probability=stage.probability,
                color=stage.color,
                proposal_count=len(matched),
                total_value=total,
                weighted_value=total * Decimal(stage.probability) / Decimal("100"),
            )
        )

    return PipelinePayload(
        stages=summaries,
        total_pipeline=sum((row.total_value for row in summaries), Decimal("0")),
        weighted_pipeline=sum((row.weighted_value for row in summaries), Decimal("0")),
    )


def get_pipeline_data(db: Session, user_id: int) -> PipelinePayload:
    stages = record_store.find_pipeline_stages(db, user_id)
    if not stages:
        stages = initialize_default_stages(db, user_id)

    records = record_store.find_proposals(db, ProposalFilter.for_user(user_id, statuses=OPEN_STATUSES))
    return summarize_pipeline(stages, records)
