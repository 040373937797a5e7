from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from salespipe.api.deps import get_current_user, get_db
from salespipe.models.pipeline import PipelineStage
from salespipe.models.user import User
from salespipe.schemas.common import MessageResponse
from salespipe.schemas.pipeline import (
    PipelineResponse,
    PipelineStageCreateRequest,
    PipelineStageOut,
    PipelineStageUpdateRequest,
)
from salespipe.services.pipeline import (
    create_stage,
    delete_stage,
    get_pipeline_data,
    initialize_default_stages,
    list_pipeline_stages,
    update_stage,
)


router = APIRouter(prefix="/forecasting/pipeline", tags=["pipeline"])


@router.get("/stages", response_model=list[PipelineStageOut])
def get_pipeline_stages(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[PipelineStage]:
    return list_pipeline_stages(db, current_user.id)


@router.post("/stages", response_model=PipelineStageOut, status_code=status.HTTP_201_CREATED)
def create_pipeline_stage(
    payload: PipelineStageCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PipelineStage:
    stage = create_stage(
        db,
        current_user.id,
        name=payload.name,
        order=payload.order,
        probability=payload.probability,
        color=payload.color,
    )
    db.commit()
    db.refresh(stage)
    return stage


@router.post("/stages/initialize", response_model=list[PipelineStageOut])
def initialize_pipeline_stages(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[PipelineStage]:
    stages = initialize_default_stages(db, current_user.id)
    db.commit()
    return stages


@router.put("/stages/{stage_id}", response_model=PipelineStageOut)
def update_pipeline_stage(
    stage_id: int,
    payload: PipelineStageUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PipelineStage:
    stage = update_stage(
        db,
        stage_id,
        current_user.id,
        payload.model_dump(exclude_unset=True, exclude_none=True),
    )
    db.commit()
    db.refresh(stage)
    return stage


@router.delete("/stages/{stage_id}", response_model=MessageResponse)
def delete_pipeline_stage(
    stage_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    delete_stage(db, stage_id, current_user.id)
    db.commit()
    return MessageResponse(message="Pipeline stage deleted.")


@router.get("", response_model=PipelineResponse)
def get_pipeline(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PipelineResponse:
    payload = get_pipeline_data(db, current_user.id)
    # first read may have provisioned default stages
    db.commit()
    return PipelineResponse.model_validate(payload)
