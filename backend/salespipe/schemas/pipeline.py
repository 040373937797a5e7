from datetime import datetime

from pydantic import Field

from salespipe.schemas.common import CamelModel, Money


HEX_COLOR = r"^#[0-9a-fA-F]{6}$"


class PipelineStageCreateRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    order: int = Field(ge=0)
    probability: int = Field(ge=0, le=100)
    color: str | None = Field(default=None, pattern=HEX_COLOR)


class PipelineStageUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    order: int | None = Field(default=None, ge=0)
    probability: int | None = Field(default=None, ge=0, le=100)
    color: str | None = Field(default=None, pattern=HEX_COLOR)


class PipelineStageOut(CamelModel):
    id: int
    user_id: int
    name: str
    order: int
    probability: int
    color: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PipelineStageSummaryOut(CamelModel):
    id: int
    name: str
    order: int
    probability: int
    color: str
    proposal_count: int
    total_value: Money
    weighted_value: Money


class PipelineResponse(CamelModel):
    stages: list[PipelineStageSummaryOut]
    total_pipeline: Money
    weighted_pipeline: Money
