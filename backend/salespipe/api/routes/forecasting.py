import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from salespipe.api.deps import get_current_user, get_db
from salespipe.models.user import User
from salespipe.schemas.forecasting import ForecastResponse, TeamPerformanceResponse, WinRateResponse
from salespipe.services.forecast import generate_forecast
from salespipe.services.team_performance import team_performance
from salespipe.services.win_rate import analyze_win_rate


router = APIRouter(prefix="/forecasting", tags=["forecasting"])
logger = logging.getLogger("salespipe.api")


@router.get("/forecast", response_model=ForecastResponse)
def get_forecast(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ForecastResponse:
    return ForecastResponse.model_validate(generate_forecast(db, current_user.id))


@router.get("/win-rate", response_model=WinRateResponse)
def get_win_rate_analysis(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> WinRateResponse:
    return WinRateResponse.model_validate(analyze_win_rate(db, current_user.id))


@router.get("/team-performance", response_model=TeamPerformanceResponse)
def get_team_performance(
    team_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TeamPerformanceResponse:
    if team_id is not None:
        logger.debug("Team scoping not available yet; ignoring team_id=%s", team_id)
    return TeamPerformanceResponse.model_validate(team_performance(db, current_user.id))
