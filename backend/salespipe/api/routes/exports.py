import csv
import io
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from sqlalchemy.orm import Session

from salespipe.api.deps import get_current_user, get_db
from salespipe.models.user import User
from salespipe.services.forecast import generate_forecast
from salespipe.utils.decimal_math import money


router = APIRouter(prefix="/forecasting/exports", tags=["exports"])

TREND_HEADERS = ["period", "revenue", "deals", "avg_deal_size"]


def _trend_rows(db: Session, user_id: int) -> list[dict]:
    payload = generate_forecast(db, user_id)
    return [
        {
            "period": point.period,
            "revenue": money(point.revenue),
            "deals": point.deals,
            "avg_deal_size": money(point.avg_deal_size),
        }
        for point in payload.trends
    ]


def _filename(user_id: int, extension: str) -> str:
    return f"revenue-trends-{user_id}-{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}.{extension}"


@router.get("/trends.csv")
def export_trends_csv(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = _trend_rows(db, current_user.id)
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=TREND_HEADERS)
    writer.writeheader()
    writer.writerows(rows)
    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{_filename(current_user.id, "csv")}"'},
    )


@router.get("/trends.xlsx")
def export_trends_excel(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = _trend_rows(db, current_user.id)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "RevenueTrends"
    sheet.append(TREND_HEADERS)
    for row in rows:
        sheet.append([row[key] for key in TREND_HEADERS])

    stream = io.BytesIO()
    workbook.save(stream)
    stream.seek(0)
    return StreamingResponse(
        stream,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{_filename(current_user.id, "xlsx")}"'},
    )
