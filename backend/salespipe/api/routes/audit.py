from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from salespipe.api.deps import get_current_user, get_db
from salespipe.models.user import User
from salespipe.schemas.audit import AuditLogOut
from salespipe.services.audit import list_audit_logs


router = APIRouter(tags=["audit"])


@router.get("/forecasting/audit", response_model=list[AuditLogOut])
def list_stage_audit_log(
    limit: int = 200,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[AuditLogOut]:
    rows = list_audit_logs(db, current_user.id, limit=limit)
    return [AuditLogOut.model_validate(row) for row in rows]
