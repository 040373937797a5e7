from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from salespipe.models.audit import AuditLog


def log_audit(
    db: Session,
    *,
    actor_user_id: int,
    action: str,
    entity_type: str,
    entity_id: str,
    before_state: dict | None = None,
    after_state: dict | None = None,
) -> AuditLog:
    log = AuditLog(
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        before_state=before_state,
        after_state=after_state,
    )
    db.add(log)
    return log


def list_audit_logs(db: Session, actor_user_id: int, *, limit: int = 200) -> list[AuditLog]:
    query = (
        select(AuditLog)
        .where(AuditLog.actor_user_id == actor_user_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(max(1, min(limit, 500)))
    )
    return list(db.scalars(query).all())
