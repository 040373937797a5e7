from datetime import datetime

from salespipe.schemas.common import CamelModel


class AuditLogOut(CamelModel):
    id: int
    actor_user_id: int
    action: str
    entity_type: str
    entity_id: str
    before_state: dict | None
    after_state: dict | None
    created_at: datetime
