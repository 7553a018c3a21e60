"""Helper for writing audit rows inside the caller's transaction."""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.audit import AuditEvent


def record_event(
    db: Session,
    event_type: str,
    entity_type: str,
    entity_id,
    user_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None
) -> AuditEvent:
    """Add an audit event to the session. The caller commits."""
    event = AuditEvent(
        event_type=event_type,
        entity_type=entity_type,
        entity_id=str(entity_id),
        user_id=user_id,
        payload_json=payload or {}
    )
    db.add(event)
    return event
