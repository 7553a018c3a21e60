"""
Internal audit logging model - NOT a user-facing domain object.

Provides an append-only trail for lifecycle actions and refusals.
Rows carry no foreign keys, so they outlive deleted requests.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON
from app.database import Base


class AuditEvent(Base):
    """
    Immutable audit event.

    Invariants:
    - Once written, never edited or deleted
    - Written in the same transaction as the action it records
    """
    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    event_type = Column(String, nullable=False, index=True)  # e.g., "commitment_refused_already_committed"
    entity_type = Column(String, nullable=False)  # e.g., "PrayerRequest", "PrayerCommitment"
    entity_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=True)  # Nullable for anonymous submissions
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    payload_json = Column(JSON, nullable=True)


class AuditEventType:
    """Enumeration of audit event types."""
    # Request lifecycle
    REQUEST_SUBMITTED = "request_submitted"
    REQUEST_ANSWERED = "request_answered"
    REQUEST_DELETED = "request_deleted"

    # Commitment lifecycle
    COMMITMENT_CREATED = "commitment_created"
    COMMITMENT_REASSIGNED = "commitment_reassigned"
    COMMITMENT_TARGET_CHANGED = "commitment_target_changed"
    COMMITMENT_COMPLETED = "commitment_completed"

    # Refusal events
    COMMITMENT_REFUSED_ALREADY_COMMITTED = "commitment_refused_already_committed"
    COMMITMENT_REFUSED_NOT_ACTIVE = "commitment_refused_not_active"

    # Session log
    SESSION_LOGGED = "session_logged"
