"""
Session Log - append-only prayer sessions that drive commitment progress.

Appending a session and crediting its hours to the commitment happen in one
transaction: either both land or neither does.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.audit import AuditEventType
from app.models.domain import PrayerLog
from app.services.audit import record_event
from app.services.authorization import Actor, Permission, require
from app.services.commitment_ledger import CommitmentLedger
from app.services.errors import Forbidden, InvalidDuration, NotFound, StorageError

logger = logging.getLogger(__name__)

# Durations offered as one-tap choices; any other positive value is accepted
SESSION_PRESETS = (15, 30, 45, 60)


class SessionLog:
    def __init__(self, db: Session, ledger: Optional[CommitmentLedger] = None):
        self.db = db
        self.ledger = ledger or CommitmentLedger(db)

    def append(
        self,
        actor: Actor,
        commitment_id: int,
        duration_minutes: int,
        note: Optional[str] = None
    ) -> PrayerLog:
        """
        Record one prayer session and credit duration_minutes / 60 hours.

        Only the commitment's current volunteer (or a leader) may log against it.
        """
        require(actor, Permission.LOG_SESSION)
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
            raise InvalidDuration("Duration must be a positive whole number of minutes")

        commitment = self.ledger.get(commitment_id)
        if commitment.volunteer_id != actor.user_id and not actor.can(Permission.MANAGE_COMMITMENTS):
            raise Forbidden(f"Commitment {commitment_id} belongs to another volunteer")

        note = (note or "").strip() or None
        entry = PrayerLog(
            commitment_id=commitment.id,
            volunteer_id=actor.user_id,
            request_id=commitment.request_id,
            duration_minutes=duration_minutes,
            note=note
        )
        try:
            self.db.add(entry)
            self.db.flush()
            accumulated, completed, crossed = self.ledger.apply_progress(
                commitment.id, duration_minutes / 60
            )
            record_event(
                self.db,
                AuditEventType.SESSION_LOGGED,
                "PrayerLog",
                entry.id,
                user_id=actor.user_id,
                payload={
                    "commitment_id": commitment.id,
                    "request_id": commitment.request_id,
                    "duration_minutes": duration_minutes,
                    "accumulated_hours": accumulated,
                }
            )
            if crossed:
                record_event(
                    self.db,
                    AuditEventType.COMMITMENT_COMPLETED,
                    "PrayerCommitment",
                    commitment.id,
                    user_id=actor.user_id,
                    payload={"accumulated_hours": accumulated}
                )
            self.db.commit()
        except NotFound:
            # Commitment vanished between the read and the update
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Session append failed for commitment %s", commitment_id,
                extra={"operation": "append_session", "commitment_id": commitment_id}
            )
            raise StorageError("append_session") from e

        self.db.refresh(entry)
        logger.info(
            "Volunteer %s logged %d min on commitment %s (%.2fh total%s)",
            actor.user_id, duration_minutes, commitment_id, accumulated,
            ", completed" if crossed else "",
            extra={"event_type": AuditEventType.SESSION_LOGGED, "commitment_id": commitment_id}
        )
        return entry

    def list_for_request(self, request_id: int) -> List[PrayerLog]:
        return self.db.query(PrayerLog).filter(
            PrayerLog.request_id == request_id
        ).order_by(PrayerLog.created_at.asc(), PrayerLog.id.asc()).all()

    def list_for_commitment(self, commitment_id: int) -> List[PrayerLog]:
        return self.db.query(PrayerLog).filter(
            PrayerLog.commitment_id == commitment_id
        ).order_by(PrayerLog.created_at.asc(), PrayerLog.id.asc()).all()
