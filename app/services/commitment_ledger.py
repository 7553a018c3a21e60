"""
Commitment Ledger - volunteer pledges against prayer requests and their progress.

This is the one real state machine in the tracker:

    Pending (accumulated < target) ──record_progress──▶ Completed (accumulated >= target)

The completed flag is always derived from the hours, never set on its own.
Progress is applied with a single storage-side UPDATE so concurrent sessions
cannot lose each other's hours.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.audit import AuditEventType
from app.models.domain import PrayerCommitment, PrayerRequest
from app.models.enums import CommitmentState, RequestStatus
from app.services.audit import record_event
from app.services.authorization import Actor, Permission, require
from app.services.errors import (
    AlreadyCommitted,
    Forbidden,
    InvalidDuration,
    InvalidInput,
    NotFound,
    RequestNotActive,
    StorageError,
)

logger = logging.getLogger(__name__)


def state_of(commitment: PrayerCommitment) -> CommitmentState:
    if commitment.accumulated_hours >= commitment.target_hours:
        return CommitmentState.COMPLETED
    return CommitmentState.PENDING


def _is_positive_hours(value) -> bool:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


class CommitmentLedger:
    """Creates commitments and keeps their hours and completion in step."""

    def __init__(self, db: Session, default_target_hours: Optional[float] = None):
        self.db = db
        self.default_target_hours = (
            settings.DEFAULT_TARGET_HOURS if default_target_hours is None else default_target_hours
        )

    def get(self, commitment_id: int) -> PrayerCommitment:
        commitment = self.db.query(PrayerCommitment).filter(
            PrayerCommitment.id == commitment_id
        ).first()
        if not commitment:
            raise NotFound("Commitment", commitment_id)
        return commitment

    def commit(
        self,
        actor: Actor,
        request_id: int,
        target_hours: Optional[float] = None
    ) -> PrayerCommitment:
        """
        Pledge the actor to pray for an active request.

        Refusals (both audited before raising):
        - RequestNotActive: the request has been answered
        - AlreadyCommitted: the actor already holds a commitment for it
        """
        require(actor, Permission.COMMIT)

        target_hours = self.default_target_hours if target_hours is None else target_hours
        if not _is_positive_hours(target_hours):
            raise InvalidInput("Target hours must be a positive number", field="target_hours")

        request = self.db.query(PrayerRequest).filter(PrayerRequest.id == request_id).first()
        if not request:
            raise NotFound("Prayer request", request_id)

        # Check for existing commitment FIRST (more specific refusal)
        existing = self.db.query(PrayerCommitment).filter(
            PrayerCommitment.request_id == request.id,
            PrayerCommitment.volunteer_id == actor.user_id
        ).first()
        if existing:
            self._refuse(
                AuditEventType.COMMITMENT_REFUSED_ALREADY_COMMITTED,
                request,
                actor,
                {"existing_commitment_id": existing.id}
            )
            raise AlreadyCommitted(request.id, actor.user_id)

        if request.status != RequestStatus.ACTIVE:
            self._refuse(
                AuditEventType.COMMITMENT_REFUSED_NOT_ACTIVE,
                request,
                actor,
                {"status": request.status.value}
            )
            raise RequestNotActive(request.id, request.status.value)

        # Counted from the day the volunteer commits; zero days means no deadline
        deadline = None
        if request.timeline_days:
            deadline = datetime.utcnow().date() + timedelta(days=request.timeline_days)

        commitment = PrayerCommitment(
            request_id=request.id,
            volunteer_id=actor.user_id,
            target_hours=target_hours,
            accumulated_hours=0.0,
            deadline=deadline,
            completed=False
        )
        try:
            self.db.add(commitment)
            self.db.flush()
            record_event(
                self.db,
                AuditEventType.COMMITMENT_CREATED,
                "PrayerCommitment",
                commitment.id,
                user_id=actor.user_id,
                payload={
                    "request_id": request.id,
                    "target_hours": target_hours,
                    "deadline": deadline.isoformat() if deadline else None,
                }
            )
            self.db.commit()
        except IntegrityError:
            # Lost a race against the same volunteer's other commit
            self.db.rollback()
            self._refuse(
                AuditEventType.COMMITMENT_REFUSED_ALREADY_COMMITTED,
                request,
                actor,
                {"existing_commitment_id": None}
            )
            raise AlreadyCommitted(request_id, actor.user_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("commit") from e

        self.db.refresh(commitment)
        logger.info(
            "Volunteer %s committed to request %s (%.2fh target)",
            actor.user_id, request.id, target_hours,
            extra={
                "event_type": AuditEventType.COMMITMENT_CREATED,
                "request_id": request.id,
                "commitment_id": commitment.id,
            }
        )
        return commitment

    def apply_progress(self, commitment_id: int, delta_hours: float) -> Tuple[float, bool, bool]:
        """
        Add hours inside the caller's transaction; does not commit.

        Accumulated hours and the completed flag are written by one UPDATE,
        computed from the stored row, so no reader sees one without the other.
        Returns (accumulated_hours, completed, crossed_target).
        """
        if isinstance(delta_hours, bool) or not delta_hours > 0:
            raise InvalidDuration("Progress must be a positive number of hours")

        new_total = PrayerCommitment.accumulated_hours + delta_hours
        matched = self.db.query(PrayerCommitment).filter(
            PrayerCommitment.id == commitment_id
        ).update(
            {
                PrayerCommitment.accumulated_hours: new_total,
                PrayerCommitment.completed: new_total >= PrayerCommitment.target_hours,
            },
            synchronize_session=False
        )
        if not matched:
            raise NotFound("Commitment", commitment_id)

        # Our UPDATE holds the row, so this reads exactly what it wrote
        accumulated, completed, target = self.db.query(
            PrayerCommitment.accumulated_hours,
            PrayerCommitment.completed,
            PrayerCommitment.target_hours
        ).filter(PrayerCommitment.id == commitment_id).one()
        crossed = bool(completed) and (accumulated - delta_hours) < target
        return accumulated, bool(completed), crossed

    def record_progress(self, actor: Actor, commitment_id: int, delta_hours: float) -> PrayerCommitment:
        """Add hours to a commitment and commit. Holder or leader only."""
        require(actor, Permission.LOG_SESSION)
        commitment = self.get(commitment_id)
        if commitment.volunteer_id != actor.user_id and not actor.can(Permission.MANAGE_COMMITMENTS):
            raise Forbidden(f"Commitment {commitment_id} belongs to another volunteer")

        try:
            accumulated, completed, crossed = self.apply_progress(commitment_id, delta_hours)
            if crossed:
                record_event(
                    self.db,
                    AuditEventType.COMMITMENT_COMPLETED,
                    "PrayerCommitment",
                    commitment_id,
                    user_id=actor.user_id,
                    payload={"accumulated_hours": accumulated}
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("record_progress") from e
        except (NotFound, InvalidDuration):
            self.db.rollback()
            raise

        commitment = self.get(commitment_id)
        self.db.refresh(commitment)
        return commitment

    def reassign(
        self,
        actor: Actor,
        commitment_id: int,
        new_volunteer_id: str,
        reset_progress: Optional[bool] = None
    ) -> PrayerCommitment:
        """
        Hand a commitment to another volunteer.

        Progress carries over unless reset_progress (or the
        REASSIGN_RESETS_PROGRESS setting) says otherwise.
        """
        require(actor, Permission.MANAGE_COMMITMENTS)
        new_volunteer_id = (new_volunteer_id or "").strip()
        if not new_volunteer_id:
            raise InvalidInput("New volunteer is required", field="volunteer_id")
        if reset_progress is None:
            reset_progress = settings.REASSIGN_RESETS_PROGRESS

        commitment = self.get(commitment_id)
        previous_volunteer = commitment.volunteer_id
        if new_volunteer_id == previous_volunteer and not reset_progress:
            return commitment

        if new_volunteer_id != previous_volunteer:
            clash = self.db.query(PrayerCommitment).filter(
                PrayerCommitment.request_id == commitment.request_id,
                PrayerCommitment.volunteer_id == new_volunteer_id
            ).first()
            if clash:
                raise AlreadyCommitted(commitment.request_id, new_volunteer_id)

        commitment.volunteer_id = new_volunteer_id
        if reset_progress:
            commitment.accumulated_hours = 0.0
            commitment.recompute_completed()

        try:
            record_event(
                self.db,
                AuditEventType.COMMITMENT_REASSIGNED,
                "PrayerCommitment",
                commitment.id,
                user_id=actor.user_id,
                payload={
                    "from_volunteer_id": previous_volunteer,
                    "to_volunteer_id": new_volunteer_id,
                    "progress_reset": reset_progress,
                }
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AlreadyCommitted(commitment.request_id, new_volunteer_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("reassign") from e

        self.db.refresh(commitment)
        logger.info(
            "Commitment %s reassigned %s -> %s by %s",
            commitment.id, previous_volunteer, new_volunteer_id, actor.user_id,
            extra={"event_type": AuditEventType.COMMITMENT_REASSIGNED, "commitment_id": commitment.id}
        )
        return commitment

    def update_target(self, actor: Actor, commitment_id: int, target_hours: float) -> PrayerCommitment:
        """Change the target and re-derive completion in either direction."""
        require(actor, Permission.MANAGE_COMMITMENTS)
        if not _is_positive_hours(target_hours):
            raise InvalidInput("Target hours must be a positive number", field="target_hours")

        commitment = self.get(commitment_id)
        previous_target = commitment.target_hours
        commitment.target_hours = target_hours
        commitment.recompute_completed()
        try:
            record_event(
                self.db,
                AuditEventType.COMMITMENT_TARGET_CHANGED,
                "PrayerCommitment",
                commitment.id,
                user_id=actor.user_id,
                payload={
                    "from_target_hours": previous_target,
                    "to_target_hours": target_hours,
                    "completed": commitment.completed,
                }
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("update_target") from e

        self.db.refresh(commitment)
        return commitment

    def list_for_volunteer(self, volunteer_id: str, include_completed: bool = False) -> List[PrayerCommitment]:
        """Soonest deadline first; commitments without a deadline go last."""
        query = self.db.query(PrayerCommitment).filter(PrayerCommitment.volunteer_id == volunteer_id)
        if not include_completed:
            query = query.filter(PrayerCommitment.completed.is_(False))
        return query.order_by(
            PrayerCommitment.deadline.is_(None),
            PrayerCommitment.deadline.asc(),
            PrayerCommitment.created_at.asc(),
            PrayerCommitment.id.asc()
        ).all()

    def list_for_request(self, request_id: int) -> List[PrayerCommitment]:
        return self.db.query(PrayerCommitment).filter(
            PrayerCommitment.request_id == request_id
        ).order_by(PrayerCommitment.created_at.asc(), PrayerCommitment.id.asc()).all()

    def _refuse(self, event_type: str, request: PrayerRequest, actor: Actor, payload: dict) -> None:
        """Write the refusal to the audit trail; refusal must not be silent."""
        try:
            record_event(
                self.db,
                event_type,
                "PrayerRequest",
                request.id,
                user_id=actor.user_id,
                payload={"request_id": request.id, "attempted_by_user_id": actor.user_id, **payload}
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("commit") from e
        logger.warning(
            "Commitment refused (%s) for volunteer %s on request %s",
            event_type, actor.user_id, request.id,
            extra={"event_type": event_type, "request_id": request.id, "volunteer_id": actor.user_id}
        )
