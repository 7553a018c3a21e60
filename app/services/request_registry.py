"""
Request Registry - owns prayer request lifecycle and visibility.

Lifecycle: submitted as Active → marked Answered by a leader (terminal),
or hard-deleted by a leader together with everything hanging off it.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.audit import AuditEventType
from app.models.domain import PrayerCommitment, PrayerLog, PrayerRequest
from app.models.enums import PrayerCategory, PrivacyLevel, RequestStatus
from app.services.audit import record_event
from app.services.authorization import Actor, Permission, require
from app.services.errors import InvalidInput, NotFound, StorageError

logger = logging.getLogger(__name__)


class RequestRegistry:
    """Submit, list, answer and delete prayer requests."""

    def __init__(self, db: Session, timeline_extractor=None):
        self.db = db
        # Anything with extract_timeline(text) -> TimelineResult
        self.timeline_extractor = timeline_extractor

    def submit(
        self,
        title: str,
        description: str,
        category,
        privacy,
        contact: Optional[dict] = None,
        timeline_text: Optional[str] = None,
        submitted_by: Optional[str] = None
    ) -> PrayerRequest:
        """
        Create an Active request.

        Timeline resolution is best effort: any failure leaves timeline_days
        empty and the request is still created.
        """
        title = (title or "").strip()
        description = (description or "").strip()
        if not title:
            raise InvalidInput("Title is required", field="title")
        if not description:
            raise InvalidInput("Description is required", field="description")

        try:
            category = PrayerCategory(category)
        except ValueError:
            raise InvalidInput(f"Unknown category: {category}", field="category")
        try:
            privacy = PrivacyLevel(privacy)
        except ValueError:
            raise InvalidInput(f"Unknown privacy level: {privacy}", field="privacy_level")

        contact = contact or {}
        timeline_text = (timeline_text or "").strip() or None

        timeline_days = None
        if timeline_text and self.timeline_extractor is not None:
            try:
                timeline_days = self.timeline_extractor.extract_timeline(timeline_text).days
            except Exception as e:
                logger.warning(
                    "Timeline extraction failed, submitting without a deadline: %s", e,
                    extra={"operation": "extract_timeline"}
                )
                timeline_days = None

        request = PrayerRequest(
            title=title,
            description=description,
            category=category.value,
            privacy_level=privacy,
            requester_name=contact.get("name") or None,
            requester_phone=contact.get("phone") or None,
            requester_email=contact.get("email") or None,
            timeline_text=timeline_text,
            timeline_days=timeline_days,
            status=RequestStatus.ACTIVE
        )
        try:
            self.db.add(request)
            self.db.flush()
            record_event(
                self.db,
                AuditEventType.REQUEST_SUBMITTED,
                "PrayerRequest",
                request.id,
                user_id=submitted_by,
                payload={
                    "category": category.value,
                    "privacy_level": privacy.value,
                    "timeline_days": timeline_days,
                }
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("submit_request") from e

        self.db.refresh(request)
        logger.info(
            "Prayer request %s submitted (%s, %s)", request.id, category.value, privacy.value,
            extra={"event_type": AuditEventType.REQUEST_SUBMITTED, "request_id": request.id}
        )
        return request

    def get(self, request_id: int) -> PrayerRequest:
        request = self.db.query(PrayerRequest).filter(PrayerRequest.id == request_id).first()
        if not request:
            raise NotFound("Prayer request", request_id)
        return request

    def list_active(self) -> List[PrayerRequest]:
        return self.list_by_status(RequestStatus.ACTIVE)

    def list_by_status(self, status: Optional[RequestStatus] = None) -> List[PrayerRequest]:
        """Newest first. ``None`` lists every request."""
        query = self.db.query(PrayerRequest)
        if status is not None:
            query = query.filter(PrayerRequest.status == RequestStatus(status))
        return query.order_by(PrayerRequest.created_at.desc(), PrayerRequest.id.desc()).all()

    def list_available(self, volunteer_id: str) -> List[PrayerRequest]:
        """Active requests the volunteer has not committed to yet."""
        committed = select(PrayerCommitment.request_id).where(
            PrayerCommitment.volunteer_id == volunteer_id
        )
        return self.db.query(PrayerRequest).filter(
            PrayerRequest.status == RequestStatus.ACTIVE,
            PrayerRequest.id.not_in(committed)
        ).order_by(PrayerRequest.created_at.desc(), PrayerRequest.id.desc()).all()

    def mark_answered(self, actor: Actor, request_id: int) -> PrayerRequest:
        """
        Active → Answered. Calling it again is a no-op; answered_at keeps the
        time of the first call.
        """
        require(actor, Permission.MANAGE_REQUESTS)
        request = self.get(request_id)

        if request.status == RequestStatus.ANSWERED:
            return request

        now = datetime.utcnow()
        request.status = RequestStatus.ANSWERED
        request.answered_at = now
        try:
            record_event(
                self.db,
                AuditEventType.REQUEST_ANSWERED,
                "PrayerRequest",
                request.id,
                user_id=actor.user_id,
                payload={"answered_at": now.isoformat()}
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("mark_answered") from e

        self.db.refresh(request)
        logger.info(
            "Prayer request %s marked answered by %s", request.id, actor.user_id,
            extra={"event_type": AuditEventType.REQUEST_ANSWERED, "request_id": request.id}
        )
        return request

    def delete(self, actor: Actor, request_id: int) -> dict:
        """
        Hard delete with explicit cascade: logs, then commitments, then the
        request, all in one transaction. Returns the removed counts.
        """
        require(actor, Permission.MANAGE_REQUESTS)
        request = self.get(request_id)

        try:
            logs_removed = self.db.query(PrayerLog).filter(
                PrayerLog.request_id == request.id
            ).delete(synchronize_session="fetch")
            commitments_removed = self.db.query(PrayerCommitment).filter(
                PrayerCommitment.request_id == request.id
            ).delete(synchronize_session="fetch")
            self.db.query(PrayerRequest).filter(
                PrayerRequest.id == request.id
            ).delete(synchronize_session="fetch")

            record_event(
                self.db,
                AuditEventType.REQUEST_DELETED,
                "PrayerRequest",
                request_id,
                user_id=actor.user_id,
                payload={
                    "commitments_removed": commitments_removed,
                    "logs_removed": logs_removed,
                }
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("delete_request") from e

        logger.info(
            "Prayer request %s deleted by %s (%d commitments, %d logs)",
            request_id, actor.user_id, commitments_removed, logs_removed,
            extra={"event_type": AuditEventType.REQUEST_DELETED, "request_id": request_id}
        )
        return {"commitments_removed": commitments_removed, "logs_removed": logs_removed}
