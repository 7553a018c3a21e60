"""Read-only prayer aggregates for the leader dashboard."""
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.domain import PrayerCommitment, PrayerLog, PrayerRequest
from app.models.enums import RequestStatus


class PrayerDashboard:
    def __init__(self, db: Session):
        self.db = db

    def prayer_stats(self) -> dict:
        total_requests = self.db.query(func.count(PrayerRequest.id)).scalar() or 0
        answered = self.db.query(func.count(PrayerRequest.id)).filter(
            PrayerRequest.status == RequestStatus.ANSWERED
        ).scalar() or 0
        total_minutes = self.db.query(func.coalesce(func.sum(PrayerLog.duration_minutes), 0)).scalar()
        active_warriors = self.db.query(
            func.count(func.distinct(PrayerCommitment.volunteer_id))
        ).scalar() or 0

        return {
            "total_requests": total_requests,
            "total_hours": (total_minutes or 0) / 60,
            "active_warriors": active_warriors,
            "answered_requests": answered,
        }

    def request_summaries(self, status: Optional[RequestStatus] = None) -> List[dict]:
        """Each request with the hours logged against it and how many warriors hold it."""
        minutes = self.db.query(
            PrayerLog.request_id.label("request_id"),
            func.sum(PrayerLog.duration_minutes).label("minutes")
        ).group_by(PrayerLog.request_id).subquery()
        warriors = self.db.query(
            PrayerCommitment.request_id.label("request_id"),
            func.count(PrayerCommitment.id).label("warriors")
        ).group_by(PrayerCommitment.request_id).subquery()

        query = self.db.query(
            PrayerRequest,
            func.coalesce(minutes.c.minutes, 0),
            func.coalesce(warriors.c.warriors, 0)
        ).outerjoin(
            minutes, minutes.c.request_id == PrayerRequest.id
        ).outerjoin(
            warriors, warriors.c.request_id == PrayerRequest.id
        )
        if status is not None:
            query = query.filter(PrayerRequest.status == RequestStatus(status))

        rows = query.order_by(PrayerRequest.created_at.desc(), PrayerRequest.id.desc()).all()
        return [
            {
                "request": request,
                "total_hours": (request_minutes or 0) / 60,
                "warriors_count": warriors_count or 0,
            }
            for request, request_minutes, warriors_count in rows
        ]
