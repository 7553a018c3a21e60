"""Domain models - prayer requests, the commitments made against them, and the prayer log."""
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates

from app.database import Base
from app.models.enums import CommitmentState, PrivacyLevel, RequestStatus


class PrayerRequest(Base):
    """
    A submitted prayer need. Root of the ownership tree.

    Invariants enforced here:
    - Anonymous requests never hold a requester name
    - Status only moves Active → Answered
    """
    __tablename__ = "prayer_requests"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(64), nullable=False)
    privacy_level = Column(SQLEnum(PrivacyLevel), nullable=False, default=PrivacyLevel.PUBLIC)

    # Contact details (name suppressed when anonymous)
    requester_name = Column(String, nullable=True)
    requester_phone = Column(String, nullable=True)
    requester_email = Column(String, nullable=True)

    # Free text as typed, plus the resolved day offset from submission
    timeline_text = Column(String, nullable=True)
    timeline_days = Column(Integer, nullable=True)

    status = Column(SQLEnum(RequestStatus), nullable=False, default=RequestStatus.ACTIVE, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    answered_at = Column(DateTime, nullable=True)

    commitments = relationship("PrayerCommitment", back_populates="request", order_by="PrayerCommitment.created_at")
    logs = relationship("PrayerLog", back_populates="request", order_by="PrayerLog.created_at")

    @validates("requester_name")
    def _validate_requester_name(self, key, value):
        if self.privacy_level == PrivacyLevel.ANONYMOUS:
            return None
        return value

    @validates("privacy_level")
    def _validate_privacy_level(self, key, value):
        if value == PrivacyLevel.ANONYMOUS:
            self.requester_name = None
        return value

    @validates("status")
    def _validate_status(self, key, value):
        if self.status == RequestStatus.ANSWERED and value != RequestStatus.ANSWERED:
            raise ValueError("An answered prayer request cannot be re-activated")
        return value


class PrayerCommitment(Base):
    """
    A volunteer's pledge to pray a number of hours for one request.

    Invariants:
    - completed == (accumulated_hours >= target_hours) after every write
    - At most one commitment per (request, volunteer)
    - Reassignment changes volunteer_id only, unless progress reset is requested
    """
    __tablename__ = "prayer_commitments"
    __table_args__ = (
        UniqueConstraint("request_id", "volunteer_id", name="uq_commitment_request_volunteer"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    request_id = Column(Integer, ForeignKey("prayer_requests.id"), nullable=False, index=True)
    volunteer_id = Column(String, nullable=False, index=True)

    target_hours = Column(Float, nullable=False, default=4.0)
    accumulated_hours = Column(Float, nullable=False, default=0.0)
    deadline = Column(Date, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    request = relationship("PrayerRequest", back_populates="commitments")
    logs = relationship("PrayerLog", back_populates="commitment", order_by="PrayerLog.created_at")

    @property
    def state(self) -> CommitmentState:
        return CommitmentState.COMPLETED if self.completed else CommitmentState.PENDING

    def recompute_completed(self) -> bool:
        """Derive the completed flag from hours. Total: can flip either way."""
        self.completed = self.accumulated_hours >= self.target_hours
        return self.completed


class PrayerLog(Base):
    """
    One logged prayer session. Append-only evidence for a commitment's hours.

    request_id is denormalized so dashboards can total hours per request
    without a join.
    """
    __tablename__ = "prayer_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    commitment_id = Column(Integer, ForeignKey("prayer_commitments.id"), nullable=False, index=True)
    volunteer_id = Column(String, nullable=False)
    request_id = Column(Integer, ForeignKey("prayer_requests.id"), nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    commitment = relationship("PrayerCommitment", back_populates="logs")
    request = relationship("PrayerRequest", back_populates="logs")
