"""Pydantic schemas for request/response validation."""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.enums import (
    CommitmentState,
    PrayerCategory,
    PrivacyLevel,
    ReminderFrequency,
    RequestStatus,
)


# Prayer request schemas
class PrayerRequestCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: PrayerCategory = PrayerCategory.HEALING
    privacy_level: PrivacyLevel = PrivacyLevel.PUBLIC
    requester_name: Optional[str] = None
    requester_phone: Optional[str] = None
    requester_email: Optional[str] = None
    timeline: Optional[str] = Field(None, max_length=200)


class PrayerRequestResponse(BaseModel):
    id: int
    title: str
    description: str
    category: str
    privacy_level: PrivacyLevel
    requester_name: Optional[str]
    timeline_text: Optional[str]
    timeline_days: Optional[int]
    status: RequestStatus
    created_at: datetime
    answered_at: Optional[datetime]

    class Config:
        from_attributes = True


class PrayerRequestContactResponse(PrayerRequestResponse):
    """Leader view: includes contact details."""
    requester_phone: Optional[str]
    requester_email: Optional[str]


# Commitment schemas
class CommitmentCreate(BaseModel):
    target_hours: Optional[float] = Field(None, gt=0)


class CommitmentResponse(BaseModel):
    id: int
    request_id: int
    volunteer_id: str
    target_hours: float
    accumulated_hours: float
    deadline: Optional[date]
    completed: bool
    state: CommitmentState
    created_at: datetime

    class Config:
        from_attributes = True


class CommitmentWithRequestResponse(CommitmentResponse):
    """A volunteer's own commitment, with the request it is for."""
    request: PrayerRequestResponse


class CommitmentReassign(BaseModel):
    volunteer_id: str = Field(..., min_length=1)
    reset_progress: Optional[bool] = None


class CommitmentTargetUpdate(BaseModel):
    target_hours: float = Field(..., gt=0)


# Session log schemas
class SessionCreate(BaseModel):
    duration_minutes: int = Field(..., gt=0)
    note: Optional[str] = Field(None, max_length=1000)


class SessionResponse(BaseModel):
    id: int
    commitment_id: int
    volunteer_id: str
    request_id: int
    duration_minutes: int
    note: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


# Dashboard schemas
class PrayerStats(BaseModel):
    total_requests: int
    total_hours: float
    active_warriors: int
    answered_requests: int


class RequestSummary(BaseModel):
    request: PrayerRequestContactResponse
    total_hours: float
    warriors_count: int


class PrayerDashboardResponse(BaseModel):
    stats: PrayerStats
    requests: List[RequestSummary]


# Assistant schemas
class TimelineRequest(BaseModel):
    text: str = Field(..., min_length=1)


class TimelineResponse(BaseModel):
    days: Optional[int]
    deadline: Optional[str]


class VerseRequest(BaseModel):
    text: str = Field(..., min_length=1)
    category: Optional[PrayerCategory] = None


class VerseResponse(BaseModel):
    verse: str


class EncouragementRequest(BaseModel):
    text: str = Field(..., min_length=1)


class EncouragementResponse(BaseModel):
    encouragement: str


class ReminderFrequencyRequest(BaseModel):
    timeline: Optional[str] = None
    category: PrayerCategory = PrayerCategory.GENERAL


class ReminderFrequencyResponse(BaseModel):
    frequency: ReminderFrequency


class TrendsResponse(BaseModel):
    insights: str


# Error response
class ErrorResponse(BaseModel):
    """Response when an action is refused or fails."""
    message: str
