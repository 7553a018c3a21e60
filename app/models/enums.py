"""Enums for the prayer tracker - these define the valid values for statuses, roles and categories."""
from enum import Enum


class RequestStatus(str, Enum):
    """A request is active until a leader marks it answered. Answered is terminal."""
    ACTIVE = "active"
    ANSWERED = "answered"


class PrivacyLevel(str, Enum):
    """Anonymous requests never store the requester's name."""
    PUBLIC = "public"
    ANONYMOUS = "anonymous"


class PrayerCategory(str, Enum):
    """Categories offered on the request forms."""
    HEALING = "Healing & Health"
    FAMILY = "Family & Relationships"
    FINANCIAL = "Financial Provision"
    GUIDANCE = "Guidance & Decisions"
    SALVATION = "Salvation & Faith"
    GRIEF = "Grief & Loss"
    ANXIETY = "Anxiety & Mental Health"
    MINISTRY = "Ministry & Calling"
    THANKSGIVING = "Thanksgiving & Praise"
    GENERAL = "General"
    OTHER = "Other"


class CommitmentState(str, Enum):
    """Derived from hours: Pending until accumulated reaches target."""
    PENDING = "Pending"
    COMPLETED = "Completed"


class Role(str, Enum):
    """Every role a church user can hold. No other roles are accepted."""
    PENDING = "pending"
    WARRIOR = "warrior"
    LEADER = "leader"
    SHEPHERD = "shepherd"
    BASONTA_SHEPHERD = "basonta_shepherd"
    BASONTA_LEADER = "basonta_leader"
    BACENTA_LEADER = "bacenta_leader"


class ReminderFrequency(str, Enum):
    DAILY = "daily"
    TWICE_DAILY = "twice-daily"
    WEEKLY = "weekly"
