"""Pytest configuration and shared fixtures."""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.ai.assistant import TimelineResult
from app.database import Base
from app.models.audit import AuditEvent  # noqa: F401
from app.models.domain import PrayerRequest
from app.models.enums import PrivacyLevel, RequestStatus, Role
from app.services.authorization import Actor


@pytest.fixture
def db_session():
    """Create a fresh in-memory database for each test."""
    # In-memory SQLite for fast tests
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def sample_request(db_session):
    """An active public request with no timeline."""
    request = PrayerRequest(
        title="Mother's surgery",
        description="Please pray for my mother's heart surgery and recovery",
        category="Healing & Health",
        privacy_level=PrivacyLevel.PUBLIC,
        requester_name="Ama",
        status=RequestStatus.ACTIVE
    )
    db_session.add(request)
    db_session.commit()
    db_session.refresh(request)
    return request


@pytest.fixture
def warrior():
    return Actor(user_id="warrior_a", role=Role.WARRIOR)


@pytest.fixture
def other_warrior():
    return Actor(user_id="warrior_b", role=Role.WARRIOR)


@pytest.fixture
def leader():
    return Actor(user_id="leader_1", role=Role.LEADER)


class StubTimelineExtractor:
    """Returns a fixed day offset, or raises to prove failures are absorbed upstream."""

    def __init__(self, days=None, fail=False):
        self.days = days
        self.fail = fail
        self.calls = []

    def extract_timeline(self, text):
        self.calls.append(text)
        if self.fail:
            raise RuntimeError("timeline service crashed")
        return TimelineResult(days=self.days, deadline=None)


@pytest.fixture
def stub_extractor():
    return StubTimelineExtractor
