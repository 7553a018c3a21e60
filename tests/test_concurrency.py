"""
Concurrent progress updates must not lose hours.

Uses a file-backed SQLite database so each worker thread gets its own
connection, the way separate HTTP requests would.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.database import Base
from app.models.domain import PrayerCommitment, PrayerLog
from app.services.commitment_ledger import CommitmentLedger
from app.services.request_registry import RequestRegistry
from app.services.session_log import SessionLog


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30}
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


@pytest.mark.parametrize("workers", [8])
def test_parallel_appends_lose_no_hours(session_factory, warrior, workers):
    """
    N parallel 60-minute sessions against one fresh commitment (target 4.0)
    end with exactly N accumulated hours.
    """
    with session_factory() as setup:
        request = RequestRegistry(setup).submit("Revival", "Week of prayer", "Ministry & Calling", "public")
        commitment_id = CommitmentLedger(setup).commit(warrior, request.id, target_hours=4.0).id

    def log_one_hour(_):
        with session_factory() as db:
            SessionLog(db).append(warrior, commitment_id, 60)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        list(pool.map(log_one_hour, range(workers)))

    with session_factory() as check:
        commitment = check.query(PrayerCommitment).filter(PrayerCommitment.id == commitment_id).one()
        assert commitment.accumulated_hours == float(workers)
        assert commitment.completed is True
        assert check.query(PrayerLog).filter(PrayerLog.commitment_id == commitment_id).count() == workers


def test_parallel_record_progress(session_factory, warrior):
    with session_factory() as setup:
        request = RequestRegistry(setup).submit("Exams", "Students sitting exams", "Other", "public")
        commitment_id = CommitmentLedger(setup).commit(warrior, request.id, target_hours=10.0).id

    def add_half_hour(_):
        with session_factory() as db:
            CommitmentLedger(db).record_progress(warrior, commitment_id, 0.5)

    with ThreadPoolExecutor(max_workers=6) as pool:
        list(pool.map(add_half_hour, range(12)))

    with session_factory() as check:
        commitment = check.query(PrayerCommitment).filter(PrayerCommitment.id == commitment_id).one()
        assert commitment.accumulated_hours == 6.0
        assert commitment.completed is False
