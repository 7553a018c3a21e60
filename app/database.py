"""Engine, session factory and declarative base for the prayer store."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings


def build_engine(url: str) -> Engine:
    """
    SQLite for local runs and tests, PostgreSQL in production.

    SQLite writers queue on the database lock instead of failing, so the
    busy timeout is what lets concurrent session appends serialize.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30}
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind: Engine = None) -> None:
    """Create any missing tables. Models must be imported first."""
    # Registers every model on Base.metadata
    import app.models.audit  # noqa: F401
    import app.models.domain  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """Per-request session; always closed, even when the handler raises."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
