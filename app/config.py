"""Application settings, read once from the environment."""
import os


def _get_database_url() -> str:
    url = os.getenv("DATABASE_URL", "sqlite:///./prayer.db")
    # Render/Heroku hand out postgres:// but SQLAlchemy needs postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    DATABASE_URL = _get_database_url()

    # Prayer policy
    DEFAULT_TARGET_HOURS = float(os.getenv("DEFAULT_TARGET_HOURS", "4.0"))
    REASSIGN_RESETS_PROGRESS = _get_bool("REASSIGN_RESETS_PROGRESS", False)

    # Text-generation collaborator (OpenAI-compatible endpoint)
    GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
    AI_BASE_URL = os.getenv("AI_BASE_URL", "https://api.groq.com/openai/v1")
    AI_MODEL = os.getenv("AI_MODEL", "llama-3.3-70b-versatile")
    AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "10"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.getenv("LOG_FORMAT", "readable").lower()

    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


settings = Settings()
