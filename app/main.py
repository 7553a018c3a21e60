"""Main FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import router
from app.config import settings
from app.database import engine, init_db
from app.logging_config import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

# Create database tables
init_db()

# Create FastAPI app
app = FastAPI(
    title="Prayer Tracker",
    description="Prayer request intake, warrior commitments and logged prayer time for church leadership.",
    version="0.1.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router, prefix="/api", tags=["Prayer"])

logger.info("Prayer Tracker started (database: %s)", engine.url.get_backend_name())


# Health check
@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "Prayer Tracker"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
