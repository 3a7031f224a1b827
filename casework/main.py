"""Main FastAPI application for family case management"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from casework.api.endpoints import families, ingest, sync
from casework.config import get_settings
from casework.database import init_db
from casework.services.container import default_cache_backend
from casework.services.directory_client import GooglePeopleDirectory
from casework.services.notifier import LoggingMailer
import logging
import requests

settings = get_settings()

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Family Casework API",
    description="Intake, deduplication, geolocation and contact directory sync for family aid cases",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers with /api prefix
app.include_router(families.router, prefix="/api", tags=["Families"])
app.include_router(ingest.router, prefix="/api", tags=["Ingestion"])
app.include_router(sync.router, prefix="/api", tags=["Sync"])


@app.on_event("startup")
async def startup_event():
    """Initialize database and shared clients on startup"""
    logger.info("Initializing database...")
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")

    app.state.cache_backend = default_cache_backend(settings)
    app.state.http_session = requests.Session()
    app.state.directory = GooglePeopleDirectory(settings, session=app.state.http_session)
    app.state.mailer = LoggingMailer()


@app.on_event("shutdown")
async def shutdown_event():
    session = getattr(app.state, "http_session", None)
    if session is not None:
        session.close()


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
