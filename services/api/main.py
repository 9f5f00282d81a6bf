"""
FastAPI application for the schema graph service.
"""
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import CONFIG
from logger import get_logger
from services.api.routers import schema
from shared.models import HealthResponse

log = get_logger(__name__)


# Create FastAPI application
app = FastAPI(
    title="Schema Graph API",
    description="Ingest, convert and diff database schema graphs",
    version=CONFIG.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(schema.router)


@app.get("/", tags=["root"])
def root():
    """Root endpoint."""
    return {
        "service": CONFIG.app_name,
        "version": CONFIG.app_version,
        "status": "operational",
    }


@app.get("/health", response_model=HealthResponse, tags=["health"])
def health_check():
    """
    Health check endpoint.

    The service holds no connections, so it is healthy whenever it answers.
    """
    return HealthResponse(
        status="healthy",
        service=CONFIG.app_name,
        version=CONFIG.app_version,
        ai_enabled=CONFIG.conversion.ai_enabled and bool(CONFIG.conversion.gemini_api_key),
        timestamp=datetime.now(timezone.utc),
    )


if __name__ == "__main__":
    import uvicorn

    log.info("Starting %s API on %s:%d", CONFIG.app_name, CONFIG.api.host, CONFIG.api.port)
    uvicorn.run(app, host=CONFIG.api.host, port=CONFIG.api.port)
