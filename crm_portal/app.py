import logging
import time
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import Config
from .core.errors import PortalError
from .core.middleware import global_exception_handler, log_requests, portal_error_handler
from .routes import portal, staff
from .services import supabase_service

logger = logging.getLogger(__name__)


# Initialize FastAPI
app = FastAPI(title="CRM Client Portal API")

# CORS setup
ALLOWED_ORIGINS = Config.allowed_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

@app.middleware("http")
async def _log_requests(request, call_next):
    return await log_requests(request, call_next)

@app.exception_handler(PortalError)
async def _portal_error_handler(request, exc):
    return await portal_error_handler(request, exc)

@app.exception_handler(Exception)
async def _global_exception_handler(request, exc):
    return await global_exception_handler(request, exc)


app.include_router(portal.router)
app.include_router(staff.router)


@app.get("/health")
def health_check():
    """Basic health and dependency checks for the API."""
    health_start_time = time.time()

    try:
        # Check configuration and Supabase connection
        Config.validate()
        supabase_service.ping()

        health_duration = time.time() - health_start_time

        return {
            "status": "healthy",
            "service": "crm-portal-api",
            "timestamp": datetime.now().isoformat(),
            "response_time_ms": round(health_duration * 1000, 2)
        }
    except Exception as e:
        health_duration = time.time() - health_start_time
        logger.error(f"Health check failed: {str(e)} - Duration: {health_duration:.1f}s")

        return {
            "status": "unhealthy",
            "service": "crm-portal-api",
            "timestamp": datetime.now().isoformat(),
            "error": str(e),
            "response_time_ms": round(health_duration * 1000, 2)
        }


@app.get("/")
async def root():
    """Return basic API information."""

    return {
        "service": "CRM Client Portal API",
        "version": "1.0",
        "endpoints": {
            "verify": "/api/portal/verify",
            "magic_link_login": "/portal/auth/{token}",
            "logout": "/portal/logout",
            "session": "/api/portal/session",
            "document_download": "/api/portal/documents/{document_id}/download",
            "toggle": "/api/portal/toggle",
            "invite": "/api/portal/invite",
            "health": "/health"
        },
        "timestamp": datetime.now().isoformat(),
        "description": "Session verification and access control for the CRM client portal"
    }
