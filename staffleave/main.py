"""
Staff Leave Service - Main Application Entry Point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from staffleave.api.router import api_router
from staffleave.core.config import settings
from staffleave.core.constants import SERVICE_NAME
from staffleave.core.errors import (
    generic_exception_handler,
    http_exception_handler,
    operational_error_handler,
    validation_exception_handler,
)
from staffleave.core.logging import setup_logging
from staffleave.core.security import hash_password
from staffleave.db.session import SessionLocal, create_sqlite_tables
from staffleave.models.user import Role, User

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    try:
        parsed = urlparse(url)
        if parsed.scheme == "sqlite":
            return url
        if parsed.password:
            netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
            if parsed.port:
                netloc += f":{parsed.port}"
            return urlunparse(parsed._replace(netloc=netloc))
    except ValueError:
        return "***"
    return url


# Create FastAPI app
app = FastAPI(
    title="Staff Leave Service",
    description="Leave submission, approval and audit for school staff",
    version=settings.VERSION or "1.0.0",
)

# Configure CORS - must be before other middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(OperationalError, operational_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include all API routes under /api/v1
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup_log_config() -> None:
    """Log DATABASE_URL at startup so it can be verified against Alembic."""
    masked = _mask_database_url(settings.DATABASE_URL)
    logger.info("%s starting: env=%s DATABASE_URL=%s", SERVICE_NAME, settings.APP_ENV, masked)
    create_sqlite_tables()


@app.on_event("startup")
def bootstrap_initial_admin() -> None:
    """
    Create the initial admin account if no ADMIN exists yet.
    This ensures the system always has someone able to create users.
    """
    db = SessionLocal()
    try:
        if db.query(User).filter(User.role == Role.ADMIN.value).first():
            logger.info("Admin user already exists, skipping initial bootstrap")
            return

        logger.info("No admin user found, creating initial admin account...")
        db.add(
            User(
                name="System Administrator",
                email=settings.INITIAL_ADMIN_EMAIL.strip().lower(),
                password_hash=hash_password(settings.INITIAL_ADMIN_PASSWORD),
                role=Role.ADMIN.value,
                teacher_roles=[],
                active=True,
            )
        )
        db.commit()
        logger.info("Initial admin user created: %s", settings.INITIAL_ADMIN_EMAIL)
        logger.info("Password: [set via INITIAL_ADMIN_PASSWORD environment variable]")
    except OperationalError as e:
        db.rollback()
        if "no such table" in str(e).lower():
            logger.warning("Database tables not ready yet, skipping initial bootstrap")
        else:
            logger.error("Database error during admin bootstrap: %s", e)
    finally:
        db.close()
