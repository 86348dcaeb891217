"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routes and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import (
    PostgresCompanyDirectory,
    PostgresIdentityRepository,
    PostgresVerificationRepository,
    run_migrations,
)
from src.adapters.session.jwt import JwtSessionIssuer
from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.smtp import SmtpEmailSender
from src.api.v1 import router as v1_router
from src.config.settings import Settings, get_settings
from src.domain.codes import utcnow
from src.domain.policy import VerificationPolicy
from src.domain.ports import (
    CompanyDirectory,
    EmailSender,
    IdentityRepository,
    VerificationRepository,
)
from src.domain.verification import VerificationService

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Employee verification API v1 - Prove employment with a one-time email code",
    },
]


def build_email_sender(settings: Settings) -> EmailSender:
    """SMTP when host and user are configured, console logging otherwise."""
    if settings.smtp_host and settings.smtp_user:
        return SmtpEmailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            from_email=settings.smtp_from,
            from_name=settings.smtp_from_name,
            timeout=settings.smtp_timeout_seconds,
        )
    if settings.is_production:
        logger.warning("SMTP is not configured; verification emails will fail")
    return ConsoleEmailSender()


def wire_services(
    app: FastAPI,
    *,
    verifications: VerificationRepository,
    identities: IdentityRepository,
    companies: CompanyDirectory,
    email_sender: EmailSender,
    session_issuer: JwtSessionIssuer,
    policy: VerificationPolicy,
    clock: Callable[[], datetime] = utcnow,
) -> None:
    """Store adapters and the verification service in app state for dependency injection."""
    app.state.session_issuer = session_issuer
    app.state.verification_service = VerificationService(
        verifications=verifications,
        identities=identities,
        companies=companies,
        email_sender=email_sender,
        session_issuer=session_issuer,
        policy=policy,
        clock=clock,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Wires repositories, email sender and session issuer
    - Closes connection pool on shutdown
    """
    settings = get_settings()

    logger.info("Starting application (environment=%s)...", settings.environment)
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    # Run migrations
    logger.info("Running database migrations...")
    run_migrations(pool)

    app.state.pool = pool
    wire_services(
        app,
        verifications=PostgresVerificationRepository(pool),
        identities=PostgresIdentityRepository(pool),
        companies=PostgresCompanyDirectory(pool),
        email_sender=build_email_sender(settings),
        session_issuer=JwtSessionIssuer(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.jwt_expire_minutes,
        ),
        policy=settings.verification_policy(),
    )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="perkgate",
    description="Employee verification API - Prove employment at a company with a one-time email code",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
