"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class StartVerificationRequest(BaseModel):
    """Request model for starting an employee verification."""

    company: str = Field(
        ..., min_length=1, max_length=255, description="Company id or slug"
    )
    email: str = Field(
        ..., min_length=1, max_length=320, description="Work email address"
    )


class CompanySummary(BaseModel):
    id: str
    slug: str
    name: str
    domain: str | None = None


class StartVerificationResponse(BaseModel):
    """Response model for a started verification."""

    verification_id: str
    expires_at: datetime
    delivery_channel: str = Field(..., description='"email" or "console"')
    email_configured: bool
    company: CompanySummary
    dev_code: str | None = Field(
        default=None, description="Plaintext code, only outside production"
    )


class VerifyCodeRequest(BaseModel):
    """Request model for submitting a verification code."""

    verification_id: str = Field(..., min_length=1, max_length=64)
    code: str = Field(
        ...,
        min_length=6,
        max_length=6,
        pattern=r"^\d{6}$",
        description="6-digit verification code",
    )
    name: str | None = Field(default=None, max_length=120, description="Display name")


class IdentitySummary(BaseModel):
    id: str
    email: str
    name: str | None = None
    role: str
    employment_verified_at: datetime | None = None
    employee_company: CompanySummary | None = None


class VerifyCodeResponse(BaseModel):
    """Response model for a successful verification."""

    token: str
    user: IdentitySummary


class VerificationStatusResponse(BaseModel):
    """Response model for the current identity's verification status."""

    verified: bool
    employment_verified_at: datetime | None = None
    company: CompanySummary | None = None


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
