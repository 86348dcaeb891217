"""
API v1 routes.

Defines REST endpoints for employee verification:
- POST /v1/employee-verifications/start - Send a code to a work address
- POST /v1/employee-verifications/verify - Redeem the code for a session
- GET /v1/employee-verifications/status - Current identity's verification

Route functions are synchronous so FastAPI runs the blocking bcrypt and
database work in its threadpool.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_current_identity_id, get_verification_service
from src.api.models import (
    CompanySummary,
    ErrorResponse,
    IdentitySummary,
    StartVerificationRequest,
    StartVerificationResponse,
    VerificationStatusResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from src.domain.exceptions import (
    AlreadyFinalized,
    CodeExpired,
    CompanyNotFound,
    DeliveryFailed,
    DomainMismatch,
    IdentityNotFound,
    InvalidCode,
    InvalidEmail,
    NotFound,
    PersonalEmailRejected,
    RoleConflict,
    TooManyAttempts,
    VerificationError,
)
from src.domain.ports import Company
from src.domain.verification import VerificationService

router = APIRouter(prefix="/employee-verifications", tags=["v1"])

# Fixed messages: never echo the submitted email or hint at registration.
_ERRORS: dict[type[VerificationError], tuple[int, str]] = {
    InvalidEmail: (status.HTTP_400_BAD_REQUEST, "Invalid email address"),
    PersonalEmailRejected: (status.HTTP_400_BAD_REQUEST, "Please use your work email address"),
    DomainMismatch: (status.HTTP_400_BAD_REQUEST, "Email domain does not match the company"),
    CompanyNotFound: (status.HTTP_404_NOT_FOUND, "Company not found"),
    DeliveryFailed: (status.HTTP_502_BAD_GATEWAY, "Failed to send verification email"),
    NotFound: (status.HTTP_404_NOT_FOUND, "Verification request not found"),
    AlreadyFinalized: (status.HTTP_400_BAD_REQUEST, "Verification is no longer valid"),
    CodeExpired: (status.HTTP_400_BAD_REQUEST, "Verification code has expired"),
    TooManyAttempts: (status.HTTP_429_TOO_MANY_REQUESTS, "Too many attempts. Request a new code."),
    InvalidCode: (status.HTTP_400_BAD_REQUEST, "Invalid verification code"),
    RoleConflict: (
        status.HTTP_409_CONFLICT,
        "This email is already linked to a vendor or admin account",
    ),
    IdentityNotFound: (status.HTTP_404_NOT_FOUND, "User not found"),
}


def _http_error(exc: VerificationError) -> HTTPException:
    status_code, detail = _ERRORS.get(
        type(exc), (status.HTTP_400_BAD_REQUEST, "Verification failed")
    )
    return HTTPException(status_code=status_code, detail=detail)


def _company_summary(company: Company | None) -> CompanySummary | None:
    if company is None:
        return None
    return CompanySummary(
        id=company.id, slug=company.slug, name=company.name, domain=company.registered_domain
    )


@router.post(
    "/start",
    response_model=StartVerificationResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid, personal or mismatched email"},
        404: {"model": ErrorResponse, "description": "Company not found"},
        502: {"model": ErrorResponse, "description": "Email delivery failed"},
        422: {"description": "Validation error"},
    },
    summary="Start employee verification",
    description="Submit a company id or slug and a work email. "
    "A 6-digit verification code will be sent to the address.",
)
def start_verification(
    request_data: StartVerificationRequest,
    service: VerificationService = Depends(get_verification_service),
) -> StartVerificationResponse:
    """
    Issue a verification code for a work email.

    - **company**: Company id or slug
    - **email**: Work email address at that company
    """
    try:
        started = service.start(request_data.company, request_data.email)
    except VerificationError as exc:
        raise _http_error(exc) from None

    return StartVerificationResponse(
        verification_id=started.verification_id,
        expires_at=started.expires_at,
        delivery_channel=started.delivery_channel,
        email_configured=started.email_configured,
        company=_company_summary(started.company),
        dev_code=started.dev_code,
    )


@router.post(
    "/verify",
    response_model=VerifyCodeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid, expired or used code"},
        404: {"model": ErrorResponse, "description": "Verification request not found"},
        409: {"model": ErrorResponse, "description": "Email linked to a vendor or admin"},
        429: {"model": ErrorResponse, "description": "Too many attempts"},
        422: {"description": "Validation error"},
    },
    summary="Verify code and issue employee token",
    description="Submit the 6-digit code received via email to verify "
    "employment and receive a session token.",
)
def verify_code(
    request_data: VerifyCodeRequest,
    service: VerificationService = Depends(get_verification_service),
) -> VerifyCodeResponse:
    """
    Redeem a verification code.

    - **verification_id**: Id returned by the start endpoint
    - **code**: 6-digit verification code from email
    - **name**: Optional display name
    """
    try:
        completed = service.verify(
            request_data.verification_id, request_data.code, request_data.name
        )
    except VerificationError as exc:
        raise _http_error(exc) from None

    identity = completed.identity
    return VerifyCodeResponse(
        token=completed.session_token,
        user=IdentitySummary(
            id=identity.id,
            email=identity.email,
            name=identity.display_name,
            role=identity.role.value,
            employment_verified_at=identity.employment_verified_at,
            employee_company=_company_summary(completed.company),
        ),
    )


@router.get(
    "/status",
    response_model=VerificationStatusResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid token"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
    summary="Get current verification status",
)
def get_status(
    identity_id: str = Depends(get_current_identity_id),
    service: VerificationService = Depends(get_verification_service),
) -> VerificationStatusResponse:
    """Employment verification status of the authenticated identity."""
    try:
        current = service.status(identity_id)
    except VerificationError as exc:
        raise _http_error(exc) from None

    return VerificationStatusResponse(
        verified=current.verified,
        employment_verified_at=current.verified_at,
        company=_company_summary(current.company),
    )
