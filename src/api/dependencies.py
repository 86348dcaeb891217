"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.adapters.session.jwt import JwtSessionIssuer
from src.domain.verification import VerificationService


def get_session_issuer(request: Request) -> JwtSessionIssuer:
    """Get session issuer from app state."""
    return request.app.state.session_issuer


def get_verification_service(request: Request) -> VerificationService:
    """
    Get the verification service from app state.

    The service holds only immutable policy and stateless adapters, so one
    instance built during app lifespan startup serves every request.
    """
    return request.app.state.verification_service


# Bearer token security scheme for OpenAPI documentation
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_identity_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session_issuer: JwtSessionIssuer = Depends(get_session_issuer),
) -> str:
    """
    Extract identity id from the Bearer session token.

    Raises 401 when the header is missing or the token is invalid or expired.
    """
    identity_id = None
    if credentials is not None:
        identity_id = session_issuer.identity_id_from_token(credentials.credentials)
    if identity_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity_id
