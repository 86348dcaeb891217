"""
JWT session issuer adapter - Implements SessionIssuer protocol.

Tokens carry the identity id as "sub" plus email and role claims.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from src.domain.ports import Identity


class JwtSessionIssuer:
    """Mints and decodes signed session tokens with python-jose."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 10080) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expire = timedelta(minutes=expire_minutes)

    def issue(self, identity: Identity) -> str:
        """Create a signed access token for the identity."""
        claims = {
            "sub": identity.id,
            "email": identity.email,
            "role": identity.role.value,
            "exp": datetime.now(timezone.utc) + self._expire,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def identity_id_from_token(self, token: str) -> str | None:
        """Return the identity id, or None if the token is invalid or expired."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError:
            return None
        subject = payload.get("sub")
        return subject if isinstance(subject, str) else None
