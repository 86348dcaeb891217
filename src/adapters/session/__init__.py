"""Session token adapters."""

from .jwt import JwtSessionIssuer

__all__ = ["JwtSessionIssuer"]
