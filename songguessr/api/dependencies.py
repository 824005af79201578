# ============================================================================
# FILE: songguessr/api/dependencies.py
# ============================================================================
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from songguessr.core.exceptions import AuthError
from songguessr.core.security import resolve_identity
from songguessr.schemas.user import Identity
from typing import Optional

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

def get_identity(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme)
) -> Optional[Identity]:
    """
    Identity attached by the auth middleware, or resolved from the token
    Returns None if no token or invalid token (allows anonymous access)
    """
    identity = getattr(request.state, "identity", None)
    if identity is not None:
        return identity
    return resolve_identity(token)

def require_identity(
    identity: Optional[Identity] = Depends(get_identity)
) -> Identity:
    """
    Require authenticated caller (raises 401 if not authenticated)
    Use this dependency for protected endpoints
    """
    if identity is None:
        raise AuthError("Not authenticated")
    return identity
