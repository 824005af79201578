# ============================================================================
# FILE: songguessr/api/middleware.py
# ============================================================================
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from songguessr.core.route_policy import requires_identity
from songguessr.core.security import resolve_identity
import logging

logger = logging.getLogger(__name__)

class AuthGateMiddleware(BaseHTTPMiddleware):
    """
    Rejects unauthenticated calls to protected routes before they reach a handler.
    Every request gets request.state.identity (None for anonymous callers).
    """

    async def dispatch(self, request: Request, call_next):
        identity = resolve_identity(request.headers.get("Authorization"))
        request.state.identity = identity

        if request.method != "OPTIONS" and identity is None \
                and requires_identity(request.url.path, request.method):
            logger.info(f"Rejected unauthenticated {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Not authenticated"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)
