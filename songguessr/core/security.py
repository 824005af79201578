# ============================================================================
# FILE: songguessr/core/security.py
# ============================================================================
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from songguessr.config import settings
from songguessr.core.exceptions import AuthError
from songguessr.schemas.user import Identity
import logging

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

BEARER_PREFIX = "bearer "


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unknown or corrupted hash format
        return False


def _signing_key() -> str:
    if not settings.SECRET_KEY:
        raise RuntimeError("SECRET_KEY is not configured; set it in the environment or .env file")
    return settings.SECRET_KEY


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a JWT carrying `data` plus an `exp` claim"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, _signing_key(), algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Verify signature and expiry and return the payload.
    Raises AuthError for any token that does not verify.
    """
    key = _signing_key()
    try:
        return jwt.decode(token, key, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise AuthError("Token expired")
    except JWTError:
        raise AuthError("Invalid token")


def strip_bearer(credential: Optional[str]) -> Optional[str]:
    if not credential:
        return None
    credential = credential.strip()
    if credential.lower().startswith(BEARER_PREFIX):
        credential = credential[len(BEARER_PREFIX):].strip()
    return credential or None


def resolve_identity(credential: Optional[str]) -> Optional[Identity]:
    """
    Resolve an Authorization header value (or bare token) to an Identity.

    Returns None for a missing, malformed, expired or forged token. Only a
    signing-key misconfiguration raises.
    """
    token = strip_bearer(credential)
    if token is None:
        return None

    try:
        payload = decode_access_token(token)
    except AuthError as e:
        logger.debug(f"Token rejected: {e.message}")
        return None

    sub = payload.get("sub")
    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        logger.debug(f"Token has unusable subject: {sub!r}")
        return None
    return Identity(user_id=user_id)
