# ============================================================================
# FILE: songguessr/api/v1/endpoints/auth.py
# ============================================================================
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from datetime import timedelta
from songguessr.db.session import get_db
from songguessr.api.dependencies import require_identity
from songguessr.schemas.user import UserCreate, UserLogin, UserResponse, Token, Identity
from songguessr.services.user_service import user_service
from songguessr.core.exceptions import NotFoundError
from songguessr.core.security import create_access_token
from songguessr.config import settings
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Register a new user account
    409 if the username or email is already registered
    """
    return user_service.create_user(db, user_data)

@router.post("/login", response_model=Token)
async def login(
    credentials: UserLogin,
    db: Session = Depends(get_db)
):
    """
    Login with email and password
    Returns JWT access token
    """
    user = user_service.authenticate_user(db, credentials.email, credentials.password)

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": str(user.id)}, expires_delta=access_token_expires
    )
    logger.info(f"User logged in: {user.id}")
    return Token(access_token=access_token)

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db)
):
    """
    Get current user information
    Requires authentication
    """
    user = user_service.get_user(db, identity.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user

@router.get("/validate")
async def validate_token(identity: Identity = Depends(require_identity)):
    return {"valid": True, "user_id": identity.user_id}
