# ============================================================================
# FILE: songguessr/services/user_service.py
# ============================================================================
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from songguessr.db.models.user import User
from songguessr.schemas.user import UserCreate
from songguessr.core.exceptions import AuthError, ConflictError, InternalError, NotFoundError
from songguessr.core.security import get_password_hash, verify_password
import logging

logger = logging.getLogger(__name__)

class UserService:
    """Service layer for user operations"""

    def create_user(self, db: Session, user_data: UserCreate) -> User:
        """Create a new user account; username and email must both be unused"""
        existing = db.query(User).filter(
            or_(User.username == user_data.username, User.email == user_data.email)
        ).first()
        if existing:
            raise ConflictError("User already exists")

        try:
            user = User(
                username=user_data.username,
                email=user_data.email,
                hashed_password=get_password_hash(user_data.password),
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info(f"User created: {user.username}")
            return user
        except IntegrityError:
            # Lost a race with a concurrent signup for the same name or email
            db.rollback()
            raise ConflictError("User already exists")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating user: {e}")
            raise InternalError("Failed to create user") from e

    def get_user(self, db: Session, user_id: int) -> Optional[User]:
        return db.get(User, user_id)

    def get_user_by_username(self, db: Session, username: str) -> Optional[User]:
        """Get user by username"""
        return db.query(User).filter(User.username == username).first()

    def get_user_by_email(self, db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email.lower()).first()

    def authenticate_user(self, db: Session, email: str, password: str) -> User:
        """
        Check an email/password pair.
        NotFoundError for an unknown email, AuthError for a wrong password.
        """
        user = self.get_user_by_email(db, email)
        if not user:
            raise NotFoundError("User not found")
        if not verify_password(password, user.hashed_password):
            raise AuthError("Invalid password")
        return user

# Create singleton instance
user_service = UserService()
