# ============================================================================
# FILE: songguessr/schemas/user.py
# ============================================================================
import re
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime

_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[\W_]).{8,}$")

class UserCreate(BaseModel):
    """Schema for user registration"""
    username: str = Field(..., min_length=3, max_length=20)
    email: EmailStr
    password: str

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 3:
            raise ValueError("Username must be at least 3 characters")
        return value

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def strong_password(cls, value: str) -> str:
        if not _PASSWORD_RE.match(value):
            raise ValueError(
                "Password must be at least 8 characters long and include at least "
                "1 uppercase letter, 1 lowercase letter, 1 number, and 1 symbol."
            )
        return value

class UserLogin(BaseModel):
    """Schema for user login"""
    email: EmailStr
    password: str

class UserResponse(BaseModel):
    """Schema for user response"""
    id: int
    username: str
    email: str
    total_score: int
    games_played: int
    games_won: int
    average_score: float
    best_score: int
    win_rate: float
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class Token(BaseModel):
    """Schema for JWT token response; `token` mirrors access_token for plain clients"""
    access_token: str
    token_type: str = "bearer"
    token: Optional[str] = None

    @model_validator(mode="after")
    def mirror_token(self):
        if self.token is None:
            self.token = self.access_token
        return self

class Identity(BaseModel):
    """Verified token subject"""
    user_id: int
