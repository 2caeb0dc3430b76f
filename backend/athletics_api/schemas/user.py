"""User schemas"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class _UserFields(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value


class UserCreate(_UserFields):
    """Schema for registering a user"""

    password: str = Field(..., min_length=8, max_length=128)


class UserUpdate(_UserFields):
    """Schema for updating the caller's own details"""


class UserResponse(BaseModel):
    """Schema for user response (never includes the password hash)"""

    id: int
    active: bool
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]

    class Config:
        from_attributes = True
