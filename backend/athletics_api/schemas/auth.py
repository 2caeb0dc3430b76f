"""Auth schemas"""
from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Schema for logging in"""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Body of a successful login or refresh; the token is also set as a cookie"""

    status: str = "success"
    access_token: str


class StatusResponse(BaseModel):
    status: str = "success"
