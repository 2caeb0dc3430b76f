"""Pydantic schemas for request/response validation"""
from athletics_api.schemas.auth import LoginRequest, StatusResponse, TokenResponse
from athletics_api.schemas.points import Category, Gender, PointsLookupResponse, PointsRecord, PointsResponse
from athletics_api.schemas.user import UserCreate, UserResponse, UserUpdate

__all__ = [
    "Category",
    "Gender",
    "LoginRequest",
    "PointsLookupResponse",
    "PointsRecord",
    "PointsResponse",
    "StatusResponse",
    "TokenResponse",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
]
