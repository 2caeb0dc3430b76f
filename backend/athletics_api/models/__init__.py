"""Database models"""
from athletics_api.models.points import Points, UserPoints
from athletics_api.models.user import User

__all__ = ["Points", "User", "UserPoints"]
