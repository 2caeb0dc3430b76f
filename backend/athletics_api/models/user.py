"""User model"""
from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from athletics_api.database import Base


class User(Base):
    """An account that can log in and save scoring rows.

    ``password`` holds the argon2 hash and is only read by the login step.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    active = Column(Boolean, default=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    password = Column(String(255), nullable=False)

    # Relationships
    saved_points = relationship("UserPoints", back_populates="user", cascade="all, delete-orphan")
