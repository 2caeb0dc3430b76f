"""World Athletics scoring table models"""
from sqlalchemy import Column, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from athletics_api.database import Base


class Points(Base):
    """One row of the scoring table: a mark in an event and the points it earns"""

    __tablename__ = "points"

    id = Column(Integer, primary_key=True, index=True)
    points = Column(Integer, nullable=False, index=True)
    gender = Column(String(10), nullable=False)   # Male, Female
    category = Column(String(20), nullable=False)  # Indoor, Outdoor
    event = Column(String(10), nullable=False, index=True)
    mark = Column(Float, nullable=False)


class UserPoints(Base):
    """A scoring row saved by a user"""

    __tablename__ = "user_points"
    __table_args__ = (UniqueConstraint("user_id", "point_id", name="uq_user_points_user_point"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    point_id = Column(Integer, ForeignKey("points.id", ondelete="CASCADE"), nullable=False)

    # Relationships
    user = relationship("User", back_populates="saved_points")
    point = relationship("Points")
