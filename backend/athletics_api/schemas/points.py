"""World Athletics scoring schemas"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class _CaseInsensitiveEnum(str, Enum):
    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return None


class Category(_CaseInsensitiveEnum):
    INDOOR = "Indoor"
    OUTDOOR = "Outdoor"


class Gender(_CaseInsensitiveEnum):
    MALE = "Male"
    FEMALE = "Female"


class PointsRecord(BaseModel):
    """One row of the scoring table JSON file (PascalCase keys)"""

    points: int = Field(..., alias="Points")
    gender: str = Field(..., alias="Gender")
    category: str = Field(..., alias="Category")
    event: str = Field(..., alias="Event")
    mark: float = Field(..., alias="Mark")

    class Config:
        populate_by_name = True


class PointsResponse(BaseModel):
    id: int
    points: int
    gender: str
    category: str
    event: str
    mark: float

    class Config:
        from_attributes = True


class PointsLookupResponse(BaseModel):
    points: Optional[PointsResponse]
