# models/building.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _max_year_built() -> int:
    return datetime.now().year + 5


def _blank_to_none(v):
    if isinstance(v, str) and v.strip() == "":
        return None
    return v


# -------------------------------------------------
# Shared fields
# -------------------------------------------------
class BuildingBase(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    address: str = Field(min_length=5, max_length=200)
    city: str = Field(min_length=2, max_length=100)
    postal_code: Optional[str] = Field(None, pattern=r"^\d{6}$")
    reading_deadline: int = Field(25, ge=1, le=31)

    floors: Optional[int] = Field(None, ge=1, le=100)
    total_apartments: Optional[int] = Field(None, ge=1, le=1000)
    year_built: Optional[int] = Field(None, ge=1800)
    description: Optional[str] = Field(None, max_length=500)
    has_elevator: bool = False
    has_parking: bool = False
    has_garden: bool = False

    # Form posts send numbers as strings and blanks as ""
    @field_validator(
        "postal_code", "floors", "total_apartments", "year_built", "description",
        mode="before",
    )
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)

    @field_validator("year_built")
    @classmethod
    def year_not_far_future(cls, v):
        if v is not None and v > _max_year_built():
            raise ValueError("Year built cannot be in the distant future")
        return v


# -------------------------------------------------
# Create
# -------------------------------------------------
class BuildingCreate(BuildingBase):
    """
    No code supplied — a unique code is generated per organization.
    """
    pass


# -------------------------------------------------
# Update (PATCH semantics; code cannot be updated)
# -------------------------------------------------
class BuildingUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    address: Optional[str] = Field(None, min_length=5, max_length=200)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    postal_code: Optional[str] = Field(None, pattern=r"^\d{6}$")
    reading_deadline: Optional[int] = Field(None, ge=1, le=31)
    floors: Optional[int] = Field(None, ge=1, le=100)
    total_apartments: Optional[int] = Field(None, ge=1, le=1000)
    year_built: Optional[int] = Field(None, ge=1800)
    description: Optional[str] = Field(None, max_length=500)
    has_elevator: Optional[bool] = None
    has_parking: Optional[bool] = None
    has_garden: Optional[bool] = None

    @field_validator(
        "postal_code", "floors", "total_apartments", "year_built", "description",
        mode="before",
    )
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)

    @field_validator("year_built")
    @classmethod
    def year_not_far_future(cls, v):
        if v is not None and v > _max_year_built():
            raise ValueError("Year built cannot be in the distant future")
        return v


# -------------------------------------------------
# Read (store → API response)
# -------------------------------------------------
class BuildingRead(BaseModel):
    id: str
    code: str
    organization_id: Optional[str] = None
    administrator_id: Optional[str] = None
    name: str
    address: str
    city: str
    postal_code: Optional[str] = None
    reading_deadline: int = 25
    floors: Optional[int] = None
    total_apartments: Optional[int] = None
    year_built: Optional[int] = None
    description: Optional[str] = None
    has_elevator: bool = False
    has_parking: bool = False
    has_garden: bool = False
    apartment_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BuildingSummary(BaseModel):
    id: str
    name: str
    address: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class BuildingList(BaseModel):
    buildings: List[BuildingRead]
    pagination: Pagination


class BuildingQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    search: Optional[str] = None
