# models/apartment.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.building import BuildingSummary


class ApartmentCreate(BaseModel):
    number: str = Field(min_length=1, max_length=10)
    floor: Optional[int] = Field(None, ge=-5, le=100)
    rooms: Optional[int] = Field(None, ge=1, le=20)
    surface: Optional[float] = Field(None, gt=0, le=10000)

    @field_validator("number", mode="before")
    @classmethod
    def strip_number(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("floor", "rooms", "surface", mode="before")
    @classmethod
    def blank_optional(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        return v


class ApartmentUpdate(BaseModel):
    number: Optional[str] = Field(None, min_length=1, max_length=10)
    floor: Optional[int] = Field(None, ge=-5, le=100)
    rooms: Optional[int] = Field(None, ge=1, le=20)
    surface: Optional[float] = Field(None, gt=0, le=10000)


class ApartmentRead(BaseModel):
    id: str
    building_id: str
    number: str
    floor: Optional[int] = None
    rooms: Optional[int] = None
    surface: Optional[float] = None
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None


class ApartmentWithBuilding(ApartmentRead):
    building: Optional[BuildingSummary] = None
