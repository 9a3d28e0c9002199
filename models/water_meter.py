# models/water_meter.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class WaterMeterCreate(BaseModel):
    apartment_id: str = Field(min_length=1)
    serial_number: str = Field(min_length=3, max_length=50)
    location: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=50)
    model: Optional[str] = Field(None, max_length=50)
    is_active: bool = True
    initial_value: Optional[float] = Field(None, ge=0)

    @field_validator("serial_number", mode="before")
    @classmethod
    def strip_serial(cls, v):
        return v.strip() if isinstance(v, str) else v


class WaterMeterUpdate(BaseModel):
    serial_number: Optional[str] = Field(None, min_length=3, max_length=50)
    location: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=50)
    model: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None


class WaterReadingRead(BaseModel):
    id: str
    water_meter_id: str
    value: float
    reading_date: datetime
    notes: Optional[str] = None
    is_approved: bool = False
    submitted_by_id: Optional[str] = None
    approved_by_id: Optional[str] = None


class LatestReading(BaseModel):
    value: float
    reading_date: datetime
    is_approved: bool


class WaterMeterRead(BaseModel):
    id: str
    apartment_id: str
    serial_number: str
    location: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    is_active: bool = True
    reading_count: int = 0
    latest_reading: Optional[LatestReading] = None
    created_at: Optional[datetime] = None


class WaterMeterDetail(WaterMeterRead):
    readings: List[WaterReadingRead] = []
