# models/dashboard.py

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel


# ===============================================================
# DASHBOARDS
# ===============================================================

ActivityType = Literal["building_created", "reading_submitted", "invite_redeemed"]


class ActivityItem(BaseModel):
    id: str
    type: ActivityType
    description: str
    timestamp: datetime


class AdminDashboardStats(BaseModel):
    total_buildings: int = 0
    total_apartments: int = 0
    owned_apartments: int = 0
    total_users: int = 0
    total_water_meters: int = 0
    total_readings: int = 0
    pending_readings: int = 0
    active_invite_codes: int = 0
    recent_activity: List[ActivityItem] = []


class LastReading(BaseModel):
    date: datetime
    value: float
    apartment: str


class OwnerDashboardStats(BaseModel):
    total_apartments: int = 0
    total_water_meters: int = 0
    pending_readings: int = 0
    last_reading: Optional[LastReading] = None
    monthly_consumption: float = 0


# ===============================================================
# BUILDING WATER CONSUMPTION
# ===============================================================

class MonthConsumption(BaseModel):
    month: int
    year: int
    total: float = 0
    readings_count: int = 0
    average: float = 0


class PeriodConsumption(BaseModel):
    total: float = 0
    readings_count: int = 0
    average: float = 0
    monthly_average: float = 0


class MonthlyBreakdownItem(BaseModel):
    month: int
    year: int
    consumption: float
    readings_count: int


class BuildingOccupancy(BaseModel):
    total_apartments: int
    occupied_apartments: int


class BuildingWaterConsumption(BaseModel):
    last_month: MonthConsumption
    six_months: PeriodConsumption
    monthly_breakdown: List[MonthlyBreakdownItem] = []
    building_info: BuildingOccupancy
