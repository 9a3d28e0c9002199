# models/invite_code.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.apartment import ApartmentWithBuilding
from models.enums import InviteCodeStatus
from models.user import UserSummary


# -----------------------------------------------------
# CREATE (administrator)
# -----------------------------------------------------
class InviteCodeCreate(BaseModel):
    apartment_id: str = Field(min_length=1)
    expires_at: Optional[datetime] = None

    # When no explicit expiry is given, apply the default expiration window
    use_default_expiration: bool = False

    @field_validator("apartment_id", mode="before")
    @classmethod
    def strip_id(cls, v):
        return v.strip() if isinstance(v, str) else v


# -----------------------------------------------------
# REDEEM (owner)
# -----------------------------------------------------
class InviteCodeRedeem(BaseModel):
    code: str = Field(min_length=6, max_length=8, pattern=r"^[A-Z0-9]+$")
    user_id: str = Field(min_length=1)

    # Codes are shared by hand; tolerate lowercase and stray spaces
    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class RedeemRequest(BaseModel):
    """Request body; the user id comes from the session."""
    code: str


# -----------------------------------------------------
# READ
# -----------------------------------------------------
class InviteCodeRead(BaseModel):
    id: str
    code: str
    status: InviteCodeStatus
    apartment_id: str
    apartment: Optional[ApartmentWithBuilding] = None
    created_by: str
    used_by: Optional[str] = None
    used_by_user: Optional[UserSummary] = None
    used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
