# models/role.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# ===============================================================
# ROLES
# ===============================================================

class RoleCreate(BaseModel):
    """
    Custom role. The name is stored upper-case with underscores, the same
    shape as the system role names.
    """
    name: str = Field(min_length=2, max_length=50, pattern=r"^[A-Z][A-Z0-9_]*$")
    description: str = Field(min_length=1, max_length=200)
    permissions: List[str] = []

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, v):
        if not isinstance(v, str):
            return v
        return "_".join(v.strip().upper().split())

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v):
        return v.strip() if isinstance(v, str) else v


class RoleRead(BaseModel):
    name: str
    description: Optional[str] = None
    permissions: List[str] = []
    is_system: bool = False
    user_count: int = 0
    created_at: Optional[datetime] = None


class RoleSummary(BaseModel):
    name: str
    description: Optional[str] = None
    is_system: bool = False


# ===============================================================
# ROLE ASSIGNMENT
# ===============================================================

class RoleAssign(BaseModel):
    user_id: str = Field(min_length=1)
    role: str = Field(min_length=1)

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class OwnedApartment(BaseModel):
    id: str
    number: str
    building_name: Optional[str] = None


class UserWithRole(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    organization_id: Optional[str] = None
    role: RoleSummary
    administrator_id: Optional[str] = None
    owner_id: Optional[str] = None
    apartments: List[OwnedApartment] = []
    created_at: Optional[datetime] = None
