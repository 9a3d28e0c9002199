# models/organization.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.user import UserRead, UserRegister


class OrganizationRegister(UserRegister):
    """
    Sign-up of an owners' association: the organization and its first
    administrator account are created together.
    """
    organization_name: str = Field(min_length=2, max_length=100)
    organization_code: str = Field(min_length=3, max_length=20, pattern=r"^[A-Z0-9-]+$")
    organization_description: Optional[str] = Field(None, max_length=500)

    @field_validator("organization_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("organization_code", mode="before")
    @classmethod
    def normalize_code(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class OrganizationRead(BaseModel):
    id: str
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class OrganizationRegistration(BaseModel):
    organization: OrganizationRead
    user: UserRead
