# models/user.py

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from models.enums import RoleName


PHONE_PATTERN = re.compile(r"^(\+4|)?(07[0-8]{1}[0-9]{1}|02[0-9]{2}|03[0-9]{2}){1}?(\s|\.|-)?([0-9]{3}(\s|\.|-|)){2}$")


# ===============================================================
# USER MODELS
# ===============================================================

class UserRegister(BaseModel):
    """
    Self-service registration. Owners register first and then claim an
    apartment with an invite code.
    """
    email: EmailStr
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    phone: Optional[str] = None
    password: str = Field(min_length=8, max_length=128)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if v is None or v.strip() == "":
            return None
        if not PHONE_PATTERN.match(v.strip()):
            raise ValueError("Invalid phone number")
        return v.strip()

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, v):
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain a lowercase letter")
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain an uppercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain a digit")
        return v


class UserRead(BaseModel):
    """
    Returned to API consumers. Never carries the password hash.
    """
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: str = RoleName.OWNER.value
    organization_id: Optional[str] = None
    administrator_id: Optional[str] = None
    owner_id: Optional[str] = None
    permissions: List[str] = []
    created_at: Optional[datetime] = None


class UserSummary(BaseModel):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
