"""
Pydantic request schemas for authentication and profile endpoints.

The web client posts camelCase keys (firstName, confirmPassword, ...);
models accept those aliases and expose snake_case attributes.
"""

import re
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

# Positions accepted at registration (must also exist as an Active user_level row)
Position = Literal[
    "Super Admin",
    "Admin",
    "Secretary",
    "Director",
    "Regional Director",
    "Central Officer",
    "Field Officer",
    "Local Government Unit",
    "Team Leader",
]

MINIMUM_AGE = 18
_PASSWORD_PATTERN = re.compile(r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
# bcrypt only hashes the first 72 bytes and newer releases reject longer input
MAX_PASSWORD_BYTES = 72


def check_password_strength(value: str) -> str:
    if not _PASSWORD_PATTERN.search(value):
        raise ValueError("Password must contain uppercase, lowercase, and number")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


def age_on(born: date, today: date) -> int:
    return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# AUTH
# =============================================================================

class LoginRequest(BaseModel):
    email: str = Field(min_length=1)  # e-mail or username
    password: str = Field(min_length=1)


class RegisterRequest(CamelModel):
    # Account
    email: EmailStr
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=8, max_length=72)
    confirm_password: str

    # Profile
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    middle_initial: Optional[str] = Field(default=None, max_length=100)
    date_of_birth: date
    phone_number: str = Field(min_length=1, max_length=20)
    address: str = Field(min_length=1)

    # Work
    position: Position
    job_title: str = Field(min_length=1, max_length=100)
    division: Optional[str] = None

    # Location
    region: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None

    terms_accepted: bool

    @field_validator("password")
    @classmethod
    def _strong_password(cls, v: str) -> str:
        return check_password_strength(v)

    @field_validator("confirm_password")
    @classmethod
    def _passwords_match(cls, v: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and v != password:
            raise ValueError("Passwords do not match")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def _adult(cls, v: date) -> date:
        if age_on(v, date.today()) < MINIMUM_AGE:
            raise ValueError("You must be at least 18 years old")
        return v

    @field_validator("terms_accepted")
    @classmethod
    def _terms(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError("You must accept the terms and conditions")
        return v


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=8, max_length=72)
    confirm_password: str

    @field_validator("password")
    @classmethod
    def _strong_password(cls, v: str) -> str:
        return check_password_strength(v)

    @field_validator("confirm_password")
    @classmethod
    def _passwords_match(cls, v: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and v != password:
            raise ValueError("Passwords do not match")
        return v


# =============================================================================
# USER
# =============================================================================

class ProfileUpdate(CamelModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    middle_name: Optional[str] = Field(default=None, max_length=100)
    phone_number: str = Field(min_length=1, max_length=20)
    address: str = Field(min_length=1)
    job_title: str = Field(min_length=1, max_length=100)
    division: Optional[str] = None
    region: str = Field(min_length=1)
    province: str = Field(min_length=1)
    city: str = Field(min_length=1)
    barangay: Optional[str] = None
    date_of_birth: date


class AccountUpdate(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=72)
    confirm_new_password: str

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, v: str) -> str:
        return check_password_strength(v)

    @field_validator("confirm_new_password")
    @classmethod
    def _passwords_match(cls, v: str, info: ValidationInfo) -> str:
        new_password = info.data.get("new_password")
        if new_password is not None and v != new_password:
            raise ValueError("Passwords do not match")
        return v
