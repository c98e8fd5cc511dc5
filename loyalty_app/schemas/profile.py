# loyalty_app/schemas/profile.py
import uuid
from datetime import date, datetime

from pydantic import ConfigDict, EmailStr, field_validator
from sqlmodel import SQLModel, Field

from loyalty_app.schemas.forms import SA_PHONE_PATTERN, normalize_full_name


class ProfileRead(SQLModel):
    """
    A `profiles` row as returned by the gateway.

    Identity:
      - user_id: matches Supabase auth.users.id

    Only a SHA-256 hash of the national ID number is ever stored.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    full_name: str
    email: str
    phone: str | None = None
    phone_verified: bool = False
    birthday: date | None = None
    avatar_url: str | None = None
    id_number_hash: str | None = None
    preferred_store_id: uuid.UUID | None = None
    created_at: datetime | None = None


class ProfileCreate(SQLModel):
    """
    Row inserted right after a successful auth sign-up.
    """

    model_config = ConfigDict(extra="forbid")

    user_id: uuid.UUID
    full_name: str
    email: EmailStr
    phone: str | None = None
    id_number_hash: str | None = None


class ProfileUpdate(SQLModel):
    """
    Profile-edit payload (personal info screen).

    - full_name: 2..100 chars after trimming
    - phone: SA format, "" clears the phone
    - birthday: optional
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(max_length=100)
    phone: str | None = None
    birthday: date | None = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        return normalize_full_name(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            return None
        if not SA_PHONE_PATTERN.match(v):
            raise ValueError(
                "Enter a valid SA phone number (e.g. +27821234567)"
            )
        return v
