# loyalty_app/schemas/forms.py
"""
Form validation for the auth screens.

These are plain payload schemas; they never touch the gateway. A
`pydantic.ValidationError` raised here maps one-to-one onto form-level error
messages (field name -> first message).
"""
import re
from typing import Literal

from pydantic import ConfigDict, EmailStr, field_validator, model_validator
from sqlmodel import SQLModel, Field

from loyalty_app.services.id_numbers import is_valid_sa_id_number

SA_PHONE_PATTERN = re.compile(r"^(\+27|0)\d{9}$")
OTP_PATTERN = re.compile(r"^\d{6}$")

MIN_PASSWORD_LENGTH = 8

OtpPurpose = Literal["signup", "email", "recovery", "magiclink"]


def normalize_full_name(v: str) -> str:
    v = v.strip()
    if len(v) < 2:
        raise ValueError("Name must be at least 2 characters")
    if len(v) > 100:
        raise ValueError("Name must be at most 100 characters")
    return v


class LoginForm(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class SignUpForm(SQLModel):
    """
    Sign-up form.

    Rules:
      - email must be valid
      - password >= 8 chars, confirm_password must match
      - full_name 2..100 chars
      - phone: South African format (+27 or 0, then 9 digits)
      - id_number: 13 digits with a valid check digit
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    confirm_password: str
    phone: str
    id_number: str
    staff_code: str | None = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        return normalize_full_name(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        v = v.strip()
        if not SA_PHONE_PATTERN.match(v):
            raise ValueError("Enter valid SA phone number")
        return v

    @field_validator("id_number")
    @classmethod
    def validate_id_number(cls, v: str) -> str:
        v = v.strip()
        if len(v) != 13 or not v.isdigit():
            raise ValueError("ID must be 13 digits")
        if not is_valid_sa_id_number(v):
            raise ValueError("Invalid SA ID")
        return v

    @field_validator("staff_code")
    @classmethod
    def normalize_staff_code(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def passwords_match(self) -> "SignUpForm":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class OtpForm(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    code: str
    purpose: OtpPurpose = "signup"

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        v = v.strip()
        if not OTP_PATTERN.match(v):
            raise ValueError("Enter 6-digit code")
        return v


class PasswordResetForm(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
