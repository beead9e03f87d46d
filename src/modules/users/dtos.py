"""User DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).  Passwords travel in clear text
only as far as the service, which hashes them.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from pydantic import BaseModel, ConfigDict, field_validator

MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 100


def _clean_email(v: str) -> str:
    v = v.strip()
    if len(v) > MAX_NAME_LENGTH:
        raise ValueError(f"Email must be at most {MAX_NAME_LENGTH} characters.")
    try:
        validate_email(v)
    except DjangoValidationError:
        raise ValueError("Enter a valid email address.") from None
    return v


def _clean_username(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Username must not be empty.")
    if len(v) > MAX_NAME_LENGTH:
        raise ValueError(f"Username must be at most {MAX_NAME_LENGTH} characters.")
    return v


def _check_password(v: str) -> str:
    if len(v) < MIN_PASSWORD_LENGTH:
        raise ValueError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        )
    return v


class CreateUserDTO(BaseModel):
    """Immutable DTO for account creation requests."""

    model_config = ConfigDict(frozen=True)

    username: str
    email: str
    password: str
    first_name: str = ""
    last_name: str = ""

    @field_validator("username")
    @classmethod
    def username_is_valid(cls, v: str) -> str:
        return _clean_username(v)

    @field_validator("email")
    @classmethod
    def email_is_valid(cls, v: str) -> str:
        return _clean_email(v)

    @field_validator("password")
    @classmethod
    def password_is_long_enough(cls, v: str) -> str:
        return _check_password(v)


class UpdateUserDTO(BaseModel):
    """Immutable DTO for account update requests.

    All fields are optional; only supplied fields will be updated.
    """

    model_config = ConfigDict(frozen=True)

    username: str | None = None
    email: str | None = None
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @field_validator("username")
    @classmethod
    def username_is_valid(cls, v: str | None) -> str | None:
        return None if v is None else _clean_username(v)

    @field_validator("email")
    @classmethod
    def email_is_valid(cls, v: str | None) -> str | None:
        return None if v is None else _clean_email(v)

    @field_validator("password")
    @classmethod
    def password_is_long_enough(cls, v: str | None) -> str | None:
        return None if v is None else _check_password(v)
