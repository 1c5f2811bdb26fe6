"""Auth request and response models with validation."""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hco_backend.models.admin import Admin, AdminRole

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

USERNAME_MIN_LENGTH = 4
PASSWORD_MIN_LENGTH = 8


class LoginRequest(BaseModel):
    """Login credentials.

    The identifier may arrive as ``identifier``, ``email`` or ``username``;
    the first non-empty one wins in that order.
    """

    identifier: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def identifier_present(self) -> "LoginRequest":
        """Require at least one of identifier, email or username."""
        if not self.login_identifier:
            raise ValueError("Email or username is required")
        return self

    @property
    def login_identifier(self) -> Optional[str]:
        for value in (self.identifier, self.email, self.username):
            if value and value.strip():
                return value.strip()
        return None


class RegisterRequest(BaseModel):
    """New administrator registration.

    Attributes:
        name: Display name (trimmed, non-empty)
        email: Email address, normalized to lowercase
        username: Unique username (min 4 chars)
        password: Plain-text password (min 8 chars, hashed before storage)
        role: Optional role, defaults to admin
    """

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=320)
    username: str = Field(..., min_length=USERNAME_MIN_LENGTH, max_length=100)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    role: Optional[AdminRole] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blank names."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Name cannot be empty or whitespace only")
        return stripped

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        """Normalize to lowercase and check the basic address shape."""
        normalized = v.strip().lower()
        if not EMAIL_PATTERN.fullmatch(normalized):
            raise ValueError("Please use a valid email address")
        return normalized

    @field_validator("username")
    @classmethod
    def username_not_padded(cls, v: str) -> str:
        """Reject usernames that only reach the minimum length with whitespace."""
        stripped = v.strip()
        if len(stripped) < USERNAME_MIN_LENGTH:
            raise ValueError(
                f"Username must be at least {USERNAME_MIN_LENGTH} characters"
            )
        return stripped

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        """Ensure password is not whitespace only."""
        if not v.strip():
            raise ValueError("Password cannot be empty or whitespace only")
        return v


class RefreshRequest(BaseModel):
    """Refresh token supplied in the body instead of the cookie."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")


class LoginResult(BaseModel):
    """Freshly minted token pair and the administrator it belongs to."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")
    user: Admin
