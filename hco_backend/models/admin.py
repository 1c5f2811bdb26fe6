"""Administrator models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class AdminRole(str, Enum):
    """Closed set of administrator roles."""

    ADMIN = "admin"
    SUPERADMIN = "superadmin"
    MODERATOR = "moderator"


class Admin(BaseModel):
    """Public view of an administrator.

    Never carries the password hash or the stored refresh token.
    """

    id: UUID
    name: str
    email: str
    username: str
    role: AdminRole = AdminRole.ADMIN
    created_at: datetime
    updated_at: datetime
