"""Models package exports."""

from hco_backend.models.admin import Admin, AdminRole
from hco_backend.models.auth import LoginRequest, LoginResult, RefreshRequest, RegisterRequest
from hco_backend.models.response import ApiResponse, ErrorResponse

__all__ = [
    "Admin",
    "AdminRole",
    "ApiResponse",
    "ErrorResponse",
    "LoginRequest",
    "LoginResult",
    "RefreshRequest",
    "RegisterRequest",
]
