"""Services package exports."""

from hco_backend.services.admin_service import AdminService
from hco_backend.services.auth_service import AuthService
from hco_backend.services.logging_service import configure_logging, get_logger
from hco_backend.services.session_service import SessionService, require_role

__all__ = [
    "AdminService",
    "AuthService",
    "SessionService",
    "configure_logging",
    "get_logger",
    "require_role",
]
