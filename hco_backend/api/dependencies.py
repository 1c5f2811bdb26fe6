"""FastAPI dependencies for authentication and authorization."""

from typing import Callable, Optional, Union

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hco_backend.exceptions import UnauthenticatedError
from hco_backend.models.admin import Admin, AdminRole
from hco_backend.services.session_service import SessionService, require_role

logger = structlog.get_logger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

# auto_error=False so a missing header falls through to the cookie
bearer_scheme = HTTPBearer(auto_error=False)


def extract_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    """Pick the access token: Authorization header first, then cookie."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


async def get_current_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Admin:
    """Authenticate the request and attach the admin to request.state.

    Raises:
        UnauthenticatedError: No token, or the admin no longer exists
        TokenExpiredError: Access token expired
        InvalidTokenError: Access token invalid
    """
    token = extract_access_token(request, credentials)
    admin = await SessionService().authenticate(token)
    request.state.admin = admin
    structlog.contextvars.bind_contextvars(admin_id=str(admin.id))
    return admin


async def get_optional_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Admin]:
    """Like get_current_admin, but an absent or unusable token means anonymous."""
    token = extract_access_token(request, credentials)
    if not token:
        return None

    try:
        return await get_current_admin(request, credentials)
    except UnauthenticatedError as e:
        logger.info("optional_auth_treated_as_anonymous", reason=e.code)
        return None


def require_roles(*roles: Union[AdminRole, str]) -> Callable:
    """Build a dependency that admits only the given roles.

    Example:
        @router.get("/admins", dependencies=[Depends(require_roles(AdminRole.SUPERADMIN))])
    """

    async def dependency(current_admin: Admin = Depends(get_current_admin)) -> Admin:
        return require_role(current_admin, roles)

    return dependency


require_superadmin = require_roles(AdminRole.SUPERADMIN)
