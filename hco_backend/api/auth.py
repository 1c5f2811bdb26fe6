"""Administrator session endpoints."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Request, Response, status

from hco_backend.api.dependencies import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    get_current_admin,
    get_optional_admin,
    require_superadmin,
)
from hco_backend.config import get_settings
from hco_backend.models.admin import Admin
from hco_backend.models.auth import LoginRequest, LoginResult, RefreshRequest, RegisterRequest
from hco_backend.models.response import ApiResponse
from hco_backend.services.admin_service import AdminService
from hco_backend.services.auth_service import ACCESS_TOKEN_EXPIRE_MINUTES, REFRESH_TOKEN_EXPIRE_DAYS
from hco_backend.services.session_service import SessionService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])


def _cookie_options() -> dict:
    """Cookie attributes shared by set and clear.

    Production cookies are Secure and SameSite=None so the separately
    hosted frontend can send them; elsewhere SameSite=Lax.
    """
    settings = get_settings()
    samesite = settings.cookie_samesite or ("none" if settings.is_production else "lax")
    return {
        "httponly": True,
        "secure": settings.is_production or samesite == "none",
        "samesite": samesite,
        "domain": settings.cookie_domain or None,
        "path": "/",
    }


def _set_session_cookies(response: Response, result: LoginResult) -> None:
    options = _cookie_options()
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        result.access_token,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        **options,
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        result.refresh_token,
        max_age=REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        **options,
    )


def _clear_session_cookies(response: Response) -> None:
    options = _cookie_options()
    response.delete_cookie(ACCESS_TOKEN_COOKIE, **options)
    response.delete_cookie(REFRESH_TOKEN_COOKIE, **options)


def _session_payload(result: LoginResult) -> dict:
    return result.model_dump(mode="json", by_alias=True)


@router.post("/login")
async def login(request: LoginRequest, response: Response) -> ApiResponse:
    """Login with email or username and password.

    Tokens are returned both as HTTP-only cookies and in the body.

    Raises:
        InvalidCredentialsError 401: Unknown identifier or wrong password
    """
    result = await SessionService().login(request.login_identifier, request.password)
    _set_session_cookies(response, result)

    return ApiResponse(
        status_code=status.HTTP_200_OK,
        data=_session_payload(result),
        message="Login successful",
    )


@router.post("/logout")
async def logout(
    response: Response,
    current_admin: Admin = Depends(get_current_admin),
) -> ApiResponse:
    """Revoke the stored refresh token and clear both cookies."""
    await SessionService().logout(current_admin.id)
    _clear_session_cookies(response)

    return ApiResponse(
        status_code=status.HTTP_200_OK,
        data={},
        message="Logged out successfully",
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    actor: Optional[Admin] = Depends(get_optional_admin),
) -> ApiResponse:
    """Create an administrator. Does not log the new administrator in.

    Raises:
        ConflictError 409: Email or username already exists
        UnauthenticatedError 401 / ForbiddenError 403: Role assignment
            requires a superadmin
    """
    admin = await SessionService().register(
        name=request.name,
        email=request.email,
        username=request.username,
        password=request.password,
        role=request.role,
        actor=actor,
    )

    return ApiResponse(
        status_code=status.HTTP_201_CREATED,
        data=admin.model_dump(mode="json"),
        message="Admin registered successfully",
    )


@router.post("/refresh")
async def refresh(
    http_request: Request,
    response: Response,
    request: Optional[RefreshRequest] = None,
) -> ApiResponse:
    """Rotate the session: exchange a live refresh token for a new pair.

    The refresh token is read from the body, falling back to the cookie.
    """
    token = (request.refresh_token if request else None) or http_request.cookies.get(
        REFRESH_TOKEN_COOKIE
    )
    result = await SessionService().refresh(token)
    _set_session_cookies(response, result)

    return ApiResponse(
        status_code=status.HTTP_200_OK,
        data=_session_payload(result),
        message="Access token refreshed",
    )


@router.get("/me")
async def me(current_admin: Admin = Depends(get_current_admin)) -> ApiResponse:
    """Return the authenticated administrator."""
    return ApiResponse(
        status_code=status.HTTP_200_OK,
        data=current_admin.model_dump(mode="json"),
        message="Current admin",
    )


@router.get("/admins")
async def list_admins(
    current_admin: Admin = Depends(require_superadmin),
) -> ApiResponse:
    """List all administrators (superadmin only)."""
    admins = await AdminService().list_admins()
    return ApiResponse(
        status_code=status.HTTP_200_OK,
        data=[admin.model_dump(mode="json") for admin in admins],
        message="Admins fetched",
    )
