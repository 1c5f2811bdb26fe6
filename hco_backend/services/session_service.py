"""Session authority: login, logout, registration, refresh and request auth.

Each administrator has at most one live refresh token, stored on the admin
row. Login and refresh overwrite it, logout clears it, and a refresh token
is only honored while it equals the stored value. A second device logging
in therefore ends the first device's session.
"""

import asyncio
import hmac
from typing import Iterable, Optional, Union
from uuid import UUID

import structlog

from hco_backend.config import get_settings
from hco_backend.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    UnauthenticatedError,
)
from hco_backend.models.admin import Admin, AdminRole
from hco_backend.models.auth import LoginResult
from hco_backend.services.admin_service import AdminService
from hco_backend.services.auth_service import AuthService

logger = structlog.get_logger(__name__)


def require_role(
    admin: Optional[Admin],
    allowed_roles: Iterable[Union[AdminRole, str]],
) -> Admin:
    """Check that an authenticated administrator holds one of the roles.

    Roles are compared case-insensitively.

    Raises:
        UnauthenticatedError: If no administrator context is present
        ForbiddenError: If the role is not in allowed_roles
    """
    if admin is None:
        raise UnauthenticatedError("Admin not authenticated")

    allowed = {
        (role.value if isinstance(role, AdminRole) else str(role)).lower()
        for role in allowed_roles
    }
    if admin.role.value.lower() not in allowed:
        logger.warning(
            "admin_role_forbidden",
            admin_id=str(admin.id),
            role=admin.role.value,
            allowed=sorted(allowed),
        )
        raise ForbiddenError(f"Access denied. Requires role: {', '.join(sorted(allowed))}")

    return admin


def _subject(payload: dict) -> UUID:
    try:
        return UUID(str(payload["sub"]))
    except (KeyError, ValueError):
        raise InvalidTokenError("Invalid token payload")


class SessionService:
    """Session authority over administrator credentials and tokens."""

    def __init__(self):
        self.settings = get_settings()
        self.auth_service = AuthService()
        self.admin_service = AdminService()

    async def login(self, identifier: str, password: str) -> LoginResult:
        """Verify credentials and start a new session.

        Args:
            identifier: Email (case-insensitive) or username
            password: Plain-text candidate password

        Returns:
            LoginResult with a fresh token pair and the public admin view

        Raises:
            InvalidCredentialsError: Unknown identifier or wrong password
        """
        result = await self.admin_service.get_by_identifier(identifier)

        if result is None:
            await asyncio.to_thread(self.auth_service.verify_unknown_password, password)
            logger.warning("admin_login_failed", reason="unknown_identifier")
            raise InvalidCredentialsError()

        admin, password_hash = result

        valid = await asyncio.to_thread(
            self.auth_service.verify_password, password, password_hash
        )
        if not valid:
            logger.warning("admin_login_failed", reason="bad_password", admin_id=str(admin.id))
            raise InvalidCredentialsError()

        login_result = await self._issue_tokens(admin)
        logger.info("admin_logged_in", admin_id=str(admin.id), username=admin.username)
        return login_result

    async def logout(self, admin_id: UUID) -> None:
        """Clear the stored refresh token.

        Access tokens stay valid until they expire, so calling this twice
        with the same access token succeeds both times; the second call
        clears an already empty value.
        """
        found = await self.admin_service.clear_refresh_token(admin_id)
        if not found:
            logger.warning("admin_logout_not_found", admin_id=str(admin_id))
            raise UnauthenticatedError("Admin not found")

        logger.info("admin_logged_out", admin_id=str(admin_id))

    async def register(
        self,
        name: str,
        email: str,
        username: str,
        password: str,
        role: Optional[AdminRole] = None,
        actor: Optional[Admin] = None,
    ) -> Admin:
        """Create an administrator without starting a session.

        Assigning any role other than admin needs an authenticated
        superadmin actor. With open registration disabled, every
        registration needs one. Both gates are skipped while no
        administrator exists yet so the first account can be created.

        Raises:
            UnauthenticatedError: Gate applies and no actor was supplied
            ForbiddenError: Gate applies and the actor is not a superadmin
            ConflictError: Email or username already in use
        """
        role = role or AdminRole.ADMIN
        email = email.strip().lower()

        gated = role != AdminRole.ADMIN or not self.settings.allow_open_registration
        bootstrap = False
        if gated:
            if await self.admin_service.count_admins() > 0:
                require_role(actor, [AdminRole.SUPERADMIN])
            else:
                bootstrap = True

        conflict = await self.admin_service.find_conflict(email, username)
        if conflict is not None:
            logger.warning("admin_register_conflict", field=conflict, username=username)
            raise ConflictError(f"Admin already exists with this {conflict}")

        admin = await self.admin_service.create_admin(
            name=name,
            email=email,
            username=username,
            password=password,
            role=role,
            only_if_empty=bootstrap,
        )

        if admin is None:
            # Another registration took the bootstrap slot first
            logger.info("admin_bootstrap_lost", username=username)
            require_role(actor, [AdminRole.SUPERADMIN])
            admin = await self.admin_service.create_admin(
                name=name,
                email=email,
                username=username,
                password=password,
                role=role,
            )

        logger.info(
            "admin_registered",
            admin_id=str(admin.id),
            role=admin.role.value,
            registered_by=str(actor.id) if actor else None,
        )
        return admin

    async def authenticate(self, token: Optional[str]) -> Admin:
        """Resolve an access token to the administrator it was issued for.

        Raises:
            UnauthenticatedError: No token, or the admin no longer exists
            TokenExpiredError: Token is past its expiry
            InvalidTokenError: Bad signature, structure or token type
        """
        if not token:
            raise UnauthenticatedError("Authentication token missing")

        payload = self.auth_service.validate_access_token(token)
        admin_id = _subject(payload)

        admin = await self.admin_service.get_by_id(admin_id)
        if admin is None:
            logger.warning("admin_token_orphaned", admin_id=str(admin_id))
            raise UnauthenticatedError("Admin not found - invalid token")

        return admin

    async def refresh(self, refresh_token: Optional[str]) -> LoginResult:
        """Exchange a live refresh token for a new pair, revoking the old one.

        Raises:
            UnauthenticatedError: No token supplied
            TokenExpiredError: Refresh token is past its expiry
            InvalidTokenError: Bad signature, or no longer the stored value
        """
        if not refresh_token:
            raise UnauthenticatedError("Refresh token missing")

        payload = self.auth_service.validate_refresh_token(refresh_token)
        admin_id = _subject(payload)

        result = await self.admin_service.get_with_refresh_token(admin_id)
        stored = result[1] if result else None

        if stored is None or not hmac.compare_digest(stored, refresh_token):
            logger.warning(
                "refresh_token_rejected",
                admin_id=str(admin_id),
                reason="admin_missing" if result is None else "not_current",
            )
            raise InvalidTokenError("Refresh token is revoked or already used")

        admin = result[0]
        login_result = await self._issue_tokens(admin, previous=refresh_token)
        logger.info("refresh_token_rotated", admin_id=str(admin.id))
        return login_result

    async def _issue_tokens(self, admin: Admin, previous: Optional[str] = None) -> LoginResult:
        """Mint a token pair and store the refresh half on the admin row.

        With ``previous`` the write only lands while that token is still the
        stored one, so of two concurrent refreshes with the same token only
        one gets a new pair.
        """
        admin_id = str(admin.id)
        access_token = self.auth_service.create_access_token(
            admin_id=admin_id,
            email=admin.email,
            role=admin.role.value,
        )
        refresh_token = self.auth_service.create_refresh_token(admin_id)

        if previous is None:
            if not await self.admin_service.set_refresh_token(admin.id, refresh_token):
                raise NotFoundError("Admin not found")
        elif not await self.admin_service.rotate_refresh_token(
            admin.id, previous, refresh_token
        ):
            logger.warning("refresh_token_rejected", admin_id=admin_id, reason="lost_rotation")
            raise InvalidTokenError("Refresh token is revoked or already used")

        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token,
            user=admin,
        )
