"""Administrator persistence service."""

import asyncio
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import asyncpg
import structlog

from hco_backend.database import get_pool
from hco_backend.exceptions import ConflictError
from hco_backend.models.admin import Admin, AdminRole
from hco_backend.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

PUBLIC_COLUMNS = "id, name, email, username, role, created_at, updated_at"

# pg_advisory_xact_lock key serializing registrations into an empty table
BOOTSTRAP_LOCK_KEY = 0x48434F01


def _row_to_admin(row) -> Admin:
    return Admin(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        username=row["username"],
        role=row["role"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class AdminService:
    """Service for administrator CRUD and refresh-token storage.

    The ``refresh_token`` column is only ever changed by single-statement
    UPDATEs. Logins overwrite it unconditionally (last writer wins);
    rotation is a compare-and-set on the previous value.
    """

    def __init__(self):
        self.auth_service = AuthService()

    async def create_admin(
        self,
        name: str,
        email: str,
        username: str,
        password: str,
        role: AdminRole = AdminRole.ADMIN,
        only_if_empty: bool = False,
    ) -> Optional[Admin]:
        """Create a new administrator with a hashed password.

        Args:
            name: Display name
            email: Email address (stored lowercase)
            username: Unique username
            password: Plain-text password (will be hashed)
            role: Administrator role
            only_if_empty: Insert only while the table has no rows, under an
                advisory lock so concurrent bootstrap registrations serialize

        Returns:
            Created Admin model, or None when only_if_empty and the table
            already had an administrator

        Raises:
            ConflictError: If the email or username is already taken
        """
        admin_id = uuid4()
        now = datetime.now(timezone.utc)
        email = email.strip().lower()
        password_hash = await asyncio.to_thread(self.auth_service.hash_password, password)

        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    if only_if_empty:
                        await conn.execute("SELECT pg_advisory_xact_lock($1)", BOOTSTRAP_LOCK_KEY)
                        if await conn.fetchval("SELECT COUNT(*) FROM admins") > 0:
                            return None
                    await conn.execute(
                        """
                        INSERT INTO admins (id, name, email, username, password_hash, role, refresh_token, created_at, updated_at)
                        VALUES ($1, $2, $3, $4, $5, $6, NULL, $7, $8)
                        """,
                        admin_id,
                        name,
                        email,
                        username,
                        password_hash,
                        role.value,
                        now,
                        now,
                    )
        except asyncpg.UniqueViolationError as e:
            constraint = getattr(e, "constraint_name", None)
            logger.warning("admin_create_conflict", username=username, constraint=constraint)
            raise ConflictError(
                "Admin already exists with this email or username",
                detail=constraint,
            )

        logger.info(
            "admin_created",
            admin_id=str(admin_id),
            username=username,
            role=role.value,
        )

        return Admin(
            id=admin_id,
            name=name,
            email=email,
            username=username,
            role=role,
            created_at=now,
            updated_at=now,
        )

    async def get_by_identifier(self, identifier: str) -> Optional[tuple[Admin, str]]:
        """Get an administrator by email (case-insensitive) or username.

        An email match wins over a username match.

        Args:
            identifier: Email address or username

        Returns:
            Tuple of (Admin, password_hash) or None if not found
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {PUBLIC_COLUMNS}, password_hash
                FROM admins
                WHERE LOWER(email) = LOWER($1) OR username = $1
                ORDER BY (LOWER(email) = LOWER($1)) DESC
                LIMIT 1
                """,
                identifier,
            )

        if row is None:
            return None

        return _row_to_admin(row), row["password_hash"]

    async def get_by_id(self, admin_id: UUID) -> Optional[Admin]:
        """Get an administrator by UUID, without password or refresh token.

        Args:
            admin_id: Administrator UUID

        Returns:
            Admin model or None if not found
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {PUBLIC_COLUMNS} FROM admins WHERE id = $1",
                admin_id,
            )

        if row is None:
            return None

        return _row_to_admin(row)

    async def get_with_refresh_token(
        self, admin_id: UUID
    ) -> Optional[tuple[Admin, Optional[str]]]:
        """Get an administrator together with the stored refresh token.

        Returns:
            Tuple of (Admin, refresh_token or None) or None if not found
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {PUBLIC_COLUMNS}, refresh_token FROM admins WHERE id = $1",
                admin_id,
            )

        if row is None:
            return None

        return _row_to_admin(row), row["refresh_token"] or None

    async def find_conflict(self, email: str, username: str) -> Optional[str]:
        """Return which unique field is already taken, if any.

        Args:
            email: Candidate email (compared case-insensitively)
            username: Candidate username

        Returns:
            "email", "username" or None
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT LOWER(email) = LOWER($1) AS email_taken
                FROM admins
                WHERE LOWER(email) = LOWER($1) OR username = $2
                ORDER BY (LOWER(email) = LOWER($1)) DESC
                LIMIT 1
                """,
                email,
                username,
            )

        if row is None:
            return None
        return "email" if row["email_taken"] else "username"

    async def list_admins(self) -> list[Admin]:
        """Return all administrators ordered by creation date."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {PUBLIC_COLUMNS} FROM admins ORDER BY created_at ASC"
            )

        return [_row_to_admin(row) for row in rows]

    async def count_admins(self) -> int:
        """Count all administrators."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            count = await conn.fetchval("SELECT COUNT(*) FROM admins")

        return count

    async def set_refresh_token(self, admin_id: UUID, refresh_token: str) -> bool:
        """Overwrite the stored refresh token.

        Returns:
            True if the administrator exists and was updated
        """
        return await self._write_refresh_token(admin_id, refresh_token)

    async def clear_refresh_token(self, admin_id: UUID) -> bool:
        """Remove the stored refresh token, ending the session.

        Returns:
            True if the administrator exists (clearing an already empty
            value still counts)
        """
        return await self._write_refresh_token(admin_id, None)

    async def rotate_refresh_token(self, admin_id: UUID, current: str, new: str) -> bool:
        """Replace the stored refresh token only if it still equals ``current``.

        Returns:
            True if this call won the rotation
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                "UPDATE admins SET refresh_token = $1 WHERE id = $2 AND refresh_token = $3",
                new,
                admin_id,
                current,
            )

        return result == "UPDATE 1"

    async def _write_refresh_token(self, admin_id: UUID, value: Optional[str]) -> bool:
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                "UPDATE admins SET refresh_token = $1 WHERE id = $2",
                value,
                admin_id,
            )

        return result == "UPDATE 1"

    async def update_password(self, admin_id: UUID, password: str) -> bool:
        """Re-hash and store a new password.

        Returns:
            True if the administrator was updated, False if not found
        """
        password_hash = await asyncio.to_thread(self.auth_service.hash_password, password)
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                "UPDATE admins SET password_hash = $1, updated_at = $2 WHERE id = $3",
                password_hash,
                now,
                admin_id,
            )

        updated = result == "UPDATE 1"
        if updated:
            logger.info("admin_password_updated", admin_id=str(admin_id))
        else:
            logger.warning("admin_password_update_not_found", admin_id=str(admin_id))
        return updated
