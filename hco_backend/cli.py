"""Click CLI for direct administrator maintenance.

These commands talk to the database directly and bypass the HTTP role
gate. Use them to create the first superadmin, reset a password, or force
an administrator's session to end.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Awaitable, Callable, TypeVar

import click
from pydantic import ValidationError

from hco_backend.config import get_settings
from hco_backend.exceptions import SessionError
from hco_backend.models.admin import AdminRole
from hco_backend.models.auth import PASSWORD_MIN_LENGTH, RegisterRequest
from hco_backend.services.admin_service import AdminService
from hco_backend.services.logging_service import configure_logging

T = TypeVar("T")


def _run_with_database(operation: Callable[[], Awaitable[T]]) -> T:
    """Run one async operation inside an initialized database pool."""
    from hco_backend.database import close_database, init_database, run_migrations

    async def _main() -> T:
        await init_database()
        try:
            await run_migrations()
            return await operation()
        finally:
            await close_database()

    return asyncio.run(_main())


@click.group()
def cli() -> None:
    """HCO backend administration."""
    configure_logging(get_settings().log_level)


@cli.command("create-admin")
@click.option("--name", required=True, help="Display name.")
@click.option("--email", required=True, help="Email address.")
@click.option("--username", required=True, help="Username (min 4 characters).")
@click.option(
    "--role",
    type=click.Choice([r.value for r in AdminRole]),
    default=AdminRole.ADMIN.value,
    show_default=True,
    help="Administrator role.",
)
@click.password_option(help=f"Password (min {PASSWORD_MIN_LENGTH} characters).")
def create_admin(name: str, email: str, username: str, role: str, password: str) -> None:
    """Create an administrator directly in the database."""
    try:
        request = RegisterRequest(
            name=name,
            email=email,
            username=username,
            password=password,
            role=AdminRole(role),
        )
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            click.echo(f"Invalid {field}: {error['msg']}", err=True)
        sys.exit(2)

    async def _create():
        service = AdminService()
        conflict = await service.find_conflict(request.email, request.username)
        if conflict is not None:
            raise click.ClickException(f"Admin already exists with this {conflict}")
        return await service.create_admin(
            name=request.name,
            email=request.email,
            username=request.username,
            password=request.password,
            role=request.role,
        )

    try:
        admin = _run_with_database(_create)
    except SessionError as e:
        raise click.ClickException(e.message)

    click.echo(f"Created {admin.role.value} {admin.username} ({admin.id})")


@cli.command("set-password")
@click.argument("identifier")
@click.password_option(help=f"New password (min {PASSWORD_MIN_LENGTH} characters).")
def set_password(identifier: str, password: str) -> None:
    """Reset the password of the admin with this email or username."""
    if len(password) < PASSWORD_MIN_LENGTH or not password.strip():
        click.echo(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters", err=True
        )
        sys.exit(2)

    async def _update() -> bool:
        service = AdminService()
        found = await service.get_by_identifier(identifier)
        if found is None:
            return False
        admin, _ = found
        return await service.update_password(admin.id, password)

    if not _run_with_database(_update):
        raise click.ClickException(f"No admin found for {identifier}")

    click.echo(f"Password updated for {identifier}")


@cli.command("revoke-session")
@click.argument("identifier")
def revoke_session(identifier: str) -> None:
    """Clear the stored refresh token of the admin with this email or username."""

    async def _revoke() -> bool:
        service = AdminService()
        found = await service.get_by_identifier(identifier)
        if found is None:
            return False
        admin, _ = found
        return await service.clear_refresh_token(admin.id)

    if not _run_with_database(_revoke):
        raise click.ClickException(f"No admin found for {identifier}")

    click.echo(f"Session revoked for {identifier}")


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", type=int, default=None, help="Defaults to PORT from settings.")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes.")
def serve(host: str, port: int | None, reload: bool) -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "hco_backend.main:app",
        host=host,
        port=port or get_settings().port,
        reload=reload,
    )
