"""Unit tests for the administrator CLI."""

import asyncio
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from hco_backend.cli import cli


def _run_inline(operation):
    return asyncio.run(operation())


@pytest.fixture
def runner(admin_store):
    """CliRunner with the database replaced by the in-memory store."""
    with (
        patch("hco_backend.cli._run_with_database", side_effect=_run_inline),
        patch("hco_backend.cli.AdminService", return_value=admin_store),
    ):
        yield CliRunner()


class TestCreateAdmin:
    """Tests for the create-admin command."""

    def test_creates_superadmin(self, runner, admin_store):
        result = runner.invoke(
            cli,
            [
                "create-admin",
                "--name", "Founder",
                "--email", "Founder@Example.org",
                "--username", "founder",
                "--role", "superadmin",
                "--password", "strong-password-123",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Created superadmin founder" in result.output
        (row,) = admin_store.rows.values()
        assert row["email"] == "founder@example.org"
        assert row["role"] == "superadmin"

    def test_invalid_email(self, runner, admin_store):
        result = runner.invoke(
            cli,
            [
                "create-admin",
                "--name", "Founder",
                "--email", "not-an-email",
                "--username", "founder",
                "--password", "strong-password-123",
            ],
        )

        assert result.exit_code == 2
        assert "Invalid email" in result.output
        assert admin_store.rows == {}

    def test_duplicate(self, runner, existing_admin):
        result = runner.invoke(
            cli,
            [
                "create-admin",
                "--name", "Copy",
                "--email", "admin@example.org",
                "--username", "copyuser",
                "--password", "strong-password-123",
            ],
        )

        assert result.exit_code == 1
        assert "already exists with this email" in result.output

    def test_unknown_role(self, runner):
        result = runner.invoke(
            cli,
            [
                "create-admin",
                "--name", "X",
                "--email", "x@example.org",
                "--username", "xuser",
                "--role", "owner",
                "--password", "strong-password-123",
            ],
        )

        assert result.exit_code == 2


class TestSetPassword:
    """Tests for the set-password command."""

    def test_updates_password(self, runner, admin_store, existing_admin):
        with patch.object(admin_store, "update_password", return_value=True) as update:
            result = runner.invoke(
                cli, ["set-password", "siteadmin", "--password", "brand-new-password"]
            )

        assert result.exit_code == 0, result.output
        assert "Password updated for siteadmin" in result.output
        update.assert_awaited_once_with(existing_admin.id, "brand-new-password")

    def test_unknown_admin(self, runner):
        result = runner.invoke(cli, ["set-password", "ghost", "--password", "brand-new-password"])

        assert result.exit_code == 1
        assert "No admin found for ghost" in result.output

    def test_short_password(self, runner, existing_admin):
        result = runner.invoke(cli, ["set-password", "siteadmin", "--password", "short"])

        assert result.exit_code == 2


class TestRevokeSession:
    """Tests for the revoke-session command."""

    def test_clears_refresh_token(self, runner, admin_store, existing_admin):
        admin_store.rows[existing_admin.id]["refresh_token"] = "live-token"

        result = runner.invoke(cli, ["revoke-session", "admin@example.org"])

        assert result.exit_code == 0, result.output
        assert admin_store.stored_refresh_token(existing_admin.id) is None

    def test_unknown_admin(self, runner):
        result = runner.invoke(cli, ["revoke-session", "ghost"])

        assert result.exit_code == 1


class TestServe:
    """Tests for the serve command."""

    def test_runs_uvicorn(self, runner):
        with patch("uvicorn.run") as run:
            result = runner.invoke(cli, ["serve", "--port", "9001"])

        assert result.exit_code == 0, result.output
        run.assert_called_once_with("hco_backend.main:app", host="0.0.0.0", port=9001, reload=False)
