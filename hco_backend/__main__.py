"""CLI entry point.

Usage:
    python -m hco_backend <command> [OPTIONS]

Commands:
    create-admin    Create an administrator directly in the database
    set-password    Reset an administrator's password
    revoke-session  Clear an administrator's stored refresh token
    serve           Run the API with uvicorn
"""

from hco_backend.cli import cli


def main() -> None:
    """Entry point for ``python -m hco_backend``."""
    cli()


if __name__ == "__main__":
    main()
