"""Click CLI for operating the messenger service."""

from __future__ import annotations

import asyncio
import sys

import asyncpg
import click
import uvicorn

from messenger.config import get_settings
from messenger.services.logging_service import configure_logging


@click.group()
def cli() -> None:
    """Messenger service administration."""
    pass


async def _create_admin(username: str, password: str) -> bool:
    from messenger.database import close_database, init_database, run_migrations
    from messenger.services.user_service import UserService

    await init_database()
    try:
        await run_migrations()
        await UserService().create_user(
            username=username,
            password=password,
            is_admin=True,
            is_verified=True,
        )
    except asyncpg.UniqueViolationError:
        return False
    finally:
        await close_database()
    return True


@cli.command("create-admin")
@click.argument("username")
@click.password_option(help="Password for the new admin (prompted when omitted).")
def create_admin(username: str, password: str) -> None:
    """Create a verified admin account.

    This is the only way to grant admin rights; the web endpoints never do.
    """
    configure_logging(get_settings().log_level)

    if not asyncio.run(_create_admin(username, password)):
        click.echo(f"Username '{username}' already exists", err=True)
        sys.exit(1)

    click.echo(f"Admin '{username}' created")


@cli.command()
@click.option("--host", default=None, help="Host to bind (default: HOST setting).")
@click.option("--port", default=None, type=int, help="Port to bind (default: PORT setting).")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the web server."""
    settings = get_settings()
    uvicorn.run(
        "messenger.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    cli()
