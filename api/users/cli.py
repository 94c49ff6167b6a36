"""
Command line tool for creating users without going through the HTTP API.

    user-cli create-user
"""

from __future__ import annotations

import asyncio

import asyncpg
import typer
from pydantic import ValidationError

from core import db
from core.log import configure_logging
from core.settings import ConfigError, PasswordSettings, load_password_settings

from . import repository, schemas, service
from .service import UserOutcome, UserResult

app = typer.Typer(name="user-cli", help="User management commands.", no_args_is_help=True)


@app.callback()
def main() -> None:
    """
    User management commands.
    """


async def _create_user(payload: schemas.CreateUserRequest, settings: PasswordSettings) -> UserResult:
    await db.init_pool()
    try:
        await repository.ensure_schema()
        return await service.create_user(payload, settings=settings)
    finally:
        await db.close_pool()


@app.command("create-user")
def create_user(
    username: str = typer.Option(..., prompt=True, help="Unique login name."),
    email: str = typer.Option(..., prompt=True, help="Unique email address."),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    first_name: str = typer.Option("", prompt="First name"),
    last_name: str = typer.Option("", prompt="Last name"),
) -> None:
    """Create a user interactively."""
    configure_logging()

    try:
        settings = load_password_settings()
        payload = schemas.CreateUserRequest(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
        )
    except ConfigError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except ValidationError as exc:
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"])
            typer.secho(f"Error: {field}: {error['msg']}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    try:
        result = asyncio.run(_create_user(payload, settings))
    except (RuntimeError, OSError, asyncpg.PostgresError) as exc:
        typer.secho(f"Unexpected error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if result.outcome is UserOutcome.DUPLICATE_USERNAME:
        typer.secho(f"Error: Username '{payload.username}' already exists.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if result.outcome is UserOutcome.DUPLICATE_EMAIL:
        typer.secho(f"Error: Email '{payload.email}' already exists.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    user = result.user
    typer.secho("User created successfully!", fg=typer.colors.GREEN)
    typer.echo(f"  ID: {user.id}")
    typer.echo(f"  Username: {user.username}")
    typer.echo(f"  Email: {user.email}")
    typer.echo(f"  Name: {user.first_name} {user.last_name}".rstrip())
    typer.echo(f"  Created At: {user.created_at.isoformat()}")


if __name__ == "__main__":
    app()
