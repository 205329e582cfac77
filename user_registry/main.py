from __future__ import annotations

import asyncio
import sys
from typing import Awaitable, Callable, Dict, Type, TypeVar

import typer

from user_registry.config import get_settings
from user_registry.domain.errors import (
    DuplicateEmail,
    ExportFailed,
    NotFound,
    RegistryError,
    StoreUnavailable,
    ValidationError,
)
from user_registry.lifecycle import LifecycleController, build_controller
from user_registry.reporter import print_seed_report, print_users
from user_registry.utils.logging import configure_logging

app = typer.Typer(help="User Registry CLI: a local SQLite user list seeded from JSON.")

T = TypeVar("T")

EXIT_CODES: Dict[Type[RegistryError], int] = {
    ValidationError: 2,
    DuplicateEmail: 2,
    StoreUnavailable: 3,
    NotFound: 4,
    ExportFailed: 5,
}


def _exit_code(exc: RegistryError) -> int:
    for cls in type(exc).__mro__:
        if cls in EXIT_CODES:
            return EXIT_CODES[cls]
    return 1


def _run(action: Callable[[LifecycleController], Awaitable[T]]) -> T:
    """
    Initialize the registry (seeding on first run), run `action`, and close.

    Registry errors become a one-line message on stderr and a typed exit code.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    async def _session() -> T:
        async with build_controller(settings) as registry:
            if registry.first_run and registry.last_seed_report is not None:
                print_seed_report(registry.last_seed_report)
            return await action(registry)

    try:
        return asyncio.run(_session())
    except RegistryError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=_exit_code(exc)) from None


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"db={settings.db_path} | export={settings.export_path} | "
        f"seed={settings.seed_path or 'bundled'} | env={settings.app_env}"
    )


@app.command()
def init() -> None:
    """
    Open the store, seeding it on the first run only.
    """

    async def action(registry: LifecycleController) -> None:
        if not registry.first_run:
            typer.echo(f"Registry already initialized ({len(registry.view)} users).")

    _run(action)


@app.command("list")
def list_users() -> None:
    """
    List every user, newest first.
    """

    async def action(registry: LifecycleController) -> None:
        print_users(await registry.list_all())

    _run(action)


@app.command()
def search(term: str = typer.Argument(..., help="Substring of name or email.")) -> None:
    """
    Search users by name or email (case-insensitive).
    """

    async def action(registry: LifecycleController) -> None:
        print_users(await registry.search(term), title=f"Matches for '{term}'")

    _run(action)


@app.command()
def add(
    name: str = typer.Argument(..., help="Full name."),
    email: str = typer.Argument(..., help="Email address (must be unique)."),
) -> None:
    """
    Add a new user.
    """

    async def action(registry: LifecycleController) -> None:
        record = await registry.add(name, email)
        typer.echo(f"User added successfully (#{record.id}).")

    _run(action)


@app.command()
def update(
    record_id: int = typer.Argument(..., help="Id of the user to edit."),
    name: str = typer.Argument(..., help="New full name."),
    email: str = typer.Argument(..., help="New email address."),
) -> None:
    """
    Replace a user's name and email.
    """

    async def action(registry: LifecycleController) -> None:
        record = await registry.update(record_id, name, email)
        typer.echo(f"User #{record.id} updated successfully.")

    _run(action)


@app.command()
def delete(
    record_id: int = typer.Argument(..., help="Id of the user to delete."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """
    Delete one user.
    """
    if not yes:
        typer.confirm(f"Are you sure you want to delete user #{record_id}?", abort=True)

    async def action(registry: LifecycleController) -> None:
        if await registry.delete(record_id):
            typer.echo(f"User #{record_id} deleted successfully.")
        else:
            typer.echo(f"No user #{record_id}; nothing deleted.")

    _run(action)


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """
    Delete all users. This cannot be undone (except by `reset`).
    """
    if not yes:
        typer.confirm("Are you sure you want to delete all users?", abort=True)

    async def action(registry: LifecycleController) -> None:
        removed = await registry.clear_all()
        typer.echo(f"All users deleted successfully ({removed} removed).")

    _run(action)


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """
    Reset the registry to the seed data. All changes will be lost.
    """
    if not yes:
        typer.confirm(
            "Are you sure you want to reset the registry to its original state?", abort=True
        )

    async def action(registry: LifecycleController) -> None:
        result = await registry.reset()
        if result.seed_report is not None:
            print_seed_report(result.seed_report)
        typer.echo("Registry reset to original state.")

    _run(action)


@app.command()
def export() -> None:
    """
    Write all users to a JSON file and print its path.
    """

    async def action(registry: LifecycleController) -> None:
        path = await registry.export()
        typer.echo(f"Data exported to {path}")

    _run(action)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
