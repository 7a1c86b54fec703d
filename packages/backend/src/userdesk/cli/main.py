"""userdesk CLI — operator tasks that talk to the store directly.

Usage:
    userdesk init-db                                   # Create tables (dev; prod uses alembic)
    userdesk create-user --email a@b.co --name Ann --role admin
    userdesk sync-user --identity gh|42 --email a@b.co # Upsert an external-identity account
    userdesk set-status 7 inactive                     # Activate / deactivate
    userdesk list-users --page 2 --limit 20            # Admin directory as JSON
    userdesk serve                                     # Run the API with uvicorn

Every command reads USERDESK_* env vars, same as the server.
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Awaitable, Callable, TypeVar

import click

from userdesk.auth.password import PasswordHasher
from userdesk.config import Settings
from userdesk.db.models import UserRole, UserStatus
from userdesk.errors import AccountError
from userdesk.log import configure_logging
from userdesk.schemas.user import UserRead
from userdesk.services.account_service import AccountService
from userdesk.store import SqlUserStore, UserStore, build_store

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(settings: Settings, action: Callable[[UserStore], Awaitable[T]]) -> T:
    """Open a store, run one async action against it, always close it."""

    async def _main() -> T:
        store = build_store(settings)
        try:
            return await action(store)
        finally:
            await store.close()

    try:
        return asyncio.run(_main())
    except AccountError as e:
        click.secho(f"Error ({e.kind.value}): {e.message}", fg="red", err=True)
        sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log INFO events to stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """userdesk account administration."""
    configure_logging("INFO" if verbose else "WARNING", stream=sys.stderr)
    ctx.obj = Settings()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@cli.command("init-db")
@click.pass_obj
def init_db(settings: Settings) -> None:
    """Create the users table from the ORM models."""

    async def action(store: UserStore) -> None:
        if not isinstance(store, SqlUserStore):
            raise click.UsageError("init-db needs a SQL database_url")
        await store.init_schema()

    _run(settings, action)
    click.secho("Tables created.", fg="green")


@cli.command("create-user")
@click.option("--email", required=True)
@click.option("--name", required=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option(
    "--role",
    type=click.Choice([r.value for r in UserRole]),
    default=UserRole.USER.value,
    show_default=True,
)
@click.pass_obj
def create_user(settings: Settings, email: str, name: str, password: str, role: str) -> None:
    """Create an active local account (the only way to mint a local admin)."""

    async def action(store: UserStore):
        svc = AccountService(store, PasswordHasher(rounds=settings.bcrypt_rounds))
        return await svc.provision_user(name, email, password, role=UserRole(role))

    user = _run(settings, action)
    click.echo(_pretty_json(user.model_dump(mode="json")))


@cli.command("sync-user")
@click.option("--identity", required=True, help="Subject from the identity provider.")
@click.option("--email", default=None)
@click.option("--name", default=None)
@click.option("--login-method", default=None)
@click.pass_obj
def sync_user(settings: Settings, identity: str, email, name, login_method) -> None:
    """Upsert an external-identity account (owner identity becomes admin)."""

    async def action(store: UserStore):
        svc = AccountService(
            store,
            PasswordHasher(rounds=settings.bcrypt_rounds),
            owner_identity=settings.owner_identity,
        )
        return await svc.sync_external_user(
            identity, email=email, name=name, login_method=login_method
        )

    user = _run(settings, action)
    click.echo(_pretty_json(user.model_dump(mode="json")))


@cli.command("set-status")
@click.argument("user_id", type=int)
@click.argument("status", type=click.Choice([s.value for s in UserStatus]))
@click.pass_obj
def set_status(settings: Settings, user_id: int, status: str) -> None:
    """Activate or deactivate an account by id."""

    async def action(store: UserStore):
        return await store.update_fields(user_id, {"status": UserStatus(status)})

    if _run(settings, action) is None:
        click.secho(f"No user with id {user_id}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"User {user_id} is now {status}.", fg="green")


@cli.command("list-users")
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--limit", type=click.IntRange(min=1), default=10, show_default=True)
@click.pass_obj
def list_users(settings: Settings, page: int, limit: int) -> None:
    """Print one page of the user directory."""

    async def action(store: UserStore):
        users = await store.list_page(limit, (page - 1) * limit)
        return users, await store.count()

    users, total = _run(settings, action)
    click.echo(
        _pretty_json(
            {
                "users": [UserRead.model_validate(u).model_dump(mode="json") for u in users],
                "total": total,
                "page": page,
                "limit": limit,
            }
        )
    )


@cli.command()
@click.option("--reload", is_flag=True, help="Auto-reload on code changes.")
@click.pass_obj
def serve(settings: Settings, reload: bool) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(
        "userdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload,
    )


if __name__ == "__main__":
    cli()
