"""Test fixtures — an in-memory store injected into services and the app.

Learn: The store client is an explicit constructor argument everywhere
(services, create_app), so tests hand over an InMemoryUserStore instead
of patching module globals or needing a database. bcrypt runs at its
minimum cost (4 rounds) to keep the suite fast.

Store-level tests additionally run against SQLite (aiosqlite) so the
real unique constraints are exercised.
"""

from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from userdesk.auth.jwt import create_session_token
from userdesk.auth.password import PasswordHasher
from userdesk.config import Settings
from userdesk.db.models import LOCAL_LOGIN_METHOD, UserRole, UserStatus
from userdesk.main import create_app
from userdesk.services.account_service import AccountService, new_local_identity
from userdesk.services.user_service import UserService
from userdesk.store import InMemoryUserStore, SqlUserStore
from userdesk.store.base import UserRecord

OWNER_IDENTITY = "oidc|owner-0001"
STRONG_PASSWORD = "Str0ng!Pass"


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "memory://",
        "jwt_secret": "test-secret",
        "bcrypt_rounds": 4,
        "owner_identity": OWNER_IDENTITY,
        "environment": "development",
    }
    values.update(overrides)
    return Settings(**values)


class RecordingStore(InMemoryUserStore):
    """In-memory store that remembers which queries it was asked."""

    def __init__(self):
        super().__init__()
        self.calls: list[tuple] = []

    async def find_by_email(self, email):
        self.calls.append(("find_by_email", email))
        return await super().find_by_email(email)

    async def insert(self, fields):
        self.calls.append(("insert", fields.get("email")))
        return await super().insert(fields)

    async def update_fields(self, user_id, fields):
        self.calls.append(("update_fields", user_id, tuple(sorted(fields))))
        return await super().update_fields(user_id, fields)

    async def list_page(self, limit, offset):
        self.calls.append(("list_page", limit, offset))
        return await super().list_page(limit, offset)

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture()
def accounts(store, hasher) -> AccountService:
    return AccountService(store, hasher, owner_identity=OWNER_IDENTITY)


@pytest.fixture()
def users(store, hasher) -> UserService:
    return UserService(store, hasher)


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def any_store(request):
    """Each store implementation, empty."""
    if request.param == "memory":
        yield InMemoryUserStore()
        return

    sql_store = SqlUserStore.from_settings(
        make_settings(database_url="sqlite+aiosqlite://")
    )
    await sql_store.init_schema()
    try:
        yield sql_store
    finally:
        await sql_store.close()


async def seed_user(
    store,
    hasher: PasswordHasher,
    email: str,
    password: Optional[str] = STRONG_PASSWORD,
    role: UserRole = UserRole.USER,
    status: UserStatus = UserStatus.ACTIVE,
    name: str = "Seeded User",
) -> UserRecord:
    """Insert a local account straight into the store."""
    return await store.insert(
        {
            "identity": new_local_identity(),
            "email": email,
            "name": name,
            "password_hash": await hasher.hash(password) if password else None,
            "login_method": LOCAL_LOGIN_METHOD,
            "role": role,
            "status": status,
        }
    )


def auth_headers(user: UserRecord, settings: Settings) -> dict:
    return {"Authorization": f"Bearer {create_session_token(user.identity, settings)}"}


@pytest.fixture()
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client against the app, no lifespan, in-memory store."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def member(store, hasher) -> UserRecord:
    return await seed_user(store, hasher, "member@example.com", name="Member")


@pytest_asyncio.fixture()
async def admin(store, hasher) -> UserRecord:
    return await seed_user(
        store, hasher, "admin@example.com", role=UserRole.ADMIN, name="Admin"
    )
