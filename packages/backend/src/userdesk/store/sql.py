"""SQLAlchemy-backed UserStore.

Learn: each method opens its own AsyncSession, so concurrent requests
never share a session. Uniqueness is left to the database: an
IntegrityError from the email/identity constraints becomes Conflict,
which is what makes the signup check-then-insert race safe.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import structlog
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from userdesk.config import Settings
from userdesk.db.engine import create_engine, create_session_factory, init_models
from userdesk.db.models import User, utcnow
from userdesk.errors import Conflict, Internal
from userdesk.store.base import UserRecord, UserStore, check_fields

logger = structlog.get_logger()

DUPLICATE_USER_MESSAGE = "A user with this email or identity already exists"


def _to_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        identity=row.identity,
        email=row.email,
        name=row.name,
        password_hash=row.password_hash,
        login_method=row.login_method,
        role=row.role,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_signed_in=row.last_signed_in,
    )


class SqlUserStore(UserStore):
    """UserStore over an async SQLAlchemy engine."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ):
        self._session_factory = session_factory
        self._engine = engine

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqlUserStore":
        engine = create_engine(settings)
        return cls(create_session_factory(engine), engine=engine)

    async def init_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("init_schema needs a store built with an engine")
        await init_models(self._engine)

    @asynccontextmanager
    async def _session(self, op: str) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
            except IntegrityError as e:
                await session.rollback()
                logger.info("userdesk.store.conflict", op=op)
                raise Conflict(DUPLICATE_USER_MESSAGE) from e
            except (SQLAlchemyError, OSError) as e:
                await session.rollback()
                logger.error("userdesk.store.error", op=op, error=str(e))
                raise Internal("Store operation failed") from e

    async def _first(self, op: str, *criteria) -> Optional[UserRecord]:
        async with self._session(op) as session:
            result = await session.execute(select(User).where(*criteria).limit(1))
            row = result.scalars().first()
            return _to_record(row) if row else None

    # ─── Lookups ────────────────────────────────────────

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        return await self._first("find_by_email", User.email == email)

    async def find_by_identity(self, identity: str) -> Optional[UserRecord]:
        return await self._first("find_by_identity", User.identity == identity)

    async def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        return await self._first("find_by_id", User.id == user_id)

    # ─── Writes ─────────────────────────────────────────

    async def insert(self, fields: dict[str, Any]) -> UserRecord:
        values = check_fields(fields)
        async with self._session("insert") as session:
            row = User(**values)
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _to_record(row)

    async def upsert_by_identity(self, fields: dict[str, Any]) -> UserRecord:
        values = check_fields(fields)
        try:
            return await self._upsert_once(values)
        except Conflict:
            # A concurrent first sync inserted this identity; the retry updates
            # it. Anything else (a taken email) stays a Conflict.
            if await self.find_by_identity(values["identity"]) is None:
                raise
            logger.info("userdesk.store.upsert_retry", identity=values["identity"])
            return await self._upsert_once(values)

    async def _upsert_once(self, values: dict[str, Any]) -> UserRecord:
        async with self._session("upsert_by_identity") as session:
            result = await session.execute(
                select(User).where(User.identity == values["identity"])
            )
            row = result.scalars().first()
            if row is None:
                row = User(**values)
                session.add(row)
            else:
                for key, value in values.items():
                    setattr(row, key, value)
                row.updated_at = utcnow()
            await session.commit()
            await session.refresh(row)
            return _to_record(row)

    async def update_fields(
        self, user_id: int, fields: dict[str, Any]
    ) -> Optional[UserRecord]:
        values = check_fields(fields)
        async with self._session("update_fields") as session:
            row = await session.get(User, user_id)
            if row is None:
                return None
            for key, value in values.items():
                setattr(row, key, value)
            row.updated_at = utcnow()
            await session.commit()
            await session.refresh(row)
            return _to_record(row)

    # ─── Directory ──────────────────────────────────────

    async def list_page(self, limit: int, offset: int) -> list[UserRecord]:
        async with self._session("list_page") as session:
            result = await session.execute(
                select(User).order_by(User.id.asc()).limit(limit).offset(offset)
            )
            return [_to_record(row) for row in result.scalars().all()]

    async def count(self) -> int:
        async with self._session("count") as session:
            total = await session.scalar(select(func.count()).select_from(User))
            return int(total or 0)

    # ─── Lifecycle ──────────────────────────────────────

    async def ping(self) -> None:
        async with self._session("ping") as session:
            await session.execute(text("SELECT 1"))

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
