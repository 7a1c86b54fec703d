"""In-process UserStore for tests and local development.

Learn: every method body runs without an await between its uniqueness
check and its write, so on a single event loop each write is atomic,
the same guarantee the SQL store gets from unique constraints.
"""

import dataclasses
from typing import Any, Optional

from userdesk.db.models import UserRole, UserStatus, utcnow
from userdesk.errors import Conflict
from userdesk.store.base import UserRecord, UserStore, check_fields
from userdesk.store.sql import DUPLICATE_USER_MESSAGE


class InMemoryUserStore(UserStore):
    """Dict-backed store with the same semantics as SqlUserStore."""

    def __init__(self):
        self._rows: dict[int, UserRecord] = {}
        self._next_id = 1

    def _taken(self, field: str, value: Any, exclude_id: Optional[int] = None) -> bool:
        return any(
            getattr(row, field) == value
            for row in self._rows.values()
            if row.id != exclude_id
        )

    @staticmethod
    def _coerce(values: dict[str, Any]) -> dict[str, Any]:
        # Enum() rejects anything outside the closed set, like the CHECK constraint
        if "role" in values:
            values["role"] = UserRole(values["role"])
        if "status" in values:
            values["status"] = UserStatus(values["status"])
        return values

    def _check_unique(self, values: dict[str, Any], exclude_id: Optional[int] = None) -> None:
        for field in ("email", "identity"):
            if field in values and self._taken(field, values[field], exclude_id):
                raise Conflict(DUPLICATE_USER_MESSAGE)

    # ─── Lookups ────────────────────────────────────────

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        return next((r for r in self._rows.values() if r.email == email), None)

    async def find_by_identity(self, identity: str) -> Optional[UserRecord]:
        return next((r for r in self._rows.values() if r.identity == identity), None)

    async def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        return self._rows.get(user_id)

    # ─── Writes ─────────────────────────────────────────

    async def insert(self, fields: dict[str, Any]) -> UserRecord:
        values = self._coerce(check_fields(fields))
        if not values.get("identity") or not values.get("email"):
            raise ValueError("identity and email are required")
        self._check_unique(values)
        now = utcnow()
        record = UserRecord(
            id=self._next_id,
            identity=values["identity"],
            email=values["email"],
            name=values.get("name"),
            password_hash=values.get("password_hash"),
            login_method=values.get("login_method"),
            role=values.get("role", UserRole.USER),
            status=values.get("status", UserStatus.ACTIVE),
            created_at=now,
            updated_at=now,
            last_signed_in=values.get("last_signed_in") or now,
        )
        self._rows[record.id] = record
        self._next_id += 1
        return record

    async def upsert_by_identity(self, fields: dict[str, Any]) -> UserRecord:
        existing = await self.find_by_identity(fields["identity"])
        if existing is None:
            return await self.insert(fields)
        return await self.update_fields(existing.id, fields)

    async def update_fields(
        self, user_id: int, fields: dict[str, Any]
    ) -> Optional[UserRecord]:
        values = self._coerce(check_fields(fields))
        current = self._rows.get(user_id)
        if current is None:
            return None
        self._check_unique(values, exclude_id=user_id)
        updated = dataclasses.replace(current, **values, updated_at=utcnow())
        self._rows[user_id] = updated
        return updated

    # ─── Directory ──────────────────────────────────────

    async def list_page(self, limit: int, offset: int) -> list[UserRecord]:
        ordered = sorted(self._rows.values(), key=lambda r: r.id)
        return ordered[offset:offset + limit]

    async def count(self) -> int:
        return len(self._rows)
