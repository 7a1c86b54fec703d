"""Store interface and the record type it hands back.

Learn: UserRecord is a plain frozen dataclass, not an ORM instance, so
records can cross await points and session boundaries safely and both
store implementations return exactly the same type. It still carries
password_hash; stripping happens at the procedure boundary (UserRead).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from userdesk.db.models import UserRole, UserStatus

# Columns callers may write through insert/upsert/update_fields
WRITABLE_FIELDS = frozenset(
    {
        "identity",
        "email",
        "name",
        "password_hash",
        "login_method",
        "role",
        "status",
        "last_signed_in",
    }
)


@dataclass(frozen=True)
class UserRecord:
    id: int
    identity: str
    email: str
    name: Optional[str]
    password_hash: Optional[str]
    login_method: Optional[str]
    role: UserRole
    status: UserStatus
    created_at: datetime
    updated_at: datetime
    last_signed_in: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


def check_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Reject unknown columns before they reach the database."""
    unknown = set(fields) - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown user fields: {', '.join(sorted(unknown))}")
    return dict(fields)


class UserStore(ABC):
    """Narrow query interface over the users table.

    Lookups return None when absent. Writes raise Conflict when a unique
    constraint (email or identity) is violated, Internal on any other
    storage failure.
    """

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def find_by_identity(self, identity: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def find_by_id(self, user_id: int) -> Optional[UserRecord]: ...

    @abstractmethod
    async def insert(self, fields: dict[str, Any]) -> UserRecord:
        """Create a user. `identity` and `email` are required."""

    @abstractmethod
    async def upsert_by_identity(self, fields: dict[str, Any]) -> UserRecord:
        """Insert, or update the row with the same identity."""

    @abstractmethod
    async def update_fields(
        self, user_id: int, fields: dict[str, Any]
    ) -> Optional[UserRecord]:
        """Update columns and bump updated_at. None if the id doesn't exist."""

    @abstractmethod
    async def list_page(self, limit: int, offset: int) -> list[UserRecord]:
        """One page of users ordered by id ascending."""

    @abstractmethod
    async def count(self) -> int: ...

    async def ping(self) -> None:
        """Raise if the backing store is unreachable."""

    async def close(self) -> None:
        """Release connections. Called once at shutdown."""
