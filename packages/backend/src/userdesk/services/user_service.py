"""User service — profile, password change, admin directory.

Learn: Every method takes the resolved caller first. Authorization runs
before input validation, and validation before any store write, so a
rejected call never leaves a partial update behind.
"""

import math
from typing import Any, Optional

import structlog

from userdesk.auth.password import PasswordHasher
from userdesk.auth.policy import require_admin, require_user
from userdesk.auth.validators import (
    validate_email,
    validate_name,
    validate_password_strength,
)
from userdesk.db.models import UserStatus
from userdesk.errors import Conflict, InvalidArgument, NotFound, Unauthenticated
from userdesk.schemas.user import SuccessResponse, UserPage, UserRead
from userdesk.store.base import UserRecord, UserStore

logger = structlog.get_logger()

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def _positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidArgument(f"{field} must be a positive integer", field=field)
    return value


class UserService:
    """Procedures that need a resolved identity."""

    def __init__(self, store: UserStore, hasher: PasswordHasher):
        self.store = store
        self.hasher = hasher

    # ─── Self-service ───────────────────────────────────

    async def profile(self, caller: Optional[UserRecord]) -> UserRead:
        return UserRead.model_validate(require_user(caller))

    async def update_profile(
        self, caller: Optional[UserRecord], name: str, email: str
    ) -> UserRead:
        """Change name/email. Uniqueness is only checked when the email changes."""
        user = require_user(caller)
        name = validate_name(name)
        validate_email(email)

        if email != user.email:
            owner = await self.store.find_by_email(email)
            if owner is not None and owner.id != user.id:
                raise Conflict("Email already in use", field="email")

        try:
            updated = await self.store.update_fields(
                user.id, {"name": name, "email": email}
            )
        except Conflict:
            raise Conflict("Email already in use", field="email")
        if updated is None:
            raise NotFound("User not found")

        logger.info("userdesk.profile_updated", user_id=user.id)
        return UserRead.model_validate(updated)

    async def change_password(
        self,
        caller: Optional[UserRecord],
        current_password: str,
        new_password: str,
    ) -> SuccessResponse:
        """Replace the caller's password after re-checking the current one."""
        user = require_user(caller)

        # Re-read: the resolved record may predate another password change
        stored = await self.store.find_by_email(user.email)
        if stored is None:
            raise NotFound("User not found")

        if not await self.hasher.verify(stored.password_hash, current_password):
            logger.info("userdesk.password_change_failed", user_id=stored.id)
            raise Unauthenticated(
                "Current password is incorrect", field="current_password"
            )
        validate_password_strength(new_password, field="new_password")

        password_hash = await self.hasher.hash(new_password)
        await self.store.update_fields(stored.id, {"password_hash": password_hash})
        logger.info("userdesk.password_changed", user_id=stored.id)
        return SuccessResponse()

    # ─── Admin directory ────────────────────────────────

    async def list_users(
        self,
        caller: Optional[UserRecord],
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> UserPage:
        """One page of all users, ordered by id."""
        require_admin(caller, "view all users")
        page = _positive_int(page, "page")
        limit = _positive_int(limit, "limit")

        offset = (page - 1) * limit
        users = await self.store.list_page(limit, offset)
        total = await self.store.count()

        return UserPage(
            users=[UserRead.model_validate(u) for u in users],
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
        )

    async def activate(self, caller: Optional[UserRecord], user_id: int) -> SuccessResponse:
        admin = require_admin(caller, "activate users")
        return await self._set_status(admin, user_id, UserStatus.ACTIVE)

    async def deactivate(self, caller: Optional[UserRecord], user_id: int) -> SuccessResponse:
        admin = require_admin(caller, "deactivate users")
        return await self._set_status(admin, user_id, UserStatus.INACTIVE)

    async def _set_status(
        self, admin: UserRecord, user_id: int, status: UserStatus
    ) -> SuccessResponse:
        user_id = _positive_int(user_id, "user_id")
        updated = await self.store.update_fields(user_id, {"status": status})
        if updated is None:
            raise NotFound("User not found", field="user_id")
        logger.info(
            "userdesk.status_changed",
            user_id=user_id,
            status=status.value,
            admin_id=admin.id,
        )
        return SuccessResponse()
