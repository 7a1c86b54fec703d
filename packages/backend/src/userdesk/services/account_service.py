"""Account service — signup, login, logout, me, external-identity sync.

Learn: These are the public procedures (no identity required). Session
mechanics stay in the API layer: login here only proves the credentials
and returns the verified account; the route turns that into a cookie.
"""

import uuid
from typing import Optional

import structlog

from userdesk.auth.password import PasswordHasher
from userdesk.auth.policy import owner_role_for
from userdesk.auth.validators import (
    validate_email,
    validate_name,
    validate_password_strength,
)
from userdesk.db.models import LOCAL_LOGIN_METHOD, UserRole, UserStatus, utcnow
from userdesk.errors import Conflict, Forbidden, InvalidArgument, Unauthenticated
from userdesk.schemas.user import AuthResult, SuccessResponse, UserRead
from userdesk.store.base import UserRecord, UserStore

logger = structlog.get_logger()

# Same text for "no such email" and "wrong password"
INVALID_CREDENTIALS = "Invalid email or password"


def new_local_identity() -> str:
    """Identity for an email/password account (never an external subject)."""
    return f"email_{uuid.uuid4().hex}"


class AccountService:
    """Public account procedures."""

    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        owner_identity: str = "",
    ):
        self.store = store
        self.hasher = hasher
        self.owner_identity = owner_identity
        self._decoy_hash: Optional[str] = None

    async def _burn_verify(self, password: str) -> None:
        """Spend one bcrypt check so an unknown email costs about as much as a known one."""
        if self._decoy_hash is None:
            self._decoy_hash = await self.hasher.hash(uuid.uuid4().hex)
        await self.hasher.verify(self._decoy_hash, password)

    # ─── Signup ─────────────────────────────────────────

    async def signup(self, name: str, email: str, password: str) -> AuthResult:
        """Create a local account with role=user, status=active."""
        user = await self.provision_user(name, email, password, role=UserRole.USER)
        return AuthResult(user=user)

    async def provision_user(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
    ) -> UserRead:
        """Create an active local account with an explicit role.

        signup always passes role=user; only operator tooling (the CLI)
        asks for anything else.
        """
        name = validate_name(name)
        validate_email(email)
        if await self.store.find_by_email(email) is not None:
            raise Conflict("Email already registered", field="email")
        validate_password_strength(password)

        password_hash = await self.hasher.hash(password)
        try:
            user = await self.store.insert(
                {
                    "identity": new_local_identity(),
                    "email": email,
                    "name": name,
                    "password_hash": password_hash,
                    "login_method": LOCAL_LOGIN_METHOD,
                    "role": role,
                    "status": UserStatus.ACTIVE,
                    "last_signed_in": utcnow(),
                }
            )
        except Conflict:
            # Lost the race against a concurrent signup for the same email
            raise Conflict("Email already registered", field="email")

        logger.info("userdesk.signup", user_id=user.id, role=user.role.value)
        return UserRead.model_validate(user)

    # ─── Login / logout ─────────────────────────────────

    async def login(self, email: str, password: str) -> AuthResult:
        """Verify credentials. Inactive accounts are refused after the password check."""
        user = await self.store.find_by_email(email)
        if user is None:
            await self._burn_verify(password)
            logger.info("userdesk.login_failed", reason="unknown_email")
            raise Unauthenticated(INVALID_CREDENTIALS)

        if not await self.hasher.verify(user.password_hash, password):
            logger.info("userdesk.login_failed", reason="bad_password", user_id=user.id)
            raise Unauthenticated(INVALID_CREDENTIALS)

        if user.status != UserStatus.ACTIVE:
            logger.info("userdesk.login_refused", reason="inactive", user_id=user.id)
            raise Forbidden("User account is inactive")

        refreshed = await self.store.update_fields(
            user.id, {"last_signed_in": utcnow()}
        )
        logger.info("userdesk.login", user_id=user.id)
        return AuthResult(user=UserRead.model_validate(refreshed or user))

    async def logout(self, caller: Optional[UserRecord]) -> SuccessResponse:
        """Always succeeds; the API layer clears the session cookie."""
        if caller is not None:
            logger.info("userdesk.logout", user_id=caller.id)
        return SuccessResponse()

    async def me(self, caller: Optional[UserRecord]) -> Optional[UserRead]:
        return UserRead.model_validate(caller) if caller is not None else None

    # ─── External identity ──────────────────────────────

    async def sync_external_user(
        self,
        identity: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
        login_method: Optional[str] = None,
    ) -> UserRead:
        """Create or refresh an account owned by an upstream identity provider.

        Idempotent on `identity`. Only fields that are passed are written.
        The configured owner identity is promoted to admin here, and only here.
        """
        if not identity:
            raise InvalidArgument("Identity is required for upsert", field="identity")
        if email is not None:
            validate_email(email)

        fields = {"identity": identity, "last_signed_in": utcnow()}
        if email is not None:
            fields["email"] = email
        if name is not None:
            fields["name"] = name
        if login_method is not None:
            fields["login_method"] = login_method

        role = owner_role_for(identity, self.owner_identity)
        if role is not None:
            fields["role"] = role

        if "email" not in fields and await self.store.find_by_identity(identity) is None:
            raise InvalidArgument("Email is required for a new account", field="email")

        user = await self.store.upsert_by_identity(fields)
        logger.info(
            "userdesk.external_user_synced",
            user_id=user.id,
            login_method=user.login_method,
            promoted=role is not None,
        )
        return UserRead.model_validate(user)
