"""FastAPI auth dependencies — the per-request identity resolver.

Learn: get_request_context runs once per request (FastAPI caches a
dependency within a request) before the route body. It reads the session
token from the cookie or a Bearer header, verifies it, and re-fetches the
account from the store. A missing, invalid or expired token, or one whose
account no longer exists, resolves to anonymous rather than failing, so
public procedures like /auth/me keep working.

Routes hand context.user to the service layer; services never resolve
identity themselves.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Request

from userdesk.auth.jwt import TokenError, verify_session_token
from userdesk.auth.password import PasswordHasher
from userdesk.auth.policy import require_admin, require_user
from userdesk.config import Settings
from userdesk.store.base import UserRecord, UserStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class RequestContext:
    """Read-only identity for the current request (user=None is anonymous)."""

    user: Optional[UserRecord] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> UserStore:
    return request.app.state.store


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def _extract_token(request: Request, settings: Settings) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]
    return request.cookies.get(settings.session_cookie_name)


async def resolve_identity(
    request: Request, store: UserStore, settings: Settings
) -> Optional[UserRecord]:
    """Turn the request's session token into a fresh user record, or None."""
    token = _extract_token(request, settings)
    if not token:
        return None
    try:
        identity = verify_session_token(token, settings)
    except TokenError as e:
        logger.info("userdesk.session_rejected", reason=str(e))
        return None
    user = await store.find_by_identity(identity)
    if user is None:
        logger.info("userdesk.session_orphaned", identity=identity)
    return user


async def get_request_context(
    request: Request,
    store: UserStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> RequestContext:
    return RequestContext(user=await resolve_identity(request, store, settings))


async def get_current_user(
    context: RequestContext = Depends(get_request_context),
) -> UserRecord:
    """Resolved caller (Unauthenticated if anonymous)."""
    return require_user(context.user)


async def get_admin_user(
    context: RequestContext = Depends(get_request_context),
) -> UserRecord:
    """Resolved admin caller.

    Runs before path/query validation, so a non-admin gets Forbidden even
    when the rest of the request is malformed.
    """
    return require_admin(context.user, "manage users")
