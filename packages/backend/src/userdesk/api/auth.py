"""Auth API — signup, login, logout, current identity.

Learn: Routes for the public account procedures:
- GET /auth/me → resolved identity or null (never 401)
- POST /auth/signup → create a local account
- POST /auth/login → verify credentials, set the session cookie
- POST /auth/logout → clear the session cookie (idempotent)

Routes own the transport (cookies); AccountService owns the rules.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response

from userdesk.auth.dependencies import (
    RequestContext,
    get_hasher,
    get_request_context,
    get_settings,
    get_store,
)
from userdesk.auth.jwt import create_session_token
from userdesk.auth.password import PasswordHasher
from userdesk.config import Settings
from userdesk.schemas.user import (
    AuthResult,
    LoginRequest,
    SignupRequest,
    SuccessResponse,
    UserRead,
)
from userdesk.services.account_service import AccountService
from userdesk.store.base import UserStore

router = APIRouter(prefix="/auth")


def _svc(
    store: UserStore = Depends(get_store),
    hasher: PasswordHasher = Depends(get_hasher),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(store, hasher, owner_identity=settings.owner_identity)


def _set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


@router.get("/me", response_model=Optional[UserRead])
async def me(
    context: RequestContext = Depends(get_request_context),
    svc: AccountService = Depends(_svc),
):
    return await svc.me(context.user)


@router.post("/signup", response_model=AuthResult, status_code=201)
async def signup(body: SignupRequest, svc: AccountService = Depends(_svc)):
    """Create a new local account. Does not log the user in."""
    return await svc.signup(name=body.name, email=body.email, password=body.password)


@router.post("/login", response_model=AuthResult)
async def login(
    body: LoginRequest,
    response: Response,
    svc: AccountService = Depends(_svc),
    settings: Settings = Depends(get_settings),
):
    """Login with email and password → session cookie."""
    result = await svc.login(email=body.email, password=body.password)
    token = create_session_token(result.user.identity, settings)
    _set_session_cookie(response, token, settings)
    return result


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    response: Response,
    context: RequestContext = Depends(get_request_context),
    svc: AccountService = Depends(_svc),
    settings: Settings = Depends(get_settings),
):
    result = await svc.logout(context.user)
    response.delete_cookie(
        settings.session_cookie_name,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )
    return result
