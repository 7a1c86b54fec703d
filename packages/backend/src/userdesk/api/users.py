"""User API — self-service profile and the admin directory.

Learn: Self-service routes depend on get_current_user (401 when
anonymous). Admin routes depend on get_admin_user, which FastAPI resolves
before it validates path/query params, so a non-admin gets 403 even for a
malformed request.
"""

from fastapi import APIRouter, Depends

from userdesk.auth.dependencies import (
    get_admin_user,
    get_current_user,
    get_hasher,
    get_store,
)
from userdesk.auth.password import PasswordHasher
from userdesk.schemas.user import (
    ChangePasswordRequest,
    SuccessResponse,
    UpdateProfileRequest,
    UserPage,
    UserRead,
)
from userdesk.services.user_service import DEFAULT_LIMIT, DEFAULT_PAGE, UserService
from userdesk.store.base import UserRecord, UserStore

router = APIRouter(prefix="/users")


def _svc(
    store: UserStore = Depends(get_store),
    hasher: PasswordHasher = Depends(get_hasher),
) -> UserService:
    return UserService(store, hasher)


# ─── Self-service ───────────────────────────────────────

@router.get("/profile", response_model=UserRead)
async def get_profile(
    user: UserRecord = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    return await svc.profile(user)


@router.put("/profile", response_model=UserRead)
async def update_profile(
    body: UpdateProfileRequest,
    user: UserRecord = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    return await svc.update_profile(user, name=body.name, email=body.email)


@router.post("/change-password", response_model=SuccessResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: UserRecord = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    return await svc.change_password(
        user,
        current_password=body.current_password,
        new_password=body.new_password,
    )


# ─── Admin ──────────────────────────────────────────────

@router.get("", response_model=UserPage)
async def list_users(
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    admin: UserRecord = Depends(get_admin_user),
    svc: UserService = Depends(_svc),
):
    return await svc.list_users(admin, page=page, limit=limit)


@router.post("/{user_id}/activate", response_model=SuccessResponse)
async def activate_user(
    user_id: int,
    admin: UserRecord = Depends(get_admin_user),
    svc: UserService = Depends(_svc),
):
    return await svc.activate(admin, user_id)


@router.post("/{user_id}/deactivate", response_model=SuccessResponse)
async def deactivate_user(
    user_id: int,
    admin: UserRecord = Depends(get_admin_user),
    svc: UserService = Depends(_svc),
):
    return await svc.deactivate(admin, user_id)
