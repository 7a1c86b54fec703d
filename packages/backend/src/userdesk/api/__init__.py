"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Unlike a blanket include_router(dependencies=...) guard, auth is
applied per route here: /auth/me and /auth/logout must work anonymously,
and admin routes need the stricter get_admin_user dependency.
"""

from fastapi import APIRouter

from userdesk.api.auth import router as auth_router
from userdesk.api.health import router as health_router
from userdesk.api.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
