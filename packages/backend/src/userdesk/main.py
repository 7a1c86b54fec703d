"""FastAPI application factory.

Learn: create_app() returns a configured FastAPI instance. The store
client is explicit: pass one in (tests hand over an InMemoryUserStore),
or let the lifespan build it from settings.database_url at startup and
dispose of it at shutdown. Nothing connects at import time.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from userdesk import __version__
from userdesk.api import api_router
from userdesk.api.auth import router as auth_router
from userdesk.api.users import router as users_router
from userdesk.auth.password import PasswordHasher
from userdesk.config import Settings
from userdesk.config import settings as default_settings
from userdesk.errors import AccountError, ErrorKind, HTTP_STATUS
from userdesk.log import configure_logging
from userdesk.middleware.request_id import RequestIdMiddleware
from userdesk.middleware.security import SecurityHeadersMiddleware
from userdesk.store import SqlUserStore, UserStore, build_store

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    settings: Settings = app.state.settings
    configure_logging(
        settings.log_level, json_output=settings.environment != "development"
    )
    logger.info(
        "userdesk.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    owns_store = app.state.store is None
    if owns_store:
        app.state.store = build_store(settings)
        if settings.auto_create_tables and isinstance(app.state.store, SqlUserStore):
            await app.state.store.init_schema()
            logger.info("userdesk.schema_created")

    yield

    logger.info("userdesk.shutdown")
    if owns_store:
        await app.state.store.close()


async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Shape/type errors are InvalidArgument like any other bad input."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = first.get("loc") or ()
    field = str(loc[-1]) if loc else None
    return JSONResponse(
        status_code=HTTP_STATUS[ErrorKind.INVALID_ARGUMENT],
        content={
            "detail": first.get("msg", "Invalid request"),
            "kind": ErrorKind.INVALID_ARGUMENT.value,
            "field": field,
        },
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[UserStore] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or default_settings

    app = FastAPI(
        title="userdesk",
        description="Account management — signup, login, profiles, admin user directory",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    app.add_exception_handler(AccountError, account_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Starlette runs middleware in reverse order of registration:
    # RequestId → Security → CORS → handler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        SecurityHeadersMiddleware,
        no_store_prefixes=(
            api_router.prefix + auth_router.prefix,
            api_router.prefix + users_router.prefix,
        ),
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)
    return app


# Default app instance (used by uvicorn: userdesk.main:app)
app = create_app()
