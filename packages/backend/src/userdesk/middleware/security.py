"""Security headers middleware.

Learn: Every response gets the static headers in BASE_HEADERS. Responses
under an account prefix (/auth, /users) also get Cache-Control: no-store,
since they carry profile data and set or clear the session cookie, and a
shared cache must never replay them to another client. HSTS is only sent
over HTTPS; browsers ignore it on plain HTTP anyway.
"""

from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
HSTS_VALUE = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, no_store_prefixes: Iterable[str] = ()):
        super().__init__(app)
        self.no_store_prefixes = tuple(no_store_prefixes)

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(BASE_HEADERS)
        path = request.url.path
        if self.no_store_prefixes and path.startswith(self.no_store_prefixes):
            response.headers["Cache-Control"] = "no-store"
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        return response
