"""Session token creation and verification.

Learn: the session artifact is a signed JWT carried in an HttpOnly cookie
(or a Bearer header for API clients). It only names the account's
`identity`; role and status are never read from the token. The resolver
always re-fetches the user, so a role change or deactivation takes effect
on the next request.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from userdesk.config import Settings


class TokenError(Exception):
    """Raised when token verification fails."""


def create_session_token(
    identity: str,
    settings: Settings,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a signed session token for an account identity."""
    now = datetime.now(timezone.utc)
    expires = now + timedelta(
        minutes=expires_minutes or settings.session_expire_minutes
    )
    payload = {
        "sub": identity,
        "type": "session",
        "exp": expires,
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_session_token(token: str, settings: Settings) -> str:
    """Verify a session token and return the identity it names.

    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if payload.get("type") != "session" or not payload.get("sub"):
        raise TokenError("Not a session token")
    return payload["sub"]
