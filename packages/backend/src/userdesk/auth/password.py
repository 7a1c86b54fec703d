"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting, embeds the cost and salt in the digest ("$2b$12$..."),
and is deliberately slow. The work factor (rounds=12) takes ~100ms per
hash on modern hardware, so PasswordHasher runs it in a worker thread
instead of blocking the event loop.
"""

import asyncio
from typing import Optional

import bcrypt

DEFAULT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt. Never store plain passwords."""
    pw_bytes = password.encode("utf-8")[:MAX_PASSWORD_BYTES]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Verify a password against its hash.

    Returns False (never raises) when there is no hash. Accounts created
    through an external identity provider have none.
    """
    if not password_hash:
        return False
    try:
        pw_bytes = password.encode("utf-8")[:MAX_PASSWORD_BYTES]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


class PasswordHasher:
    """Async facade over hash_password/verify_password with a fixed cost."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(hash_password, password, self.rounds)

    async def verify(self, password_hash: Optional[str], password: str) -> bool:
        if not password_hash:
            return False
        return await asyncio.to_thread(verify_password, password, password_hash)
