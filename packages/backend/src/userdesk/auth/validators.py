"""Input policy: names, email syntax, password strength.

The same strength rule guards signup, change-password and the CLI.
Each validator raises InvalidArgument naming the offending field.
"""

import re
import string
from typing import Optional

from userdesk.errors import InvalidArgument

MIN_PASSWORD_LENGTH = 8
PASSWORD_SPECIALS = "@$!%*?&"

PASSWORD_RULES_MESSAGE = (
    "Password must contain uppercase, lowercase, number, and special character"
)

# local@domain.tld: no whitespace, exactly one "@", a dot inside the domain
_EMAIL_RE = re.compile(r"[^@\s]+@[^@\s.][^@\s]*\.[^@\s]*[^@\s.]")


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and _EMAIL_RE.fullmatch(email) is not None


def is_strong_password(password: Optional[str]) -> bool:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return False
    return (
        any(c in string.ascii_lowercase for c in password)
        and any(c in string.ascii_uppercase for c in password)
        and any(c in string.digits for c in password)
        and any(c in PASSWORD_SPECIALS for c in password)
    )


def validate_name(name: Optional[str], field: str = "name") -> str:
    if name is None or not name.strip():
        raise InvalidArgument("Name is required", field=field)
    return name.strip()


def validate_email(email: Optional[str], field: str = "email") -> str:
    if not is_valid_email(email):
        raise InvalidArgument("Invalid email format", field=field)
    return email


def validate_password_strength(password: Optional[str], field: str = "password") -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidArgument(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field=field
        )
    if not is_strong_password(password):
        raise InvalidArgument(PASSWORD_RULES_MESSAGE, field=field)
    return password
