"""Access rules applied to a resolved caller.

Learn: services call these before touching input or the store, so an
anonymous caller always gets Unauthenticated and a non-admin always gets
Forbidden, whatever else is wrong with the request.
"""

from typing import Optional

from userdesk.db.models import UserRole
from userdesk.errors import Forbidden, Unauthenticated
from userdesk.store.base import UserRecord


def require_user(caller: Optional[UserRecord]) -> UserRecord:
    if caller is None:
        raise Unauthenticated("Not authenticated")
    return caller


def require_admin(caller: Optional[UserRecord], action: str) -> UserRecord:
    user = require_user(caller)
    if not user.is_admin:
        raise Forbidden(f"Only admins can {action}")
    return user


def owner_role_for(identity: str, owner_identity: str) -> Optional[UserRole]:
    """Role forced on an external-identity upsert, if any.

    Only the configured owner identity is promoted. Local signup never
    consults this.
    """
    if owner_identity and identity == owner_identity:
        return UserRole.ADMIN
    return None
