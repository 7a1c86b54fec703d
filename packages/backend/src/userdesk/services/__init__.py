"""Procedure layer.

Learn: Services take a UserStore (and a PasswordHasher) in their
constructor and the resolved caller as an argument. They know nothing
about HTTP, so the same code serves the API, the CLI and the tests.
"""

from userdesk.services.account_service import AccountService
from userdesk.services.user_service import UserService

__all__ = ["AccountService", "UserService"]
