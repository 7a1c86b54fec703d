"""userdesk — small account-management backend.

Signup, credential login, self-service profile and password updates,
and an admin-only user directory with activation toggling.
"""

__version__ = "0.1.0"
