"""Authentication helpers.

Auth is minimal:

- Users collection (email / password hash / role), populated out of band
  (scripts/create_user.py or the startup bootstrap)
- JWT access tokens, presented as `Authorization: Bearer <token>`

There is a single implicit role: any valid token may call every protected
route.
"""

from .deps import require_token
from .crud import bootstrap_admin_if_needed, create_user, get_user_by_email

__all__ = [
    "require_token",
    "bootstrap_admin_if_needed",
    "create_user",
    "get_user_by_email",
]
