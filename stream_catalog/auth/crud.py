from __future__ import annotations

from typing import Any, Dict, Optional

from stream_catalog.config import Config
from stream_catalog.db import USERS, DocumentStore
from stream_catalog.models import User

from .security import hash_password, verify_password


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


def normalize_email(email: str) -> str:
    return (email or "").strip()


def public_user(user: User) -> Dict[str, Any]:
    return {"id": user.id, "email": user.email}


async def get_user_by_email(store: DocumentStore, email: str) -> Optional[User]:
    e = normalize_email(email)
    if not e:
        return None
    doc = await store.find_one(USERS, {"email": e})
    return User.model_validate(doc) if doc is not None else None


async def create_user(
    store: DocumentStore,
    *,
    email: str,
    password: str,
    role: str = "admin",
) -> Dict[str, Any]:
    """Insert a user with a hashed password.

    Raises ValueError for blank input and StoreValidationError when the email
    is already taken (unique index on users.email).
    """
    e = normalize_email(email)
    if not e:
        raise ValueError("email_blank")

    doc = await store.insert(USERS, {"email": e, "password": hash_password(password), "role": role})
    return public_user(User.model_validate(doc))


async def bootstrap_admin_if_needed(store: DocumentStore, cfg: Config) -> Optional[Dict[str, Any]]:
    """Create the first admin user if the users collection is empty.

    - AUTH_BOOTSTRAP_ADMIN_EMAIL
    - AUTH_BOOTSTRAP_ADMIN_PASSWORD

    Nothing is created unless both are set.
    """

    email = normalize_email(cfg.AUTH_BOOTSTRAP_ADMIN_EMAIL)
    password = cfg.AUTH_BOOTSTRAP_ADMIN_PASSWORD
    if not email or not password:
        return None

    if await store.count(USERS) > 0:
        return None

    u = await create_user(store, email=email, password=password, role="admin")
    _debug(f"Bootstrapped initial admin user: email={u['email']}")
    return u
