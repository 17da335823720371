from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext


# Fixed work factor for new hashes. bcrypt is accepted for verification so
# hashes written by earlier deployments keep working.
PBKDF2_ROUNDS = 290000

_pwd = CryptContext(
    schemes=["pbkdf2_sha256", "bcrypt"],
    deprecated="auto",
    pbkdf2_sha256__default_rounds=PBKDF2_ROUNDS,
)
_JWT_ALG = "HS256"


class TokenMalformed(Exception):
    pass


class TokenExpired(Exception):
    pass


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except Exception:
        # Unknown hash format or missing backend.
        return False


def create_access_token(
    *,
    secret: str,
    user_id: str,
    email: str,
    expires_minutes: int,
    now: Optional[datetime] = None,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")

    now = now or datetime.now(timezone.utc)
    exp = now + timedelta(minutes=max(1, int(expires_minutes)))

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def decode_access_token(*, token: str, secret: str) -> Dict[str, Any]:
    if not secret:
        raise ValueError("jwt_secret_blank")
    if not token:
        raise TokenMalformed("token_blank")
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[_JWT_ALG],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired("token_expired") from e
    except jwt.InvalidTokenError as e:
        raise TokenMalformed(str(e)) from e
