from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from stream_catalog.errors import AuthInvalid, AuthRequired

from .security import TokenExpired, TokenMalformed, decode_access_token


# auto_error=False: a missing header or a non-Bearer scheme yields None
# instead of FastAPI's own 403.
_bearer = HTTPBearer(auto_error=False)


def require_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Dict[str, Any]:
    """Authenticate a request from `Authorization: Bearer <jwt>`.

    - no token                    -> 401
    - token malformed or expired  -> 403
    - valid                       -> claims stored on request.state.user

    Any valid token grants access to every protected route.
    """

    cfg = request.app.state.cfg

    if credentials is None or not credentials.credentials:
        raise AuthRequired()

    try:
        claims = decode_access_token(token=credentials.credentials, secret=cfg.JWT_SECRET)
    except (TokenExpired, TokenMalformed):
        raise AuthInvalid()

    request.state.user = claims
    return claims
