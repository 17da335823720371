from datetime import datetime, timedelta, timezone

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from stream_catalog.auth import require_token
from stream_catalog.auth.security import create_access_token
from stream_catalog.errors import install_error_handlers

from conftest import JWT_SECRET, stream_payload


@pytest.fixture
def whoami_client(cfg):
    """Minimal app exposing what require_token leaves on the request."""
    app = FastAPI()
    app.state.cfg = cfg
    install_error_handlers(app)

    @app.get("/whoami")
    def whoami(request: Request, claims=Depends(require_token)):
        return {"claims": claims, "state": request.state.user}

    return TestClient(app)


def _token(hours_ago=0.0, secret=JWT_SECRET):
    issued = datetime.now(timezone.utc) - timedelta(hours=hours_ago)
    return create_access_token(secret=secret, user_id="u1", email="a@x.com", expires_minutes=1440, now=issued)


def test_valid_token_attaches_identity(whoami_client):
    r = whoami_client.get("/whoami", headers={"Authorization": f"Bearer {_token()}"})
    assert r.status_code == 200
    body = r.json()
    assert body["claims"]["email"] == "a@x.com"
    assert body["claims"]["sub"] == "u1"
    assert body["state"] == body["claims"]


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": ""}, {"Authorization": "Basic dXNlcjpwdw=="}, {"Authorization": "Bearer"}],
)
def test_no_token_is_401_with_empty_body(whoami_client, headers):
    r = whoami_client.get("/whoami", headers=headers)
    assert r.status_code == 401
    assert r.content == b""


@pytest.mark.parametrize(
    "token",
    ["garbage", "a.b.c", _token(secret="someone-else"), _token(hours_ago=25)],
)
def test_bad_token_is_403_with_empty_body(whoami_client, token):
    r = whoami_client.get("/whoami", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403
    assert r.content == b""


def test_token_accepted_until_expiry(client):
    fresh = {"Authorization": f"Bearer {_token(hours_ago=23.9)}"}
    stale = {"Authorization": f"Bearer {_token(hours_ago=24.1)}"}

    assert client.post("/api/streams", json=stream_payload(), headers=fresh).status_code == 201
    assert client.post("/api/streams", json=stream_payload(), headers=stale).status_code == 403
