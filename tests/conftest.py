import asyncio
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from stream_catalog.api.server import create_app
from stream_catalog.auth.crud import create_user
from stream_catalog.config import load_config
from stream_catalog.db import MemoryStore

ADMIN_EMAIL = "a@x.com"
ADMIN_PASSWORD = "pw123"
JWT_SECRET = "test-secret"


def stream_payload(**overrides):
    body = {
        "title": "T",
        "description": "D",
        "thumbnail": "th.png",
        "streamUrl": "u.m3u8",
    }
    body.update(overrides)
    return body


@pytest.fixture
def cfg():
    return replace(
        load_config(),
        MONGODB_URI="memory://",
        JWT_SECRET=JWT_SECRET,
        AUTH_TOKEN_EXPIRE_MINUTES=1440,
        AUTH_BOOTSTRAP_ADMIN_EMAIL="",
        AUTH_BOOTSTRAP_ADMIN_PASSWORD="",
        CORS_ALLOW_ORIGINS="*",
        LOG_WRITES=False,
    )


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def admin(store):
    return asyncio.run(create_user(store, email=ADMIN_EMAIL, password=ADMIN_PASSWORD))


@pytest.fixture
def client(cfg, store):
    app = create_app(cfg, store)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def token(client, admin):
    r = client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return r.json()["token"]


@pytest.fixture
def auth(token):
    return {"Authorization": f"Bearer {token}"}
