from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from stream_catalog import __version__
from stream_catalog.auth import bootstrap_admin_if_needed, get_user_by_email, require_token
from stream_catalog.auth.crud import public_user
from stream_catalog.auth.security import create_access_token, verify_password
from stream_catalog.config import Config, load_config
from stream_catalog.db import DocumentStore, open_store
from stream_catalog.errors import NotFound, ValidationFailure, install_error_handlers
from stream_catalog.models import StreamCreate, StreamUpdate
from stream_catalog.streams import create_stream, delete_stream, get_stream, list_streams, update_stream


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


STREAM_NOT_FOUND = "Stream not found"


class LoginRequest(BaseModel):
    email: str
    password: str


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_cfg(request: Request) -> Config:
    return request.app.state.cfg


def create_app(cfg: Optional[Config] = None, store: Optional[DocumentStore] = None) -> FastAPI:
    """Build the API.

    Config and store are passed in rather than read from module globals, so
    tests can run against a MemoryStore. Without a store, one is opened from
    cfg.MONGODB_URI at startup and closed at shutdown.
    """

    cfg = cfg or load_config()

    missing = [m for m in cfg.missing_settings() if not (m == "MONGODB_URI" and store is not None)]
    if missing:
        raise RuntimeError(f"missing required settings: {', '.join(missing)}")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = store is None
        app.state.store = store if store is not None else open_store(cfg.MONGODB_URI, cfg.MONGODB_DATABASE)
        s: DocumentStore = app.state.store

        await s.ensure_indexes()
        await bootstrap_admin_if_needed(s, cfg)
        _debug(f"ready: store={type(s).__name__} port={cfg.PORT}")

        yield

        if owned:
            await s.close()
        _debug("shutdown")

    app = FastAPI(title="Stream Catalog API", version=__version__, lifespan=lifespan)
    app.state.cfg = cfg
    if store is not None:
        app.state.store = store

    origins = cfg.cors_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            # Browsers refuse credentials with a wildcard origin.
            allow_credentials="*" not in origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    install_error_handlers(app)

    # -----------------------------
    # Health
    # -----------------------------

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok"}

    # -----------------------------
    # Auth
    # -----------------------------

    @app.post("/api/login")
    async def login(
        payload: LoginRequest,
        store: DocumentStore = Depends(get_store),
        cfg: Config = Depends(get_cfg),
    ) -> Dict[str, Any]:
        user = await get_user_by_email(store, payload.email)
        if user is None:
            raise ValidationFailure("User not found")

        if not verify_password(payload.password, user.password):
            raise ValidationFailure("Invalid credentials")

        token = create_access_token(
            secret=cfg.JWT_SECRET,
            user_id=user.id,
            email=user.email,
            expires_minutes=int(cfg.AUTH_TOKEN_EXPIRE_MINUTES),
        )
        return {"token": token, "user": public_user(user)}

    # -----------------------------
    # Streams (public reads)
    # -----------------------------

    @app.get("/api/streams")
    async def streams_list(store: DocumentStore = Depends(get_store)) -> List[Dict[str, Any]]:
        return [s.to_json() for s in await list_streams(store)]

    @app.get("/api/streams/{stream_id}")
    async def streams_get(stream_id: str, store: DocumentStore = Depends(get_store)) -> Dict[str, Any]:
        stream = await get_stream(store, stream_id)
        if stream is None:
            raise NotFound(STREAM_NOT_FOUND)
        return stream.to_json()

    # -----------------------------
    # Streams (admin writes)
    # -----------------------------

    @app.post("/api/streams", status_code=201, dependencies=[Depends(require_token)])
    async def streams_create(
        payload: StreamCreate,
        request: Request,
        store: DocumentStore = Depends(get_store),
    ) -> Dict[str, Any]:
        stream = await create_stream(store, payload)
        if cfg.LOG_WRITES:
            _debug(f"stream created id={stream.id} by={request.state.user.get('email')}")
        return stream.to_json()

    @app.put("/api/streams/{stream_id}", dependencies=[Depends(require_token)])
    async def streams_update(
        stream_id: str,
        payload: StreamUpdate,
        request: Request,
        store: DocumentStore = Depends(get_store),
    ) -> Dict[str, Any]:
        stream = await update_stream(store, stream_id, payload)
        if stream is None:
            raise NotFound(STREAM_NOT_FOUND)
        if cfg.LOG_WRITES:
            _debug(f"stream updated id={stream.id} by={request.state.user.get('email')}")
        return stream.to_json()

    @app.delete("/api/streams/{stream_id}", dependencies=[Depends(require_token)])
    async def streams_delete(
        stream_id: str,
        request: Request,
        store: DocumentStore = Depends(get_store),
    ) -> Dict[str, Any]:
        if not await delete_stream(store, stream_id):
            raise NotFound(STREAM_NOT_FOUND)
        if cfg.LOG_WRITES:
            _debug(f"stream deleted id={stream_id} by={request.state.user.get('email')}")
        return {"message": "Stream deleted"}

    return app
