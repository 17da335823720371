"""Error taxonomy and its HTTP mapping.

Every failure a request can hit ends up as one of these, converted to a
status code plus `{"message": ...}` by the handlers installed in
`install_error_handlers`. Auth failures carry no message and render as an
empty body.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from stream_catalog.db import InvalidIdError, StoreError, StoreValidationError


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message


class NotFound(ApiError):
    status_code = 404


class ValidationFailure(ApiError):
    status_code = 400


class AuthRequired(ApiError):
    status_code = 401


class AuthInvalid(ApiError):
    status_code = 403


class Unexpected(ApiError):
    status_code = 500


def error_response(status_code: int, message: Optional[str]) -> Response:
    if message is None:
        return Response(status_code=status_code)
    return JSONResponse(status_code=status_code, content={"message": message})


def validation_message(errors: Any) -> str:
    """Flatten pydantic errors into one line, e.g. `title: Field required`."""
    parts = []
    for err in errors or []:
        # Drop the leading "body"/"path" location segment.
        loc = [str(x) for x in (err.get("loc") or ()) if x not in ("body", "path", "query")]
        msg = str(err.get("msg") or "invalid")
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "Validation failed: " + "; ".join(parts) if parts else "Validation failed"


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError) -> Response:
        if exc.status_code >= 500:
            _debug(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> Response:
        return error_response(400, validation_message(exc.errors()))

    # Store errors: malformed ids and rejected writes are the caller's fault,
    # anything else is reported with the driver's message.
    @app.exception_handler(InvalidIdError)
    async def _invalid_id(request: Request, exc: InvalidIdError) -> Response:
        return error_response(400, str(exc))

    @app.exception_handler(StoreValidationError)
    async def _store_validation(request: Request, exc: StoreValidationError) -> Response:
        return error_response(400, str(exc))

    @app.exception_handler(StoreError)
    async def _store_error(request: Request, exc: StoreError) -> Response:
        _debug(f"{request.method} {request.url.path} store error: {exc}")
        return error_response(500, str(exc))

    # Everything else, e.g. a stored document that no longer fits the model.
    # Starlette still re-raises after sending this, so the traceback is logged.
    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> Response:
        err = Unexpected(str(exc) or exc.__class__.__name__)
        _debug(f"{request.method} {request.url.path} unexpected {exc.__class__.__name__}: {err.message}")
        return error_response(err.status_code, err.message)
