"""Translate token service errors into HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tokengate.services.errors import TokenServiceError

logger = logging.getLogger(__name__)


def error_body(error: TokenServiceError) -> dict[str, object]:
    body: dict[str, object] = {"detail": str(error), "code": error.code}
    invalid = getattr(error, "invalid_scopes", None)
    if invalid:
        body["invalid_scopes"] = invalid
    missing = getattr(error, "missing_scopes", None)
    if missing:
        body["missing_scopes"] = missing
    return body


def error_headers(error: TokenServiceError) -> dict[str, str] | None:
    if error.status_code == 401:
        return {"WWW-Authenticate": "Bearer"}
    return None


async def token_service_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, TokenServiceError)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc),
        headers=error_headers(exc),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TokenServiceError, token_service_error_handler)
