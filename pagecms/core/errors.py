# pagecms/core/errors.py
# Taxonomía de errores de dominio + handlers que mantienen el envelope
# {"success": false, "error": "..."} para cualquier tipo de fallo.
from __future__ import annotations

import logging
from typing import Any, Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class CMSError(Exception):
    status_code: int = 500
    default_message: str = "Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CMSError):
    status_code = 400
    default_message = "Invalid input"

    def __init__(self, messages: str | Iterable[str]) -> None:
        if isinstance(messages, str):
            messages = [messages]
        self.messages = [m for m in messages if m]
        super().__init__(", ".join(self.messages))


class NotFoundError(CMSError):
    status_code = 404
    default_message = "Resource not found"

    def __init__(self, entity: str, ident: Any) -> None:
        self.entity = entity
        self.ident = ident
        super().__init__(f"{entity} not found with id of {ident}")


class SectionNotFoundError(NotFoundError):
    """Variante direccionada por clave compuesta (page, sectionKey)."""

    def __init__(self, page: str, section_key: str) -> None:
        self.page = page
        self.section_key = section_key
        CMSError.__init__(self, f"Section '{section_key}' not found on page '{page}'")


class ConflictError(CMSError):
    status_code = 400
    default_message = "Duplicate field value entered"


class ServerError(CMSError):
    status_code = 500


def error_body(message: str) -> dict:
    return {"success": False, "error": message}


def _format_validation_errors(errors: list[dict]) -> list[str]:
    out: list[str] = []
    for err in errors:
        msg = str(err.get("msg") or "Invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        loc = [str(p) for p in (err.get("loc") or ()) if p not in ("body", "query", "path")]
        out.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return out


async def _cms_error_handler(request: Request, exc: CMSError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Unhandled CMS error on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(detail),
        headers=getattr(exc, "headers", None),
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = _format_validation_errors(list(exc.errors()))
    return JSONResponse(status_code=400, content=error_body(", ".join(messages)))


async def _integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=400, content=error_body(ConflictError.default_message))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body(ServerError.default_message))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CMSError, _cms_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(IntegrityError, _integrity_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
