# app/core/errors.py
import logging
from typing import Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.permissions import PermissionDenied

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Los datos proporcionados no son válidos."


class ApiError(StarletteHTTPException):
    """HTTP error rendered as {"message": ..., **extra} instead of {"detail": ...}."""

    def __init__(self, status_code: int, message: str, headers: Dict[str, str] | None = None, **extra):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message
        self.extra = extra

    def payload(self) -> dict:
        return {"message": self.message, **self.extra}


class FieldValidationError(ApiError):
    """422 with field-level messages: {"message": ..., "errors": {field: [msg, ...]}}."""

    def __init__(self, errors: Dict[str, List[str]], message: str | None = None):
        if message is None:
            # Headline is the first field message
            first = next(iter(errors.values()), [VALIDATION_MESSAGE])
            message = first[0] if first else VALIDATION_MESSAGE
        super().__init__(422, message, errors=errors)
        self.errors = errors


def _field_name(loc) -> str:
    # ("body", "correo") -> "correo"; the body itself -> "body"
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def _clean_message(msg: str) -> str:
    # pydantic prefixes ValueError messages raised in validators with "Value error, "
    return msg.split(", ", 1)[1] if msg.startswith("Value error, ") else msg


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.payload(), headers=exc.headers)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    content = detail if isinstance(detail, dict) else {"message": detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        errors.setdefault(_field_name(err.get("loc", ())), []).append(_clean_message(err.get("msg", "")))
    return await api_error_handler(request, FieldValidationError(errors))


async def permission_denied_handler(request: Request, exc: PermissionDenied):
    logger.info(
        "Permission denied: %s %s -> %s",
        request.method, request.url.path, exc.denial.error,
    )
    response = exc.denial.to_response()
    if exc.denial.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(PermissionDenied, permission_denied_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
