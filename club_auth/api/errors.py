"""
Exception handlers rendering every failure as ``{"error", "error_code"}``.
"""
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from ..core.exceptions import AuthError

logger = structlog.get_logger()


def _error_body(message: str, code: str) -> dict:
    return {"error": message, "error_code": code}


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.error_code))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report the first failing field; the message is the validator's own text."""
    errors = exc.errors()
    logger.warning("Request rejected by validation", path=request.url.path, fields=[e.get("loc") for e in errors])

    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(message.removeprefix("Value error, "), "VALIDATION_ERROR"),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), f"HTTP_{exc.status_code}"),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
