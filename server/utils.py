"""Shared utilities for FastAPI routes."""

import os

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from models.errors import AskWebError
from utils.logger import get_logger

logger = get_logger(__name__)


def _expose_details() -> bool:
    return os.getenv("APP_ENV", "production").lower() == "development"


def error_response(exc: AskWebError) -> JSONResponse:
    """Render an AskWebError as ``{error, details?}`` with its status code."""
    payload = exc.to_dict()
    if not _expose_details():
        payload.pop("details", None)
    return JSONResponse(status_code=exc.status_code, content=payload)


async def askweb_error_handler(request: Request, exc: AskWebError) -> JSONResponse:
    logger.warning(
        "Request failed",
        extra={
            "extra_fields": {
                "path": request.url.path,
                "error_code": exc.code,
                "status_code": exc.status_code,
                "error": exc.message,
            }
        },
    )
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are bad input (400), not 422."""
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    details = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": details},
    )
