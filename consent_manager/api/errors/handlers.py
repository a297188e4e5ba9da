"""
Exception handlers producing the standardized error envelope.
"""

import time
import logging
from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError

from consent_manager.api.errors.exceptions import APIException

logger = logging.getLogger(__name__)


def error_body(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> dict:
    """
    Build the error envelope.

    Args:
        code: Error code
        message: Human-readable message
        details: Additional error details
        request_id: Request ID for tracking

    Returns:
        ``{"error": {code, message, details, timestamp, request_id}}``
    """
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "timestamp": time.time(),
            "request_id": request_id
        }
    }


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def _format_errors(errors) -> List[Dict[str, str]]:
    return [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        }
        for error in errors
    ]


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    request_id = _request_id(request)
    logger.warning(f"API exception {exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.details, request_id)
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    request_id = _request_id(request)
    logger.warning(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(f"HTTP_{exc.status_code}", str(exc.detail), request_id=request_id)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body, path and query validation failures are client errors (400)."""
    request_id = _request_id(request)
    errors = _format_errors(exc.errors())
    logger.warning(f"Request validation failed on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            "VALIDATION_ERROR",
            "Request validation failed",
            {"errors": errors},
            request_id
        )
    )


async def pydantic_validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    request_id = _request_id(request)
    errors = _format_errors(exc.errors())
    logger.warning(f"Data validation failed on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            "VALIDATION_ERROR",
            "Data validation failed",
            {"errors": errors},
            request_id
        )
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = _request_id(request)
    logger.exception(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            "INTERNAL_SERVER_ERROR",
            "Internal server error",
            request_id=request_id
        )
    )


def register_exception_handlers(app):
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, pydantic_validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
