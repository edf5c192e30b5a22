# cloudos/core/errors.py
from __future__ import annotations

import traceback
from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

logger = structlog.get_logger(__name__)


class ApiError(Exception):
    """Base for every error that maps to a JSON ``success: false`` envelope.

    Messages on these classes are public; extra keyword arguments are merged
    into the response body (``required``/``current``, ``retryAfter``...).
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None, **extra: Any):
        self.message = message or self.message
        self.headers = headers
        self.extra = extra
        super().__init__(self.message)

    def body(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message, "code": self.code, **self.extra}


class ValidationFailed(ApiError):
    status_code = 400
    code = "VALIDATION_FAILED"
    message = "Validation failed"


class InvalidCredentials(ApiError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class AccessTokenRequired(ApiError):
    status_code = 401
    code = "ACCESS_TOKEN_REQUIRED"
    message = "Access token required"


class InvalidToken(ApiError):
    status_code = 401
    code = "INVALID_TOKEN"
    message = "Invalid token"


class InvalidOrExpiredToken(ApiError):
    status_code = 401
    code = "INVALID_OR_EXPIRED_TOKEN"
    message = "Invalid or expired token"


class AccountNotActive(ApiError):
    status_code = 401
    code = "ACCOUNT_NOT_ACTIVE"
    message = "Account is not active"


class InsufficientPermissions(ApiError):
    status_code = 403
    code = "INSUFFICIENT_PERMISSIONS"
    message = "Insufficient permissions"


class AccessDenied(ApiError):
    status_code = 403
    code = "ACCESS_DENIED"
    message = "Access denied - you can only access your own resources"


class NotFound(ApiError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class TooManyAttempts(ApiError):
    status_code = 429
    code = "TOO_MANY_ATTEMPTS"
    message = "Too many attempts, please try again later"


class AuthenticationFailed(ApiError):
    code = "AUTHENTICATION_FAILED"
    message = "Authentication failed"


class AuthUrlFailed(ApiError):
    code = "AUTH_URL_FAILED"
    message = "Failed to generate authentication URL"


class DashboardFailed(ApiError):
    code = "DASHBOARD_FAILED"
    message = "Failed to load dashboard"


class SSOError(Exception):
    """Raised by the identity-provider client; never rendered as JSON."""


def _with_request_id(request: Request, body: Dict[str, Any]) -> Dict[str, Any]:
    request_id = request.headers.get("x-request-id") or getattr(request.state, "request_id", None)
    if request_id:
        body["requestId"] = request_id
    return body


def register_exception_handlers(app: FastAPI, *, expose_internal_errors: bool = False) -> None:
    @app.exception_handler(ApiError)
    def handle_api_error(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error("api_error", code=exc.code, path=request.url.path)
        return JSONResponse(
            status_code=exc.status_code,
            content=_with_request_id(request, exc.body()),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    def handle_validation_error(request: Request, exc: RequestValidationError):
        details = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
            for e in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=_with_request_id(request, ValidationFailed(details=details).body()),
        )

    @app.exception_handler(StarletteHTTPException)
    def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            body = {
                "success": False,
                "error": "Route not found",
                "code": "NOT_FOUND",
                "message": f"The requested endpoint {request.method} {request.url.path} does not exist",
            }
            logger.warning("route_not_found", method=request.method, path=request.url.path)
        else:
            body = {"success": False, "error": str(exc.detail), "code": f"HTTP_{exc.status_code}"}
        return JSONResponse(status_code=exc.status_code, content=_with_request_id(request, body),
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(IntegrityError)
    def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning("integrity_error", path=request.url.path, error=str(getattr(exc, "orig", exc)))
        return JSONResponse(
            status_code=409,
            content=_with_request_id(request, {"success": False, "error": "Duplicate record", "code": "UNIQUE_VIOLATION"}),
        )

    @app.exception_handler(Exception)
    def handle_unexpected(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path, method=request.method)
        body: Dict[str, Any] = {"success": False, "error": "Internal server error", "code": "INTERNAL_ERROR"}
        if expose_internal_errors:
            body["error"] = str(exc) or body["error"]
            body["type"] = type(exc).__name__
            body["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return JSONResponse(status_code=500, content=_with_request_id(request, body))
