"""JSON error envelope for every failure the API can produce.

Service errors, request validation failures, framework HTTP errors (unknown
route, wrong method) and unexpected exceptions all render as
``{"message", "error_code", "status_code"}``, with ``detail`` when there is
structured context and ``stack`` only when debugging.
"""

import traceback
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from socialhub.core import settings
from socialhub.core.logging import get_logger, log_context
from socialhub.core.request_utils import get_client_ip
from socialhub.services.errors import AuthError, RateLimitedError, ServiceError

logger = get_logger("errors")

# error_code for framework-raised HTTP errors, by status
_HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_429_TOO_MANY_REQUESTS: "rate_limited",
}


def error_body(
    message: str,
    error_code: str,
    status_code: int,
    exc: BaseException,
    detail: dict[str, Any] | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "message": message,
        "error_code": error_code,
        "status_code": status_code,
    }
    if detail:
        body["detail"] = detail
    if settings.debug:
        body["stack"] = "".join(traceback.format_exception(exc))
    return body


def _request_context(request: Request, error_code: str) -> dict[str, Any]:
    user = getattr(request.state, "user", None)
    decoded = getattr(request.state, "decoded", None)
    return log_context(
        method=request.method,
        path=request.url.path,
        client_ip=get_client_ip(request),
        user_id=user.id if user is not None else None,
        jti=decoded.jti if decoded is not None else None,
        error_code=error_code,
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    context = _request_context(request, exc.error_code)
    if isinstance(exc, AuthError):
        logger.warning(f"Authentication failed: {exc.message}", extra=context)
    else:
        logger.info(f"Request rejected with {exc.status_code}: {exc.message}", extra=context)

    headers = None
    if isinstance(exc, RateLimitedError) and "retry_after" in exc.detail:
        headers = {"Retry-After": str(exc.detail["retry_after"])}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.error_code, exc.status_code, exc, exc.detail),
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    logger.info(
        f"Request validation failed ({len(errors)} errors)",
        extra=_request_context(request, "validation_error"),
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            "Request validation failed",
            "validation_error",
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            exc,
            {"errors": errors},
        ),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error_code = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
    message = exc.detail if isinstance(exc.detail, str) else HTTPStatus(exc.status_code).phrase
    logger.info(f"HTTP {exc.status_code}: {message}", extra=_request_context(request, error_code))
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, error_code, exc.status_code, exc),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        f"Unhandled {type(exc).__name__}",
        extra=_request_context(request, "internal_error"),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            "Internal server error",
            "internal_error",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            exc,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
