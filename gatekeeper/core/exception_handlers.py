"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses -> HTTP status by type (400 for caller input,
  500 for server misconfiguration)
- Unexpected Exception -> generic 500 (safety net)
- All responses include request_id for tracing

Rate limit rejections never reach these handlers: they are raised as
HTTPException(429) by the rate limit dependency and rendered by FastAPI.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from gatekeeper.core.errors import AppError, InvalidConfigError
from gatekeeper.core.logging import get_request_id

logger = logging.getLogger(__name__)


def _status_for(exc: AppError) -> int:
    if isinstance(exc, InvalidConfigError):
        return 500
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors as ``{"error": {code, message, request_id, details?}}``.

    - ValidationAppError / InvalidKeyError -> 400 Bad Request (client fault)
    - InvalidConfigError -> 500 Internal Server Error (deployment fault)
    """
    status_code = _status_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure for debugging but returns a generic message, so no
    stack trace or exception text reaches the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "Something went wrong!",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
