"""
Error Handling Middleware

Last line of defense for exceptions that no route or exception handler dealt
with. Store failures never get here: the adapter absorbs them and the admin
service turns the ones operators must see into CacheOperationError. What does
reach this middleware is a programming error, so it is logged with its stack
trace, counted, and answered with a generic 500 body.
"""

import traceback
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from listing_cache.core.logging.logger import get_logger
from listing_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Convert unhandled exceptions into a JSON 500 response.

    Args:
        app: The ASGI application
        include_traceback: Add the stack trace to the response body
            (development only)
    """

    def __init__(self, app, include_traceback: bool = False):
        super().__init__(app)
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            error_type = type(e).__name__
            logger.error(
                f"Unhandled exception in request: {request.method} {request.url.path}",
                method=request.method,
                path=request.url.path,
                error_type=error_type,
                error_message=str(e),
                exc_info=True,
            )
            get_metrics_collector().record_error(error_type, "unhandled_exception")

            body = {
                "success": False,
                "error": "internal_server_error",
                "message": "An unexpected error occurred while processing your request",
                "error_type": error_type,
            }
            if self.include_traceback:
                body["traceback"] = traceback.format_exc()
                body["detail"] = str(e)

            return JSONResponse(status_code=500, content=body)


def add_error_handling_middleware(app, include_traceback: bool = False):
    """Register ErrorHandlingMiddleware on ``app``."""
    app.add_middleware(ErrorHandlingMiddleware, include_traceback=include_traceback)
    logger.info("Error handling middleware registered", include_traceback=include_traceback)
