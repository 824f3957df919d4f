"""
Request ID Middleware

Reads ``X-Request-ID`` from the incoming request (or generates one), binds it
to the logging context for the duration of the request, and echoes it on the
response so a client can quote it when reporting a problem.
"""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from listing_cache.core.config.constants import HEADER_REQUEST_ID
from listing_cache.core.logging.logger import clear_request_id, set_request_id


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)
        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            return response
        finally:
            clear_request_id()
