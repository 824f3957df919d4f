"""
Middleware Package

- request_id: bind and echo X-Request-ID
- error_handler: last-resort conversion of unhandled exceptions to JSON 500s

Registration order lives in application/app.py. Middleware added last runs
first, so RequestIDMiddleware is added after ErrorHandlingMiddleware and every
log line, including the error handler's, carries the request ID.
"""

from .error_handler import ErrorHandlingMiddleware, add_error_handling_middleware
from .request_id import RequestIDMiddleware

__all__ = ["ErrorHandlingMiddleware", "RequestIDMiddleware", "add_error_handling_middleware"]
