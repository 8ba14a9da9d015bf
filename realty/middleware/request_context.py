"""
Request context middleware.
Tags every request with an id, rejects oversized bodies and logs traffic in debug mode.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from realty.services.error_handler import ErrorHandlerService
from realty.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Assigns ``request.state.request_id`` and echoes it in the ``X-Request-ID`` header.
    An incoming ``X-Request-ID`` header is reused so ids can be correlated across services.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 25 * 1024 * 1024,
        enable_request_logging: bool = False
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        start_time = time.time()

        try:
            self._validate_request_size(request)

            if self.enable_request_logging:
                logger.info(f"[{request_id}] {request.method} {request.url.path}")

            response = await call_next(request)

            if self.enable_request_logging:
                elapsed_ms = (time.time() - start_time) * 1000
                logger.info(f"[{request_id}] {response.status_code} in {elapsed_ms:.1f}ms")

        except BadRequestError as exc:
            response = ErrorHandlerService.handle_api_exception(exc, request)
        except Exception as exc:
            response = ErrorHandlerService.handle_unexpected_error(exc, request)

        response.headers["X-Request-ID"] = request_id
        return response

    def _validate_request_size(self, request: Request) -> None:
        """
        Raises:
            BadRequestError: If the declared body size exceeds the limit or is malformed
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            return

        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")

        if size > self.max_request_size:
            raise BadRequestError(
                f"Request size {size} bytes exceeds maximum allowed size {self.max_request_size} bytes"
            )
