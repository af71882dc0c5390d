"""
Custom middleware for the MicroTools backend.

This module contains the request logging middleware.
"""

import time
import uuid
from typing import Any

from fastapi import Request
from loguru import logger


class LoggingMiddleware:
    """
    Custom logging middleware for request/response logging.

    This middleware logs all incoming requests and their status with timing
    information and request IDs for better debugging. Timing covers the
    whole response body, so streamed downloads are measured to completion.
    """

    def __init__(self, app: Any) -> None:
        """
        Initialize the logging middleware.

        Args:
            app: ASGI application
        """
        self.app = app

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        """
        Process the request and add logging.

        Args:
            scope: ASGI scope
            receive: ASGI receive callable
            send: ASGI send callable
        """
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())[:8]
        scope["request_id"] = request_id
        start_time = time.time()
        status_code = 500

        request = Request(scope, receive)
        logger.info(
            f"[{request_id}] {request.method} {request.url.path} - "
            f"Client: {request.client.host if request.client else 'unknown'}"
        )

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = list(message.get("headers", []))
                headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            process_time = time.time() - start_time
            logger.info(f"[{request_id}] {status_code} in {process_time:.3f}s")
