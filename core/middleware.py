"""Request logging middleware."""

import logging
import time

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """Log every request as ``METHOD path -> status (ms)``."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000

        message = f"{request.method} {request.get_full_path()} -> {response.status_code} ({elapsed_ms:.0f}ms)"
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)

        return response
