"""HTTP middleware binding a correlation id to every request."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .request_id import request_id_scope
from .logging_config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Request-ID or mint one, and echo it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        with request_id_scope(request.headers.get(REQUEST_ID_HEADER)) as request_id:
            start_time = time.time()
            logger.info(f"{request.method} {request.url.path}")

            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    f"Request failed after {(time.time() - start_time) * 1000:.2f}ms: {type(e).__name__}",
                    exc_info=True
                )
                raise

            logger.info(
                f"Request completed: {response.status_code} in {(time.time() - start_time) * 1000:.2f}ms",
                extra={"status": response.status_code}
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
