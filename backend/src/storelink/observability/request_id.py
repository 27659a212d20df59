"""Correlation IDs for log lines.

An HTTP request carries its X-Request-ID; a Celery task run uses its task id.
Both end up in the same contextvar so every log line of one operation can be
grouped, whether it came through the API or the worker.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

NO_REQUEST_ID = "no-request-id"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str:
    return request_id_var.get() or NO_REQUEST_ID


@contextmanager
def request_id_scope(request_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation id for the duration of the block.

    The previous value is restored on exit, so nested task runs inside an
    eager Celery call do not leak their id into the caller.

    Usage:
        with request_id_scope(f"task-{self.request.id}"):
            ConnectionService(db).sync(...)
    """
    value = request_id or generate_request_id()
    token = request_id_var.set(value)
    try:
        yield value
    finally:
        request_id_var.reset(token)
