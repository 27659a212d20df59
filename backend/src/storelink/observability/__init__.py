"""Observability for the integration engine.

- logging_config: JSON log lines carrying seller / provider context fields
- request_id: correlation ids shared by API requests and task runs
- metrics: Prometheus counters for probes, transitions and sync outcomes
"""

from .logging_config import configure_logging, get_logger
from .request_id import get_request_id, request_id_scope

__all__ = [
    "configure_logging",
    "get_logger",
    "get_request_id",
    "request_id_scope",
]
