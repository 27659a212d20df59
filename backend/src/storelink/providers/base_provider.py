"""
Base Provider - Common functionality for all provider adapters

Provides shared utilities for credential validation, HTTP access, latency
measurement and logging that all adapter implementations use.
"""

import logging
import time
from abc import ABC
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..credentials.schemas import Credential
from ..observability.metrics import provider_probes_total
from .ports import ProviderPort, ProviderError, ProbeResult


logger = logging.getLogger(__name__)


class BaseProvider(ProviderPort, ABC):
    """
    Base class for provider adapter implementations.

    Provides common functionality:
    - Required field validation before each probe
    - A short-lived httpx client per call, bounded by PROVIDER_HTTP_TIMEOUT_SECONDS
    - Translation of transport failures to ProviderError
    - Probe timing and logging

    Subclasses implement probe_reachability (and fetch_catalog or
    issue_activation_token depending on their kind).
    """

    def __init__(self, transport: Optional[httpx.BaseTransport] = None, timeout: Optional[float] = None):
        # transport is injectable so adapters can be exercised without a network
        self._transport = transport
        self._timeout = timeout if timeout is not None else settings.PROVIDER_HTTP_TIMEOUT_SECONDS

    def http_client(self, **kwargs: Any) -> httpx.Client:
        """Build a new client for one probe or fetch; callers close it with `with`."""
        if self._transport is not None:
            kwargs.setdefault("transport", self._transport)
        return httpx.Client(timeout=self._timeout, **kwargs)

    def request_json(self, client: httpx.Client, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Perform a request and return the response if it is a 2xx.

        Raises:
            ProviderError: On timeout, transport failure or non-2xx status
        """
        try:
            response = client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            raise ProviderError(f"{self.provider_type}: request timed out after {self._timeout}s")
        except httpx.HTTPError as e:
            raise ProviderError(f"{self.provider_type}: request failed ({type(e).__name__})")

        if response.status_code in (401, 403):
            raise ProviderError(f"{self.provider_type}: credential rejected (HTTP {response.status_code})")
        if response.status_code >= 400:
            raise ProviderError(f"{self.provider_type}: unexpected HTTP {response.status_code}")

        return response

    def measure_latency(self, operation_name: str):
        """
        Context manager for measuring operation latency.

        Usage:
            with self.measure_latency("shopify_probe") as timer:
                ...
            timer.latency_ms
        """
        class LatencyMeasurer:
            def __init__(self, name: str):
                self.name = name
                self.start_time = None
                self.latency_ms = 0

            def __enter__(self):
                self.start_time = time.time()
                return self

            def __exit__(self, exc_type, exc_val, exc_tb):
                self.latency_ms = int((time.time() - self.start_time) * 1000)
                if exc_type is None:
                    logger.debug(f"{self.name} completed in {self.latency_ms}ms")
                else:
                    logger.warning(f"{self.name} failed after {self.latency_ms}ms: {exc_val}")
                return False  # Don't suppress exceptions

        return LatencyMeasurer(operation_name)

    def run_probe(self, credential: Credential, probe) -> ProbeResult:
        """
        Run a probe callable and convert its outcome into a ProbeResult.

        probe(client) returns a details dict or raises ProviderError.
        """
        details: Dict[str, Any] = {}
        error: Optional[str] = None
        with self.measure_latency(f"{self.provider_type.lower()}_probe") as timer:
            try:
                self.validate_required_fields(credential)
                with self.http_client() as client:
                    details = probe(client) or {}
            except ProviderError as e:
                error = str(e)

        result = ProbeResult(
            success=error is None,
            error_message=error,
            latency_ms=timer.latency_ms,
            details=details,
        )
        self.log_probe_attempt(result)
        return result

    def log_probe_attempt(self, result: ProbeResult) -> None:
        """Log a reachability probe for observability."""
        provider_probes_total.labels(
            provider_type=self.provider_type,
            status="success" if result.success else "failed",
        ).inc()

        if result.success:
            logger.info(
                "Provider probe succeeded",
                extra={
                    "provider_type": self.provider_type,
                    "latency_ms": result.latency_ms,
                    "status": "success"
                }
            )
        else:
            logger.warning(
                f"Provider probe failed: {result.error_message}",
                extra={
                    "provider_type": self.provider_type,
                    "latency_ms": result.latency_ms,
                    "status": "failed",
                    "error": result.error_message
                }
            )
