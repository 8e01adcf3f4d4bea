"""JSON-over-HTTP client shared by the sibling-service RPC clients."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

import httpx

from hrm_user_service.core.errors import DependencyError

logger = logging.getLogger(__name__)


class ServiceClient:
    """Thin wrapper around ``httpx.Client`` that maps transport failures to ``DependencyError``."""

    service_name = "service"

    def __init__(self, base_url: str, timeout: float, transport: httpx.BaseTransport | None = None) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        step: str,
        payload: dict[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> dict[str, Any] | None:
        """Send one request and return the decoded JSON object body.

        Returns None for 404 when ``allow_not_found`` is set and for empty bodies.
        """
        start = time.perf_counter()
        try:
            response = self._client.request(method, path, json=payload)
        except httpx.TimeoutException as exc:
            logger.info(
                "RPC request timed out",
                extra={"service": self.service_name, "step": step, "latency_seconds": time.perf_counter() - start},
            )
            raise DependencyError(f"{step}: {self.service_name} request timed out") from exc
        except httpx.HTTPError as exc:
            logger.info(
                "RPC request failed",
                extra={"service": self.service_name, "step": step, "latency_seconds": time.perf_counter() - start},
            )
            raise DependencyError(f"{step}: {self.service_name} is unreachable") from exc

        logger.debug(
            "RPC request completed",
            extra={
                "service": self.service_name,
                "step": step,
                "status": response.status_code,
                "latency_seconds": time.perf_counter() - start,
            },
        )

        if response.status_code == 404 and allow_not_found:
            return None
        if response.status_code >= 400:
            raise DependencyError(f"{step}: {self.service_name} returned status {response.status_code}")
        if not response.content:
            return None
        try:
            body = response.json()
        except json.JSONDecodeError as exc:
            raise DependencyError(f"{step}: {self.service_name} response is not valid JSON") from exc
        if not isinstance(body, dict):
            raise DependencyError(f"{step}: {self.service_name} response is not a JSON object")
        return body
