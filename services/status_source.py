"""Status source interface and the dashboard API client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping
from urllib.parse import quote

import httpx

from core.errors import StatusSourceError
from core.logging import logger as LOGGER
from core.models import StatusReport


class StatusSource(ABC):
    """Interface for upstream status lookups.

    Each call addresses exactly one entity and may fail; callers are expected
    to tolerate any exception raised here.
    """

    @abstractmethod
    async def get_component_status(self, component_name: str) -> StatusReport:
        """Return the reported status of a top-level component."""

    @abstractmethod
    async def get_sub_component_status(
        self,
        component_name: str,
        sub_component_name: str,
    ) -> StatusReport:
        """Return the reported status of one sub-component."""


class HttpStatusSource(StatusSource):
    """Status source backed by the dashboard HTTP API.

    Lookups map to ``GET {base_url}/api/status/{component}`` and
    ``GET {base_url}/api/status/{component}/{sub_component}``. Both return a
    ``{"status": ..., "active_outages": [...]}`` object.

    Example:
        >>> async with HttpStatusSource("http://dashboard:8080") as source:
        ...     report = await source.get_component_status("Prow")
    """

    def __init__(
        self,
        base_url: str,
        *,
        headers: Mapping[str, str] | None = None,
        verify_ssl: bool = True,
        timeout_s: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Dashboard API root, without a trailing slash.
            headers: Extra headers sent with every request.
            verify_ssl: Whether to verify TLS certificates.
            timeout_s: Transport timeout for each request.
            client: Optional pre-built client; it is not closed by this source.
        """

        self._base_url = base_url.rstrip("/")
        self._headers = dict(headers or {})
        self._verify_ssl = verify_ssl
        self._timeout_s = float(timeout_s)
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "HttpStatusSource":
        source_cfg = config.get("status_source") or {}
        aggregation_cfg = config.get("aggregation") or {}
        return cls(
            str(source_cfg.get("base_url", "http://localhost:8080")),
            headers=source_cfg.get("headers") or {},
            verify_ssl=bool(source_cfg.get("verify_ssl", True)),
            timeout_s=float(aggregation_cfg.get("lookup_timeout_s", 10.0)),
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "HttpStatusSource":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def get_component_status(self, component_name: str) -> StatusReport:
        return await self._fetch(self._url("api", "status", component_name))

    async def get_sub_component_status(
        self,
        component_name: str,
        sub_component_name: str,
    ) -> StatusReport:
        return await self._fetch(self._url("api", "status", component_name, sub_component_name))

    async def check_health(self) -> bool:
        """Return True when the dashboard ``/health`` endpoint answers 2xx."""

        try:
            response = await self._get_client().get(self._url("health"), headers=self._headers)
        except httpx.HTTPError as exc:
            LOGGER.warning("[StatusSource] Health check failed for %s: %s", self._base_url, exc)
            return False
        return response.is_success

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout_s,
                verify=self._verify_ssl,
            )
            self._owns_client = True
        return self._client

    def _url(self, *segments: str) -> str:
        path = "/".join(quote(segment, safe="") for segment in segments)
        return f"{self._base_url}/{path}"

    async def _fetch(self, url: str) -> StatusReport:
        try:
            response = await self._get_client().get(url, headers=self._headers)
        except httpx.TimeoutException as exc:
            raise StatusSourceError(f"Timed out requesting {url}") from exc
        except httpx.HTTPError as exc:
            raise StatusSourceError(f"Request to {url} failed: {exc}") from exc

        if not response.is_success:
            raise StatusSourceError(f"Unexpected status {response.status_code} from {url}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise StatusSourceError(f"Invalid JSON from {url}: {exc}") from exc

        try:
            return StatusReport.from_payload(payload)
        except ValueError as exc:
            raise StatusSourceError(f"Malformed status payload from {url}: {exc}") from exc
