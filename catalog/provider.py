"""Catalog provider interface and implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, Mapping

import httpx
import yaml

from core.errors import CatalogError
from core.logging import logger as LOGGER
from core.models import Catalog, Component


class CatalogProvider(ABC):
    """Interface for sources of the component catalog."""

    @abstractmethod
    def list_components(self) -> list[Component]:
        """Return the current catalog in display order."""


class StaticCatalogProvider(CatalogProvider):
    """In-memory catalog, mostly for embedding callers and tests."""

    def __init__(self, components: Iterable[Component]) -> None:
        self._components = list(components)

    def list_components(self) -> list[Component]:
        return list(self._components)


class YamlCatalogProvider(CatalogProvider):
    """Catalog read from a ``components:`` YAML file on every call."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def list_components(self) -> list[Component]:
        if not self._path.exists():
            raise CatalogError(f"Catalog file not found: {self._path}")
        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise CatalogError(f"Unable to read catalog {self._path}: {exc}") from exc

        if not isinstance(raw, dict) or not isinstance(raw.get("components"), list):
            raise CatalogError(f"Catalog {self._path} must define a 'components' list")

        components = [Component.from_mapping(item) for item in raw["components"]]
        LOGGER.debug("[Catalog] Loaded %d components from %s", len(components), self._path)
        return components


class HttpCatalogProvider(CatalogProvider):
    """Catalog served by the dashboard at ``GET {base_url}/api/components``.

    The endpoint returns a JSON list of component objects in the same shape as
    the catalog file entries.
    """

    def __init__(
        self,
        base_url: str,
        *,
        headers: Mapping[str, str] | None = None,
        verify_ssl: bool = True,
        timeout_s: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = dict(headers or {})
        self._verify_ssl = verify_ssl
        self._timeout_s = float(timeout_s)
        self._client = client

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "HttpCatalogProvider":
        source_cfg = config.get("status_source") or {}
        aggregation_cfg = config.get("aggregation") or {}
        return cls(
            str(source_cfg.get("base_url", "http://localhost:8080")),
            headers=source_cfg.get("headers") or {},
            verify_ssl=bool(source_cfg.get("verify_ssl", True)),
            timeout_s=float(aggregation_cfg.get("lookup_timeout_s", 10.0)),
        )

    @property
    def url(self) -> str:
        return f"{self._base_url}/api/components"

    def list_components(self) -> list[Component]:
        try:
            if self._client is not None:
                response = self._client.get(self.url, headers=self._headers)
            else:
                with httpx.Client(timeout=self._timeout_s, verify=self._verify_ssl) as client:
                    response = client.get(self.url, headers=self._headers)
        except httpx.HTTPError as exc:
            raise CatalogError(f"Request to {self.url} failed: {exc}") from exc

        if not response.is_success:
            raise CatalogError(f"Unexpected status {response.status_code} from {self.url}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogError(f"Invalid JSON from {self.url}: {exc}") from exc
        if not isinstance(payload, list):
            raise CatalogError(f"Catalog from {self.url} must be a JSON list")

        components = [Component.from_mapping(item) for item in payload]
        LOGGER.debug("[Catalog] Loaded %d components from %s", len(components), self.url)
        return components


def build_catalog_provider(config: Mapping[str, Any]) -> CatalogProvider:
    """Return the catalog provider selected by ``catalog.source``."""

    catalog_cfg = config.get("catalog") or {}
    source = catalog_cfg.get("source", "file")
    if source == "http":
        return HttpCatalogProvider.from_config(config)
    if source == "file":
        return YamlCatalogProvider(catalog_cfg["path"])
    raise CatalogError(f"Unknown catalog source: {source!r}")


def load_catalog(provider: CatalogProvider) -> Catalog:
    """Read and validate one catalog snapshot from a provider.

    Raises:
        CatalogError: If the provider fails or returns an invalid catalog.
    """

    try:
        components = provider.list_components()
    except CatalogError:
        raise
    except Exception as exc:
        raise CatalogError(f"Catalog provider failed: {exc}") from exc
    return Catalog.from_components(components)
