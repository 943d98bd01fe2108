"""Tests for catalog providers and the catalog probe."""

from __future__ import annotations

import httpx
import pytest

from catalog.diagnostics import probe
from catalog.provider import (
    CatalogProvider,
    HttpCatalogProvider,
    StaticCatalogProvider,
    YamlCatalogProvider,
    build_catalog_provider,
    load_catalog,
)
from core.errors import CatalogError
from core.models import Component, SubComponent
from diagnostics.models import DiagnosticStatus

CATALOG_YAML = """
components:
  - name: Prow
    ship_team: Test Platform
    sub_components:
      - name: Tide
        managed: true
      - name: Deck
  - name: Auth
    sub_components:
      - name: Login
"""


class _ExplodingProvider(CatalogProvider):
    def list_components(self) -> list[Component]:
        raise RuntimeError("lookup service down")


def test_yaml_provider_loads_components_in_file_order(tmp_path) -> None:
    path = tmp_path / "components.yaml"
    path.write_text(CATALOG_YAML, encoding="utf-8")

    catalog = load_catalog(YamlCatalogProvider(path))

    assert [component.name for component in catalog] == ["Prow", "Auth"]
    prow = catalog.get("Prow")
    assert [sub.name for sub in prow.sub_components] == ["Tide", "Deck"]
    assert prow.sub_components[0].managed is True
    assert catalog.sub_component_count == 3


def test_yaml_provider_rereads_file_on_each_call(tmp_path) -> None:
    path = tmp_path / "components.yaml"
    path.write_text(CATALOG_YAML, encoding="utf-8")
    provider = YamlCatalogProvider(path)
    assert len(provider.list_components()) == 2

    path.write_text("components:\n  - name: Solo\n", encoding="utf-8")

    assert [component.name for component in provider.list_components()] == ["Solo"]


def test_yaml_provider_missing_file(tmp_path) -> None:
    with pytest.raises(CatalogError, match="not found"):
        YamlCatalogProvider(tmp_path / "missing.yaml").list_components()


def test_yaml_provider_requires_components_list(tmp_path) -> None:
    path = tmp_path / "components.yaml"
    path.write_text("services: []\n", encoding="utf-8")

    with pytest.raises(CatalogError, match="'components' list"):
        YamlCatalogProvider(path).list_components()


def test_yaml_provider_rejects_invalid_yaml(tmp_path) -> None:
    path = tmp_path / "components.yaml"
    path.write_text("components: [unclosed\n", encoding="utf-8")

    with pytest.raises(CatalogError, match="Unable to read catalog"):
        YamlCatalogProvider(path).list_components()


def test_load_catalog_wraps_provider_errors() -> None:
    with pytest.raises(CatalogError, match="Catalog provider failed: lookup service down"):
        load_catalog(_ExplodingProvider())


def test_load_catalog_validates_duplicates() -> None:
    provider = StaticCatalogProvider([Component(name="Prow"), Component(name="Prow")])

    with pytest.raises(CatalogError, match="Duplicate component"):
        load_catalog(provider)


def test_catalog_probe_passes(tmp_path) -> None:
    path = tmp_path / "components.yaml"
    path.write_text(CATALOG_YAML, encoding="utf-8")

    result = probe(YamlCatalogProvider(path))

    assert result.status is DiagnosticStatus.PASS
    assert result.details == "2 components, 3 sub-components"


def test_catalog_probe_warns_on_components_without_sub_components() -> None:
    provider = StaticCatalogProvider(
        [Component(name="Prow", sub_components=(SubComponent(name="Tide"),)), Component(name="Solo")]
    )

    result = probe(provider)

    assert result.status is DiagnosticStatus.WARN
    assert "Solo" in result.details


def test_catalog_probe_warns_on_empty_catalog() -> None:
    assert probe(StaticCatalogProvider([])).status is DiagnosticStatus.WARN


def test_catalog_probe_fails_on_provider_error() -> None:
    result = probe(_ExplodingProvider())

    assert result.status is DiagnosticStatus.FAIL
    assert "lookup service down" in result.details


def _http_provider(handler) -> HttpCatalogProvider:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpCatalogProvider("http://dashboard.test/", headers={"X-Team": "tp"}, client=client)


def test_http_provider_reads_dashboard_components() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json=[
                {
                    "name": "Prow",
                    "description": "CI",
                    "ship_team": "Test Platform",
                    "slack_channel": "#forum-testplatform",
                    "sub_components": [
                        {"name": "Tide", "description": "", "managed": True, "requires_confirmation": False},
                        {"name": "Deck", "description": "", "managed": False, "requires_confirmation": True},
                    ],
                    "owners": [{"rover_group": "test-platform"}],
                },
                {"name": "Auth", "sub_components": None, "owners": None},
            ],
        )

    catalog = load_catalog(_http_provider(handler))

    assert [component.name for component in catalog] == ["Prow", "Auth"]
    assert [sub.name for sub in catalog.get("Prow").sub_components] == ["Tide", "Deck"]
    assert catalog.get("Prow").sub_components[1].requires_confirmation is True
    assert catalog.get("Auth").sub_components == ()
    assert requests[0].url.path == "/api/components"
    assert requests[0].headers["X-Team"] == "tp"


def test_http_provider_error_status() -> None:
    with pytest.raises(CatalogError, match="Unexpected status 500"):
        _http_provider(lambda request: httpx.Response(500)).list_components()


def test_http_provider_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CatalogError, match="failed"):
        _http_provider(handler).list_components()


def test_http_provider_invalid_json() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>maintenance</html>")

    with pytest.raises(CatalogError, match="Invalid JSON"):
        _http_provider(handler).list_components()


def test_http_provider_requires_list() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"components": []})

    with pytest.raises(CatalogError, match="JSON list"):
        _http_provider(handler).list_components()


def test_build_catalog_provider_selects_source(tmp_path) -> None:
    file_provider = build_catalog_provider({"catalog": {"source": "file", "path": str(tmp_path / "c.yaml")}})
    http_provider = build_catalog_provider(
        {
            "catalog": {"source": "http"},
            "status_source": {"base_url": "https://dashboard.example/"},
        }
    )

    assert isinstance(file_provider, YamlCatalogProvider)
    assert file_provider.path == tmp_path / "c.yaml"
    assert isinstance(http_provider, HttpCatalogProvider)
    assert http_provider.url == "https://dashboard.example/api/components"
    with pytest.raises(CatalogError):
        build_catalog_provider({"catalog": {"source": "ldap"}})
