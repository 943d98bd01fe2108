"""Tests for the dashboard HTTP status source."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from core.errors import StatusSourceError
from core.models import Component, Status, SubComponent
from services.aggregator import AggregationEngine
from services.resolver import StatusResolver
from services.status_source import HttpStatusSource


def _run(handler, call):
    async def _scenario():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        try:
            source = HttpStatusSource(
                "http://dashboard.test/",
                headers={"Authorization": "Bearer token"},
                client=client,
            )
            return await call(source)
        finally:
            await client.aclose()

    return asyncio.run(_scenario())


def test_component_status_parses_payload() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "status": "Degraded",
                "active_outages": [
                    {
                        "id": 12,
                        "component_name": "Tide",
                        "severity": "Degraded",
                        "start_time": "2024-05-01T10:00:00Z",
                        "end_time": {"Time": "0001-01-01T00:00:00Z", "Valid": False},
                    }
                ],
            },
        )

    report = _run(handler, lambda source: source.get_component_status("Prow"))

    assert report.status is Status.DEGRADED
    assert [outage.id for outage in report.outages] == [12]
    assert report.outages[0].is_active
    assert requests[0].url.path == "/api/status/Prow"
    assert requests[0].headers["Authorization"] == "Bearer token"


def test_sub_component_url_escapes_names() -> None:
    paths: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.raw_path)
        return httpx.Response(200, json={"status": "Healthy", "active_outages": []})

    report = _run(handler, lambda source: source.get_sub_component_status("Build Farm", "Job/Runner"))

    assert report.status is Status.HEALTHY
    assert report.outages == ()
    assert paths == [b"/api/status/Build%20Farm/Job%2FRunner"]


def test_error_status_raises() -> None:
    with pytest.raises(StatusSourceError, match="Unexpected status 500"):
        _run(lambda request: httpx.Response(500), lambda source: source.get_component_status("Prow"))


def test_not_found_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "Sub-component not found"})

    with pytest.raises(StatusSourceError, match="404"):
        _run(handler, lambda source: source.get_sub_component_status("Prow", "Missing"))


def test_invalid_json_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(StatusSourceError, match="Invalid JSON"):
        _run(handler, lambda source: source.get_component_status("Prow"))


def test_unknown_status_value_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "Green", "active_outages": []})

    with pytest.raises(StatusSourceError, match="Malformed status payload"):
        _run(handler, lambda source: source.get_component_status("Prow"))


def test_timeout_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(StatusSourceError, match="Timed out"):
        _run(handler, lambda source: source.get_component_status("Prow"))


def test_connection_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(StatusSourceError, match="failed"):
        _run(handler, lambda source: source.get_component_status("Prow"))


def test_check_health() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200 if request.url.path == "/health" else 404)

    assert _run(handler, lambda source: source.check_health()) is True
    assert _run(lambda request: httpx.Response(503), lambda source: source.check_health()) is False


def test_from_config_reads_source_section() -> None:
    source = HttpStatusSource.from_config(
        {
            "status_source": {"base_url": "https://dashboard.example/", "headers": {"X-Team": "tp"}},
            "aggregation": {"lookup_timeout_s": 3.0},
        }
    )

    assert source.base_url == "https://dashboard.example"


def test_supplied_client_is_not_closed() -> None:
    async def _scenario() -> bool:
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        async with HttpStatusSource("http://dashboard.test", client=client):
            pass
        closed = client.is_closed
        await client.aclose()
        return closed

    assert asyncio.run(_scenario()) is False


def test_fractional_outage_times_survive_an_aggregation_pass() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "status": "Down",
                "active_outages": [
                    {"id": 7, "severity": "Down", "start_time": "2024-05-01T10:00:00.12345Z"}
                ],
            },
        )

    async def _scenario():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with HttpStatusSource("http://dashboard.test", client=client) as source:
            engine = AggregationEngine(StatusResolver(source, timeout_s=1.0))
            snapshot = await engine.aggregate(
                [Component(name="Prow", sub_components=(SubComponent(name="Tide"),))]
            )
        await client.aclose()
        return snapshot

    snapshot = asyncio.run(_scenario())

    tide = snapshot.get("Prow").get("Tide")
    assert tide.status is Status.DOWN
    assert tide.fallback is False
    assert [outage.id for outage in tide.outages] == [7]
    assert snapshot.fallback_count == 0
