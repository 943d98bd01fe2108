"""Diagnostics routines for the status source."""

from __future__ import annotations

import asyncio

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from services.status_source import HttpStatusSource


async def _check(source: HttpStatusSource) -> bool:
    async with source:
        return await source.check_health()


def probe(source: HttpStatusSource) -> DiagnosticResult:
    """Check that the dashboard API answers its health endpoint.

    Args:
        source: Status source to probe; it is closed afterwards.

    Returns:
        Diagnostic result indicating status source reachability.
    """

    name = "status_source"
    reachable = asyncio.run(_check(source))
    if not reachable:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details=f"Status API unreachable at {source.base_url}; lookups will fall back",
        )
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"Status API reachable at {source.base_url}",
    )
