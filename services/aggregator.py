"""Concurrent fan-out of status lookups into one snapshot."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Iterable, Mapping

from catalog.provider import CatalogProvider, load_catalog
from core.logging import logger as LOGGER
from core.models import (
    Catalog,
    Component,
    ComponentSnapshot,
    Snapshot,
    SubComponentSnapshot,
)
from services.resolver import FallbackPolicy, StatusResolver
from services.status_source import StatusSource


class AggregationEngine:
    """Build a snapshot from one status lookup per catalog entity.

    Every component-level and sub-component-level lookup of a pass is started
    as its own task. Each task writes only its own result; the pass joins on
    all of them and assembles entries in catalog order.
    """

    def __init__(self, resolver: StatusResolver) -> None:
        self._resolver = resolver

    @classmethod
    def from_config(cls, source: StatusSource, config: Mapping[str, Any]) -> "AggregationEngine":
        aggregation_cfg = config.get("aggregation") or {}
        resolver = StatusResolver(
            source,
            fallback=FallbackPolicy.from_config(config),
            timeout_s=float(aggregation_cfg.get("lookup_timeout_s", 5.0)),
        )
        return cls(resolver)

    @property
    def resolver(self) -> StatusResolver:
        return self._resolver

    async def aggregate_from(
        self,
        provider: CatalogProvider,
        previous: Snapshot | None = None,
    ) -> Snapshot:
        """Read the catalog once and aggregate it.

        Raises:
            CatalogError: If the provider fails; no snapshot is produced.
        """

        catalog = await asyncio.to_thread(load_catalog, provider)
        return await self.aggregate(catalog, previous=previous)

    async def aggregate(
        self,
        catalog: Catalog | Iterable[Component],
        previous: Snapshot | None = None,
    ) -> Snapshot:
        """Run one aggregation pass over ``catalog``.

        Cancelling the awaiting task cancels every outstanding lookup and
        yields no snapshot.
        """

        if not isinstance(catalog, Catalog):
            catalog = Catalog.from_components(catalog)

        started = time.monotonic()
        tasks = [
            asyncio.create_task(self._component_pass(component, previous))
            for component in catalog
        ]
        try:
            entries = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        snapshot = Snapshot(components=tuple(entries))

        LOGGER.info(
            "[Aggregator] Pass complete: %d components, %d sub-components, %d fallbacks in %.3fs",
            len(catalog),
            catalog.sub_component_count,
            snapshot.fallback_count,
            time.monotonic() - started,
        )
        return snapshot

    async def _component_pass(
        self,
        component: Component,
        previous: Snapshot | None,
    ) -> ComponentSnapshot:
        """Resolve a component and its sub-components as sibling lookups."""

        resolver = self._resolver
        resolved, *sub_results = await asyncio.gather(
            resolver.resolve_component(component.name, previous),
            *(
                resolver.resolve_sub_component(component.name, sub.name, previous)
                for sub in component.sub_components
            ),
        )

        sub_entries = []
        for sub_component, sub_resolved in zip(component.sub_components, sub_results):
            sub_entries.append(
                SubComponentSnapshot(
                    sub_component=sub_component,
                    status=sub_resolved.status,
                    outages=sub_resolved.outages,
                    fallback=sub_resolved.fallback,
                )
            )
        return ComponentSnapshot(
            component=component,
            status=resolved.status,
            sub_components=tuple(sub_entries),
            fallback=resolved.fallback,
        )
