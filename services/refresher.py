"""Caller-side refresh loop that publishes completed snapshots."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable

from catalog.provider import CatalogProvider
from core.errors import CatalogError
from core.logging import logger as LOGGER
from core.models import Snapshot
from services.aggregator import AggregationEngine

SnapshotCallback = Callable[[Snapshot, bool], "Awaitable[None] | None"]


class SnapshotRefresher:
    """Run aggregation passes and hand each completed snapshot to a callback.

    Starting a pass while another is in flight cancels the older one; a
    superseded or cancelled pass never publishes. The callback receives the
    snapshot and whether its content differs from the previous one; an
    exception raised by the callback is logged and counted, never propagated.
    """

    def __init__(
        self,
        engine: AggregationEngine,
        provider: CatalogProvider,
        *,
        on_snapshot: SnapshotCallback | None = None,
        interval_s: float = 30.0,
    ) -> None:
        self._engine = engine
        self._provider = provider
        self._on_snapshot = on_snapshot
        self._interval_s = max(0.0, float(interval_s))
        self._pending_task: asyncio.Task[Snapshot] | None = None
        self._latest: Snapshot | None = None
        self._published = 0
        self._superseded = 0
        self._failures = 0
        self._callback_errors = 0

    @property
    def latest(self) -> Snapshot | None:
        return self._latest

    def stats(self) -> dict[str, Any]:
        return {
            "published": self._published,
            "superseded": self._superseded,
            "failures": self._failures,
            "callback_errors": self._callback_errors,
            "in_flight": int(self._pending_task is not None and not self._pending_task.done()),
        }

    async def refresh(self) -> Snapshot | None:
        """Run one pass and publish it.

        Returns:
            The published snapshot, or None when a newer pass superseded this one.

        Raises:
            CatalogError: If the catalog could not be read.
        """

        previous_task = self._pending_task
        if previous_task is not None and not previous_task.done():
            LOGGER.info("[Refresher] Superseding in-flight aggregation pass")
            previous_task.cancel()
            self._superseded += 1

        task = asyncio.create_task(self._engine.aggregate_from(self._provider, previous=self._latest))
        self._pending_task = task
        try:
            snapshot = await task
        except asyncio.CancelledError:
            if self._pending_task is not task:
                return None
            raise
        except CatalogError:
            self._failures += 1
            raise
        finally:
            if self._pending_task is task:
                self._pending_task = None

        changed = snapshot != self._latest
        self._latest = snapshot
        self._published += 1
        if self._on_snapshot is not None:
            try:
                result = self._on_snapshot(snapshot, changed)
                if inspect.isawaitable(result):
                    await result
            except Exception:  # noqa: BLE001 - a consumer error must not stop refreshing
                self._callback_errors += 1
                LOGGER.exception("[Refresher] Snapshot callback failed")
        return snapshot

    async def run(self, stop_event: asyncio.Event) -> None:
        """Refresh every ``interval_s`` seconds until ``stop_event`` is set."""

        while not stop_event.is_set():
            try:
                await self.refresh()
            except CatalogError as exc:
                LOGGER.error("[Refresher] Aggregation pass failed (retrying): %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval_s)
            except asyncio.TimeoutError:
                continue
