"""Single-lookup status resolution with a local fallback boundary."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from core.errors import ConfigError
from core.logging import logger as LOGGER
from core.models import Outage, Snapshot, Status, StatusReport
from services.status_source import StatusSource


@dataclass(frozen=True)
class FallbackPolicy:
    """Statuses substituted when a lookup fails.

    ``reuse_previous`` prefers the status from the previous snapshot, when one
    exists for the entity, over the fixed defaults.
    """

    component_status: Status = Status.UNKNOWN
    sub_component_status: Status = Status.UNKNOWN
    reuse_previous: bool = False

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "FallbackPolicy":
        aggregation_cfg = config.get("aggregation") or {}
        try:
            component_status = Status.parse(
                aggregation_cfg.get("default_component_status", Status.UNKNOWN.value)
            )
            sub_component_status = Status.parse(
                aggregation_cfg.get("default_sub_component_status", Status.UNKNOWN.value)
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid fallback status: {exc}") from exc
        return cls(
            component_status=component_status,
            sub_component_status=sub_component_status,
            reuse_previous=bool(aggregation_cfg.get("reuse_previous_status", False)),
        )

    def for_component(self, component_name: str, previous: Snapshot | None) -> Status:
        if self.reuse_previous and previous is not None:
            entry = previous.get(component_name)
            if entry is not None:
                return entry.status
        return self.component_status

    def for_sub_component(
        self,
        component_name: str,
        sub_component_name: str,
        previous: Snapshot | None,
    ) -> Status:
        if self.reuse_previous and previous is not None:
            entry = previous.get(component_name)
            sub_entry = entry.get(sub_component_name) if entry is not None else None
            if sub_entry is not None:
                return sub_entry.status
        return self.sub_component_status


@dataclass(frozen=True)
class ResolvedStatus:
    """Outcome of one resolver call."""

    status: Status
    outages: tuple[Outage, ...] = ()
    fallback: bool = False


class StatusResolver:
    """Wrap each status source call with a timeout and fallback substitution."""

    def __init__(
        self,
        source: StatusSource,
        *,
        fallback: FallbackPolicy | None = None,
        timeout_s: float = 5.0,
    ) -> None:
        if timeout_s <= 0:
            raise ConfigError("Lookup timeout must be positive")
        self._source = source
        self._fallback = fallback or FallbackPolicy()
        self._timeout_s = float(timeout_s)

    @property
    def fallback(self) -> FallbackPolicy:
        return self._fallback

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    async def resolve_component(
        self,
        component_name: str,
        previous: Snapshot | None = None,
    ) -> ResolvedStatus:
        result = await self._call(
            lambda: self._source.get_component_status(component_name),
            target=component_name,
        )
        if result is None:
            return ResolvedStatus(
                status=self._fallback.for_component(component_name, previous),
                fallback=True,
            )
        return result

    async def resolve_sub_component(
        self,
        component_name: str,
        sub_component_name: str,
        previous: Snapshot | None = None,
    ) -> ResolvedStatus:
        result = await self._call(
            lambda: self._source.get_sub_component_status(component_name, sub_component_name),
            target=f"{component_name}/{sub_component_name}",
        )
        if result is None:
            return ResolvedStatus(
                status=self._fallback.for_sub_component(
                    component_name, sub_component_name, previous
                ),
                fallback=True,
            )
        return result

    async def _call(
        self,
        lookup: Callable[[], Awaitable[StatusReport]],
        *,
        target: str,
    ) -> ResolvedStatus | None:
        """Await one lookup; return None when it failed for any reason."""

        try:
            report = await asyncio.wait_for(lookup(), timeout=self._timeout_s)
        except asyncio.TimeoutError:
            LOGGER.warning("[Resolver] Lookup for %s timed out after %.2fs", target, self._timeout_s)
            return None
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - one lookup must not fail the pass
            LOGGER.warning("[Resolver] Lookup for %s failed: %s", target, exc)
            return None

        if not isinstance(report, StatusReport) or not isinstance(report.status, Status):
            LOGGER.warning("[Resolver] Lookup for %s returned malformed result: %r", target, report)
            return None
        return ResolvedStatus(status=report.status, outages=report.outages)
