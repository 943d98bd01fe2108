"""Models for the component catalog, outages and aggregated status snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import re
import time
from typing import Any, Iterable, Iterator, Mapping

from core.errors import CatalogError

_FRACTION_RE = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


class Status(str, Enum):
    """Reported health of a component or sub-component."""

    HEALTHY = "Healthy"
    DEGRADED = "Degraded"
    DOWN = "Down"
    SUSPECTED = "Suspected"
    PARTIAL = "Partial"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: object) -> "Status":
        """Return the status matching an exact wire value.

        Raises:
            ValueError: If the value is not a known status.
        """

        if isinstance(value, Status):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise ValueError(f"Unknown status value: {value!r}") from exc


@dataclass(frozen=True)
class Owner:
    """Ownership entry for a component."""

    rover_group: str | None = None
    service_account: str | None = None


@dataclass(frozen=True)
class SubComponent:
    """Leaf monitored unit owned by a component."""

    name: str
    description: str = ""
    managed: bool = False
    requires_confirmation: bool = False


@dataclass(frozen=True)
class Component:
    """Top-level monitored unit with an ordered set of sub-components."""

    name: str
    description: str = ""
    sub_components: tuple[SubComponent, ...] = ()
    ship_team: str = ""
    slack_channel: str = ""
    owners: tuple[Owner, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "sub_components", tuple(self.sub_components))
        object.__setattr__(self, "owners", tuple(self.owners))

    def get_sub_component(self, name: str) -> SubComponent | None:
        """Return the sub-component with an exactly matching name."""

        for sub_component in self.sub_components:
            if sub_component.name == name:
                return sub_component
        return None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Component":
        """Build a component from a catalog file entry."""

        if not isinstance(raw, Mapping):
            raise CatalogError(f"Component entry must be a mapping, got {type(raw).__name__}")
        sub_components = []
        for item in raw.get("sub_components") or []:
            if not isinstance(item, Mapping):
                raise CatalogError(
                    f"Sub-component entry of {raw.get('name')!r} must be a mapping"
                )
            sub_components.append(
                SubComponent(
                    name=str(item.get("name") or ""),
                    description=str(item.get("description") or ""),
                    managed=bool(item.get("managed", False)),
                    requires_confirmation=bool(item.get("requires_confirmation", False)),
                )
            )
        owners = [
            Owner(
                rover_group=item.get("rover_group"),
                service_account=item.get("service_account"),
            )
            for item in raw.get("owners") or []
            if isinstance(item, Mapping)
        ]
        return cls(
            name=str(raw.get("name") or ""),
            description=str(raw.get("description") or ""),
            sub_components=tuple(sub_components),
            ship_team=str(raw.get("ship_team") or ""),
            slack_channel=str(raw.get("slack_channel") or ""),
            owners=tuple(owners),
        )


@dataclass(frozen=True)
class Catalog:
    """Ordered, immutable set of components read for one aggregation pass."""

    components: tuple[Component, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "components", tuple(self.components))
        self._validate()

    @classmethod
    def from_components(cls, components: Iterable[Component]) -> "Catalog":
        return cls(tuple(components))

    def __iter__(self) -> Iterator[Component]:
        return iter(self.components)

    def __len__(self) -> int:
        return len(self.components)

    @property
    def sub_component_count(self) -> int:
        return sum(len(component.sub_components) for component in self.components)

    def get(self, name: str) -> Component | None:
        for component in self.components:
            if component.name == name:
                return component
        return None

    def _validate(self) -> None:
        seen: set[str] = set()
        for component in self.components:
            if not isinstance(component, Component):
                raise CatalogError(f"Catalog entries must be components, got {component!r}")
            if not component.name:
                raise CatalogError("Component name must not be empty")
            if component.name in seen:
                raise CatalogError(f"Duplicate component name: {component.name}")
            seen.add(component.name)

            sub_names: set[str] = set()
            for sub_component in component.sub_components:
                if not sub_component.name:
                    raise CatalogError(
                        f"Sub-component name must not be empty (component {component.name})"
                    )
                if sub_component.name in sub_names:
                    raise CatalogError(
                        f"Duplicate sub-component {sub_component.name} in {component.name}"
                    )
                sub_names.add(sub_component.name)


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp, including Go's NullTime encoding."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, Mapping):
        if not value.get("Valid", False):
            return None
        value = value.get("Time")
    if not isinstance(value, str):
        raise ValueError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # RFC3339Nano trims trailing zeros; fromisoformat wants exactly 6 digits.
    text = _FRACTION_RE.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1)
    return datetime.fromisoformat(text)


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class Outage:
    """Outage record reported for a sub-component."""

    id: int | str
    severity: str
    start_time: datetime
    end_time: datetime | None = None
    description: str | None = None
    discovered_by: str | None = None
    triage_notes: str | None = None
    auto_resolve: bool = True
    component_name: str | None = None
    created_by: str | None = None
    resolved_by: str | None = None
    confirmed_by: str | None = None
    confirmed_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Outage":
        """Parse an outage from the dashboard API payload.

        Raises:
            ValueError: If required fields are missing or malformed.
        """

        if not isinstance(payload, Mapping):
            raise ValueError(f"Outage payload must be an object, got {type(payload).__name__}")
        outage_id = payload.get("id", payload.get("ID"))
        if outage_id is None:
            raise ValueError("Outage payload is missing 'id'")
        severity = payload.get("severity")
        if not severity:
            raise ValueError(f"Outage {outage_id} is missing 'severity'")
        start_time = _parse_timestamp(payload.get("start_time"))
        if start_time is None:
            raise ValueError(f"Outage {outage_id} is missing 'start_time'")

        discovered_by = payload.get("discovered_by", payload.get("discovered_from"))
        return cls(
            id=outage_id,
            severity=str(severity),
            start_time=start_time,
            end_time=_parse_timestamp(payload.get("end_time")),
            description=_optional_str(payload.get("description")),
            discovered_by=_optional_str(discovered_by),
            triage_notes=_optional_str(payload.get("triage_notes")),
            auto_resolve=bool(payload.get("auto_resolve", True)),
            component_name=_optional_str(payload.get("component_name")),
            created_by=_optional_str(payload.get("created_by")),
            resolved_by=_optional_str(payload.get("resolved_by")),
            confirmed_by=_optional_str(payload.get("confirmed_by")),
            confirmed_at=_parse_timestamp(payload.get("confirmed_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "component_name": self.component_name,
            "severity": self.severity,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "description": self.description,
            "discovered_by": self.discovered_by,
            "created_by": self.created_by,
            "resolved_by": self.resolved_by,
            "confirmed_by": self.confirmed_by,
            "confirmed_at": self.confirmed_at.isoformat() if self.confirmed_at else None,
            "triage_notes": self.triage_notes,
            "auto_resolve": self.auto_resolve,
        }


@dataclass(frozen=True)
class StatusReport:
    """Status and open outages returned by a single lookup."""

    status: Status
    outages: tuple[Outage, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "outages", tuple(self.outages))

    @classmethod
    def from_payload(cls, payload: Any) -> "StatusReport":
        """Parse a ``{"status": ..., "active_outages": [...]}`` payload."""

        if not isinstance(payload, Mapping):
            raise ValueError(f"Status payload must be an object, got {type(payload).__name__}")
        status = Status.parse(payload.get("status"))
        raw_outages = payload.get("active_outages") or []
        if not isinstance(raw_outages, list):
            raise ValueError("'active_outages' must be a list")
        return cls(status=status, outages=tuple(Outage.from_payload(item) for item in raw_outages))


@dataclass(frozen=True)
class SubComponentSnapshot:
    """Aggregated status of one sub-component."""

    sub_component: SubComponent
    status: Status
    outages: tuple[Outage, ...] = ()
    fallback: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "outages", tuple(self.outages))

    @property
    def name(self) -> str:
        return self.sub_component.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.sub_component.name,
            "description": self.sub_component.description,
            "managed": self.sub_component.managed,
            "requires_confirmation": self.sub_component.requires_confirmation,
            "status": self.status.value,
            "fallback": self.fallback,
            "active_outages": [outage.to_dict() for outage in self.outages],
        }


@dataclass(frozen=True)
class ComponentSnapshot:
    """Aggregated status of a component and its sub-components."""

    component: Component
    status: Status
    sub_components: tuple[SubComponentSnapshot, ...] = ()
    fallback: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "sub_components", tuple(self.sub_components))
        expected = [sub.name for sub in self.component.sub_components]
        actual = [entry.sub_component.name for entry in self.sub_components]
        if expected != actual:
            raise ValueError(
                f"Snapshot entries for {self.component.name} do not match catalog: "
                f"expected {expected}, got {actual}"
            )

    @property
    def name(self) -> str:
        return self.component.name

    def get(self, sub_component_name: str) -> SubComponentSnapshot | None:
        for entry in self.sub_components:
            if entry.sub_component.name == sub_component_name:
                return entry
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.component.name,
            "description": self.component.description,
            "ship_team": self.component.ship_team,
            "slack_channel": self.component.slack_channel,
            "status": self.status.value,
            "fallback": self.fallback,
            "sub_components": [entry.to_dict() for entry in self.sub_components],
        }


@dataclass(frozen=True)
class Snapshot:
    """Immutable aggregation result for an entire catalog."""

    components: tuple[ComponentSnapshot, ...] = ()
    generated_at: float = field(default_factory=time.time, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "components", tuple(self.components))

    def get(self, component_name: str) -> ComponentSnapshot | None:
        for entry in self.components:
            if entry.component.name == component_name:
                return entry
        return None

    @property
    def fallback_count(self) -> int:
        count = 0
        for entry in self.components:
            count += int(entry.fallback)
            count += sum(1 for sub in entry.sub_components if sub.fallback)
        return count

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "components": [entry.to_dict() for entry in self.components],
        }
