"""Plain-text rendering of aggregated snapshots."""

from __future__ import annotations

from datetime import datetime, timezone

from core.models import Snapshot

FALLBACK_MARK = "*"


def format_snapshot(snapshot: Snapshot) -> str:
    """Return a human-friendly status report.

    Fallback entries are marked with ``*`` so they read differently from
    confirmed statuses.
    """

    generated = datetime.fromtimestamp(snapshot.generated_at, tz=timezone.utc)
    lines = [f"Component status ({generated.isoformat(timespec='seconds')})", "-" * 60]
    for entry in snapshot.components:
        mark = FALLBACK_MARK if entry.fallback else ""
        lines.append(f"[{entry.status.value}{mark}] {entry.component.name}")
        for sub in entry.sub_components:
            sub_mark = FALLBACK_MARK if sub.fallback else ""
            active = sum(1 for outage in sub.outages if outage.is_active)
            suffix = f" ({active} active outage{'s' if active != 1 else ''})" if active else ""
            lines.append(f"    [{sub.status.value}{sub_mark}] {sub.sub_component.name}{suffix}")
    lines.append("-" * 60)
    if snapshot.fallback_count:
        lines.append(f"{FALLBACK_MARK} status unavailable, fallback shown ({snapshot.fallback_count})")
    return "\n".join(lines)
