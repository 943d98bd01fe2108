"""Status lookup, resolution and aggregation services."""

from services.aggregator import AggregationEngine
from services.refresher import SnapshotRefresher
from services.resolver import FallbackPolicy, ResolvedStatus, StatusResolver
from services.status_source import HttpStatusSource, StatusSource

__all__ = [
    "AggregationEngine",
    "FallbackPolicy",
    "HttpStatusSource",
    "ResolvedStatus",
    "SnapshotRefresher",
    "StatusResolver",
    "StatusSource",
]
