"""Exception types for the status aggregator."""


class StatusAggregatorError(Exception):
    """Base class for aggregator errors."""


class ConfigError(StatusAggregatorError):
    """Raised when configuration is invalid or missing."""


class CatalogError(StatusAggregatorError):
    """Raised when the component catalog cannot be loaded or is invalid."""


class StatusSourceError(StatusAggregatorError):
    """Raised when a single status lookup fails."""
