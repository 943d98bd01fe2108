"""Configuration controller for YAML-based settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.errors import ConfigError
from core.models import Status


@dataclass(frozen=True)
class ConfigPaths:
    """Filesystem paths for configuration files."""

    config_dir: Path
    config_file: Path
    override_file: Path


class ConfigController:
    """Singleton controller for loading configuration."""

    _instance: "ConfigController | None" = None

    def __init__(self, config_file: str = "default.yaml", config_dir: Path | None = None) -> None:
        if ConfigController._instance is not None:
            raise RuntimeError("You cannot create another ConfigController class")

        config_dir = config_dir if config_dir is not None else Path("config")
        self.paths = ConfigPaths(
            config_dir=config_dir,
            config_file=config_dir / config_file,
            override_file=config_dir / "override.yaml",
        )
        self.config: dict[str, Any] = {}
        self.load_config()
        ConfigController._instance = self

    @classmethod
    def get_instance(cls) -> "ConfigController":
        """Return the singleton instance of the controller."""

        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    def load_config(self) -> None:
        """Load configuration from default and override YAML files."""

        if not self.paths.config_file.exists():
            raise ConfigError(f"Config file not found: {self.paths.config_file}")

        config = self._read_yaml(self.paths.config_file)
        if self.paths.override_file.exists():
            override_config = self._read_yaml(self.paths.override_file)
            if override_config:
                config = self._deep_merge(config, override_config)

        self.config = self._normalize_config(config)

    def get_config(self) -> dict[str, Any]:
        """Return the currently loaded configuration."""

        return dict(self.config)

    @staticmethod
    def _read_yaml(path: Path) -> dict[str, Any]:
        try:
            with path.open("r", encoding="utf-8") as file:
                loaded = yaml.safe_load(file) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return loaded

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge dictionaries, overriding base values with override values."""

        merged = dict(base)
        for key, value in override.items():
            if (
                key in merged
                and isinstance(merged[key], dict)
                and isinstance(value, dict)
            ):
                merged[key] = self._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _normalize_config(self, config: dict[str, Any]) -> dict[str, Any]:
        """Fill defaults and coerce types for every known section."""

        normalized = dict(config)
        normalized["logging_level"] = str(normalized.get("logging_level", "INFO")).upper()
        log_file = normalized.get("log_file")
        normalized["log_file"] = str(log_file) if log_file else None

        catalog_cfg = dict(normalized.get("catalog") or {})
        catalog_path = Path(str(catalog_cfg.get("path", "components.yaml"))).expanduser()
        if not catalog_path.is_absolute():
            catalog_path = self.paths.config_dir / catalog_path
        catalog_cfg["path"] = str(catalog_path)
        catalog_cfg["source"] = str(catalog_cfg.get("source", "file")).lower()
        if catalog_cfg["source"] not in ("file", "http"):
            raise ConfigError(f"Invalid catalog.source: {catalog_cfg['source']!r} (expected file or http)")
        normalized["catalog"] = catalog_cfg

        source_cfg = dict(normalized.get("status_source") or {})
        source_cfg["base_url"] = str(source_cfg.get("base_url", "http://localhost:8080")).rstrip("/")
        source_cfg["verify_ssl"] = bool(source_cfg.get("verify_ssl", True))
        source_cfg["headers"] = dict(source_cfg.get("headers") or {})
        normalized["status_source"] = source_cfg

        aggregation_cfg = dict(normalized.get("aggregation") or {})
        try:
            timeout_s = float(aggregation_cfg.get("lookup_timeout_s", 5.0))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid aggregation.lookup_timeout_s: {exc}") from exc
        if timeout_s <= 0:
            raise ConfigError("aggregation.lookup_timeout_s must be positive")
        aggregation_cfg["lookup_timeout_s"] = timeout_s
        for key in ("default_component_status", "default_sub_component_status"):
            aggregation_cfg[key] = self._status_value(aggregation_cfg.get(key, Status.UNKNOWN.value), key)
        aggregation_cfg["reuse_previous_status"] = bool(
            aggregation_cfg.get("reuse_previous_status", False)
        )
        normalized["aggregation"] = aggregation_cfg

        refresh_cfg = dict(normalized.get("refresh") or {})
        try:
            interval_s = float(refresh_cfg.get("interval_s", 30.0))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid refresh.interval_s: {exc}") from exc
        refresh_cfg["interval_s"] = max(1.0, interval_s)
        normalized["refresh"] = refresh_cfg
        return normalized

    @staticmethod
    def _status_value(value: Any, key: str) -> str:
        try:
            return Status.parse(value).value
        except ValueError as exc:
            raise ConfigError(f"Invalid aggregation.{key}: {value!r}") from exc
