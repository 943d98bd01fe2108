"""Command-line entry point for running diagnostics."""

from __future__ import annotations

import argparse
from collections.abc import Callable
import json
from pathlib import Path
import tempfile
from typing import Any

from catalog.diagnostics import probe as catalog_probe
from catalog.provider import CatalogProvider, build_catalog_provider
from config.controller import ConfigController
from config.diagnostics import probe as config_probe
from core.diagnostics import probe as core_probe
from core.errors import ConfigError
from core.logging import log_error
from diagnostics.models import DiagnosticResult
from diagnostics.runner import format_results, has_failures, run_diagnostics
from services.diagnostics import probe as services_probe
from services.status_source import HttpStatusSource

OFFLINE_CATALOG = """components:
  - name: Offline
    sub_components:
      - name: Probe
"""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""

    parser = argparse.ArgumentParser(description="Run diagnostics probes.")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Directory holding default.yaml and override.yaml.",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Run probes against a temporary offline directory without network checks.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON.",
    )
    return parser.parse_args(argv)


def build_probes(
    config: dict[str, Any],
    config_dir: Path,
    *,
    offline: bool = False,
    source_factory: Callable[[dict[str, Any]], HttpStatusSource] | None = None,
    catalog_factory: Callable[[dict[str, Any]], CatalogProvider] | None = None,
) -> list[Callable[[], DiagnosticResult]]:
    """Return the probes for a loaded configuration.

    Offline runs skip the status source probe since it needs the network.
    """

    source_factory = source_factory or HttpStatusSource.from_config
    catalog_factory = catalog_factory or build_catalog_provider

    def config_files():
        return config_probe(config_dir=config_dir)

    def logging_setup():
        return core_probe()

    def catalog():
        return catalog_probe(catalog_factory(config))

    def status_source():
        return services_probe(source_factory(config))

    probes = [config_files, logging_setup, catalog]
    if not offline:
        probes.append(status_source)
    return probes


def report(results: list[DiagnosticResult], *, as_json: bool = False) -> int:
    """Print results and return an exit code."""

    if as_json:
        print(json.dumps([result.to_dict() for result in results], indent=2))
    else:
        print(format_results(results))
    return 1 if has_failures(results) else 0


def _load_config(config_dir: Path) -> dict[str, Any]:
    ConfigController.reset_instance()
    try:
        return ConfigController(config_dir=config_dir).get_config()
    finally:
        ConfigController.reset_instance()


def main(argv: list[str] | None = None) -> int:
    """Run diagnostics and return an exit code."""

    args = parse_args(argv)

    if args.offline:
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_dir = Path(tmp_dir)
            catalog_path = config_dir / "components.yaml"
            catalog_path.write_text(OFFLINE_CATALOG, encoding="utf-8")
            (config_dir / "default.yaml").write_text(
                f"catalog:\n  path: {catalog_path.as_posix()}\n",
                encoding="utf-8",
            )
            config = _load_config(config_dir)
            results = run_diagnostics(build_probes(config, config_dir, offline=True))
        return report(results, as_json=args.json)

    try:
        config = _load_config(args.config_dir)
    except ConfigError as exc:
        log_error(f"Configuration error: {exc}")
        return 1
    results = run_diagnostics(build_probes(config, args.config_dir))
    return report(results, as_json=args.json)


if __name__ == "__main__":
    raise SystemExit(main())
