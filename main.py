"""Command-line entry point for the component status aggregator."""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
import signal
import sys
from typing import Any

from catalog.provider import build_catalog_provider
from config import ConfigController
from core.errors import CatalogError, ConfigError
from core.logging import enable_file_logging, log_error, logger, set_level
from core.models import Snapshot
from core.report import format_snapshot
from services.aggregator import AggregationEngine
from services.refresher import SnapshotRefresher
from services.status_source import HttpStatusSource


def configure_logging(level_name: str, log_file: str | None = None) -> None:
    """Configure application logging."""

    set_level(level_name)
    if log_file:
        enable_file_logging(Path(log_file))
        logger.info("Writing logs to %s", log_file)


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Raw command-line arguments.

    Returns:
        Parsed arguments namespace.
    """

    parser = argparse.ArgumentParser(
        description="Aggregate component and sub-component status into one snapshot."
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Directory holding default.yaml and override.yaml.",
    )
    parser.add_argument(
        "--config-file",
        type=str,
        default="default.yaml",
        help="Base config file name inside the config directory.",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep refreshing on the configured interval instead of running once.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print snapshots as JSON.",
    )
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Run diagnostics probes and exit.",
    )
    return parser.parse_args(argv)


def render(snapshot: Snapshot, as_json: bool) -> str:
    if as_json:
        return json.dumps(snapshot.to_dict(), indent=2)
    return format_snapshot(snapshot)


async def run_once(config: dict[str, Any], *, as_json: bool = False) -> int:
    """Run a single aggregation pass and print it."""

    provider = build_catalog_provider(config)
    async with HttpStatusSource.from_config(config) as source:
        engine = AggregationEngine.from_config(source, config)
        try:
            snapshot = await engine.aggregate_from(provider)
        except CatalogError as exc:
            log_error(f"Aggregation failed: {exc}")
            return 1
    print(render(snapshot, as_json))
    return 0


async def run_watch(config: dict[str, Any], *, as_json: bool = False) -> int:
    """Refresh until interrupted, printing each snapshot that changed."""

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            pass

    def _publish(snapshot: Snapshot, changed: bool) -> None:
        if changed:
            print(render(snapshot, as_json), flush=True)
        else:
            logger.debug("Snapshot unchanged")

    provider = build_catalog_provider(config)
    async with HttpStatusSource.from_config(config) as source:
        engine = AggregationEngine.from_config(source, config)
        refresher = SnapshotRefresher(
            engine,
            provider,
            on_snapshot=_publish,
            interval_s=config["refresh"]["interval_s"],
        )
        logger.info("Refreshing every %.1fs (Ctrl+C to stop)", config["refresh"]["interval_s"])
        await refresher.run(stop_event)
    logger.info("Refresh loop stopped: %s", refresher.stats())
    return 0


def run_diagnostics_cli(config: dict[str, Any], config_dir: Path, *, as_json: bool = False) -> int:
    from diagnostics.run import build_probes, report
    from diagnostics.runner import run_diagnostics

    probes = build_probes(
        config,
        config_dir,
        source_factory=HttpStatusSource.from_config,
        catalog_factory=build_catalog_provider,
    )
    return report(run_diagnostics(probes), as_json=as_json)


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Process exit code.
    """

    if argv is None:
        argv = sys.argv[1:]

    args = parse_args(argv)
    ConfigController.reset_instance()
    try:
        config = ConfigController(args.config_file, config_dir=args.config_dir).get_config()
    except ConfigError as exc:
        log_error(f"Configuration error: {exc}")
        return 1
    configure_logging(config["logging_level"], config.get("log_file"))

    if args.diagnostics:
        return run_diagnostics_cli(config, args.config_dir, as_json=args.json)

    try:
        if args.watch:
            return asyncio.run(run_watch(config, as_json=args.json))
        return asyncio.run(run_once(config, as_json=args.json))
    except KeyboardInterrupt:
        logger.info("Program terminated by user")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
