"""Diagnostics routines for the core subsystem."""

from __future__ import annotations

import logging

from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe() -> DiagnosticResult:
    """Report how the aggregator logger is wired."""

    name = "logging"
    from core import logging as core_logging

    logger = core_logging.logger
    if logger is None or not logger.handlers:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details="Aggregator logger has no handlers",
        )

    console = "rich console" if core_logging.RichHandler is not None else "plain stream"
    level = logging.getLevelName(logger.level)
    if core_logging._file_log_path is not None:
        details = f"{console} at {level}, file {core_logging._file_log_path}"
    else:
        details = f"{console} at {level}"
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=details,
    )
