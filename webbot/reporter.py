"""Timestamped error log shared by all pipeline stages."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

LOGGER = logging.getLogger(__name__)


def _format_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    now = now or datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_error_line(
    context: str,
    error: Union[BaseException, str],
    now: Optional[datetime] = None,
) -> str:
    """Format ``[<timestamp>] <context>: <message>``."""
    message = str(error) or error.__class__.__name__
    return f"[{_format_timestamp(now)}] {context}: {message}"


class ErrorReporter:
    """Append failures to a log file and echo them to the operator.

    ``report`` never raises. If the log file cannot be written, the failure
    is only logged, not reported again.
    """

    def __init__(self, log_path: Optional[Union[str, Path]] = None):
        self.log_path = Path(log_path) if log_path else None

    def report(self, context: str, error: Union[BaseException, str]) -> str:
        line = format_error_line(context, error)

        if self.log_path is not None:
            try:
                with open(self.log_path, "a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
            except OSError as exc:
                LOGGER.error("Error writing to error log file: %s", exc)

        LOGGER.error("%s", line)
        return line
