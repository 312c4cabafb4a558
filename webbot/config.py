"""Crawl settings and their environment-variable overrides."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, Optional

from .errors import InputError
from .heuristics import DEFAULT_ENDPOINT_PATTERN

LOGGER = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = "web_bot_output.json"
DEFAULT_ERROR_LOG_PATH = "web_bot_error_log.txt"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


@dataclass
class CrawlSettings:
    """Tunable policy of a crawl run.

    Attributes:
        delay: Seconds to wait after every link or endpoint request.
        concurrency: Maximum requests in flight during the link and
            endpoint phases (1 = strictly sequential).
        timeout: Per-request timeout in seconds.
        max_redirects: Redirects followed per request.
        output_path: JSON file receiving the seed page's element records.
        error_log_path: Append-only error log.
        endpoint_pattern: Case-insensitive regex for endpoint candidates.
        dedupe_endpoints: Probe each endpoint value once instead of once
            per discovery.
        resolve_relative: Resolve relative hrefs and endpoint candidates
            against the page they were found on instead of dropping them.
        max_retries: Extra attempts per request on transport errors and
            retryable statuses.
        retry_backoff: Base backoff in seconds, doubled per retry.
        run_timeout: Cancel the whole run after this many seconds.
        user_agent: Fixed User-Agent; random from the pool when unset.
    """

    delay: float = 1.0
    concurrency: int = 1
    timeout: float = 30.0
    max_redirects: int = 5
    output_path: str = DEFAULT_OUTPUT_PATH
    error_log_path: str = DEFAULT_ERROR_LOG_PATH
    endpoint_pattern: str = DEFAULT_ENDPOINT_PATTERN
    dedupe_endpoints: bool = False
    resolve_relative: bool = False
    max_retries: int = 0
    retry_backoff: float = 0.5
    run_timeout: Optional[float] = None
    user_agent: Optional[str] = None

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise InputError("delay must be >= 0", value=str(self.delay))
        if self.concurrency < 1:
            raise InputError("concurrency must be >= 1", value=str(self.concurrency))
        if self.timeout <= 0:
            raise InputError("timeout must be > 0", value=str(self.timeout))
        if self.max_redirects < 0:
            raise InputError(
                "max_redirects must be >= 0", value=str(self.max_redirects)
            )
        if self.max_retries < 0:
            raise InputError("max_retries must be >= 0", value=str(self.max_retries))
        if self.run_timeout is not None and self.run_timeout <= 0:
            raise InputError("run_timeout must be > 0", value=str(self.run_timeout))
        try:
            re.compile(self.endpoint_pattern, re.IGNORECASE)
        except re.error as exc:
            raise InputError(
                f"endpoint_pattern is not a valid regex: {exc}",
                value=self.endpoint_pattern,
            ) from exc

    def with_overrides(self, **overrides: Any) -> "CrawlSettings":
        """Return a copy with the non-None *overrides* applied."""
        known = {f.name for f in fields(self)}
        changes = {k: v for k, v in overrides.items() if k in known and v is not None}
        return replace(self, **changes)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise InputError(f"{name} must be a boolean, got {raw!r}", value=raw)


def _number(cast: Callable[[str], Any]) -> Callable[[str, str], Any]:
    def parse(name: str, raw: str) -> Any:
        try:
            return cast(raw.strip())
        except ValueError as exc:
            raise InputError(f"{name} must be a number, got {raw!r}", value=raw) from exc

    return parse


def _text(name: str, raw: str) -> str:
    return raw


_ENV_FIELDS: Dict[str, tuple] = {
    "WEBBOT_DELAY": ("delay", _number(float)),
    "WEBBOT_CONCURRENCY": ("concurrency", _number(int)),
    "WEBBOT_TIMEOUT": ("timeout", _number(float)),
    "WEBBOT_MAX_REDIRECTS": ("max_redirects", _number(int)),
    "WEBBOT_OUTPUT": ("output_path", _text),
    "WEBBOT_ERROR_LOG": ("error_log_path", _text),
    "WEBBOT_ENDPOINT_PATTERN": ("endpoint_pattern", _text),
    "WEBBOT_DEDUPE_ENDPOINTS": ("dedupe_endpoints", _parse_bool),
    "WEBBOT_RESOLVE_RELATIVE": ("resolve_relative", _parse_bool),
    "WEBBOT_MAX_RETRIES": ("max_retries", _number(int)),
    "WEBBOT_RETRY_BACKOFF": ("retry_backoff", _number(float)),
    "WEBBOT_RUN_TIMEOUT": ("run_timeout", _number(float)),
    "WEBBOT_USER_AGENT": ("user_agent", _text),
}


def load_settings_from_env(base: Optional[CrawlSettings] = None) -> CrawlSettings:
    """Build settings from ``WEBBOT_*`` environment variables.

    Variables are read at call time so ``.env`` files loaded late and
    monkeypatched environments are honoured.

    Raises:
        InputError: If a variable holds an invalid value.
    """
    overrides: Dict[str, Any] = {}
    for env_name, (field_name, parse) in _ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        overrides[field_name] = parse(env_name, raw)
        LOGGER.debug("Setting %s from %s", field_name, env_name)

    return (base or CrawlSettings()).with_overrides(**overrides)
