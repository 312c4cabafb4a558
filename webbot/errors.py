"""Exception types raised across the crawl pipeline."""

from __future__ import annotations

from typing import Optional


class WebBotError(Exception):
    """Base class for all crawler errors."""


class InputError(WebBotError):
    """Raised when the seed URL or a setting is missing or invalid."""

    def __init__(self, message: str, value: str = ""):
        self.value = value
        super().__init__(message)


class DnsError(WebBotError):
    """Raised when forward resolution of a hostname fails."""

    def __init__(self, message: str, hostname: str = ""):
        self.hostname = hostname
        super().__init__(message)


class FetchError(WebBotError):
    """Raised when a single HTTP request fails (transport or status)."""

    def __init__(
        self,
        message: str,
        url: str = "",
        status_code: Optional[int] = None,
    ):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class LogWriteError(WebBotError):
    """Raised when the output artifact or error log cannot be written."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(message)


class CrawlCancelled(WebBotError):
    """Raised at a suspension point after the run was cancelled."""

    def __init__(self, reason: str = "cancelled"):
        self.reason = reason
        super().__init__(reason)
