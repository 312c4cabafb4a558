"""Single-seed web crawler with a database-endpoint heuristic.

Given a seed URL the crawler identifies the server behind it, fetches and
enumerates the seed page, follows every absolute link on it one at a time
with a fixed delay, collects response fragments that look like database
endpoints and finally probes those endpoints.

Example usage:

    from webbot import crawl_async, CrawlSettings

    state = await crawl_async("https://example.com", CrawlSettings(delay=0.5))
    print(state.phase, len(state.links), state.endpoints.values())

    # Synchronous
    from webbot import crawl
    state = crawl("https://example.com")
"""

from __future__ import annotations

import asyncio
from typing import Optional

from .cancel import CancellationToken
from .config import CrawlSettings, load_settings_from_env
from .dom import ElementRecord, enumerate_elements, extract_links
from .errors import (
    CrawlCancelled,
    DnsError,
    FetchError,
    InputError,
    LogWriteError,
    WebBotError,
)
from .fetcher import FetchResponse, build_client, fetch_async
from .heuristics import DEFAULT_ENDPOINT_PATTERN, find_candidates
from .orchestrator import CrawlOrchestrator
from .profile import RequestProfile, build_request_profile
from .reporter import ErrorReporter
from .resolver import ServerInfo, resolve_server_async
from .state import CrawlPhase, CrawlRunState, DatabaseEndpointSet
from .urls import is_valid_web_uri

__version__ = "1.0.0"

__all__ = [
    # Crawl
    "crawl",
    "crawl_async",
    "CrawlOrchestrator",
    "CrawlSettings",
    "load_settings_from_env",
    "CancellationToken",
    # State
    "CrawlPhase",
    "CrawlRunState",
    "DatabaseEndpointSet",
    "ElementRecord",
    "ServerInfo",
    "RequestProfile",
    "FetchResponse",
    # Components
    "is_valid_web_uri",
    "resolve_server_async",
    "build_request_profile",
    "build_client",
    "fetch_async",
    "enumerate_elements",
    "extract_links",
    "find_candidates",
    "DEFAULT_ENDPOINT_PATTERN",
    "ErrorReporter",
    # Errors
    "WebBotError",
    "InputError",
    "DnsError",
    "FetchError",
    "LogWriteError",
    "CrawlCancelled",
]


async def crawl_async(
    seed: str,
    settings: Optional[CrawlSettings] = None,
    *,
    token: Optional[CancellationToken] = None,
    reporter: Optional[ErrorReporter] = None,
) -> CrawlRunState:
    """
    Crawl *seed* and return the final run state.

    Args:
        seed: Absolute http(s) URL to start from.
        settings: Optional crawl settings (defaults apply otherwise).
        token: Optional cancellation token to stop the run early.
        reporter: Optional error reporter.

    Returns:
        CrawlRunState whose ``phase`` is ``done`` or ``aborted``.

    Raises:
        InputError: If *seed* is not a valid web URI.
    """
    orchestrator = CrawlOrchestrator(settings, token=token, reporter=reporter)
    return await orchestrator.run(seed)


def crawl(
    seed: str,
    settings: Optional[CrawlSettings] = None,
    *,
    reporter: Optional[ErrorReporter] = None,
) -> CrawlRunState:
    """Synchronous wrapper for crawl_async."""
    return asyncio.run(crawl_async(seed, settings, reporter=reporter))
