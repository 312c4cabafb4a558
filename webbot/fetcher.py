"""HTTP GET with the run's header profile and success-status policy."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional

import httpx

from .errors import FetchError
from .profile import RequestProfile
from .urls import is_valid_web_uri

LOGGER = logging.getLogger(__name__)

# Statuses worth another attempt when retries are enabled
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass(slots=True)
class FetchResponse:
    """Body and status of a successful fetch."""

    url: str
    final_url: str
    status_code: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)


def build_client(
    profile: RequestProfile,
    *,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the async client used for every request of a run."""
    return httpx.AsyncClient(
        headers=dict(profile.headers),
        follow_redirects=True,
        max_redirects=profile.max_redirects,
        timeout=timeout,
        transport=transport,
    )


async def _get_once(
    client: httpx.AsyncClient, url: str, profile: RequestProfile
) -> FetchResponse:
    try:
        response = await client.get(url, headers=dict(profile.headers))
    except httpx.TooManyRedirects as exc:
        raise FetchError(
            f"Exceeded {profile.max_redirects} redirects: {exc}", url=url
        ) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        message = str(exc) or exc.__class__.__name__
        raise FetchError(f"Request failed: {message}", url=url) from exc

    if not profile.accepts(response.status_code):
        raise FetchError(
            f"Request failed with status code {response.status_code}",
            url=url,
            status_code=response.status_code,
        )

    return FetchResponse(
        url=url,
        final_url=str(response.url),
        status_code=response.status_code,
        text=response.text,
        headers=dict(response.headers),
    )


async def fetch_async(
    client: httpx.AsyncClient,
    url: str,
    profile: RequestProfile,
    *,
    max_retries: int = 0,
    retry_backoff: float = 0.5,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> FetchResponse:
    """GET *url* and return the response if its status is accepted.

    Args:
        client: Client created by :func:`build_client`.
        url: Absolute http(s) URL.
        profile: Header profile and status policy of the run.
        max_retries: Extra attempts after a transport error or a
            retryable status (0 disables retrying).
        retry_backoff: Base delay in seconds, doubled per attempt.
        sleep: Awaitable used for backoff delays.

    Raises:
        FetchError: On transport failure, too many redirects, or a status
            outside the accepted range.
    """
    if not is_valid_web_uri(url):
        raise FetchError(f"Not an absolute http(s) URL: {url!r}", url=url)

    attempt = 0
    while True:
        try:
            return await _get_once(client, url, profile)
        except FetchError as exc:
            if exc.status_code is None:
                retryable = not isinstance(exc.__cause__, httpx.TooManyRedirects)
            else:
                retryable = exc.status_code in RETRYABLE_STATUSES
            if attempt >= max_retries or not retryable:
                raise
            delay = retry_backoff * (2**attempt)
            attempt += 1
            LOGGER.debug(
                "Retrying %s in %.2fs (attempt %d/%d): %s",
                url,
                delay,
                attempt,
                max_retries,
                exc,
            )
            await sleep(delay)
