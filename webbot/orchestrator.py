"""Crawl orchestration: seed resolution, enumeration, link and endpoint phases.

A run moves through the phases of :class:`~webbot.state.CrawlPhase`::

    init -> resolving_server -> fetching_seed -> enumerating_and_extracting
         -> fetching_links -> probing_endpoints -> done

Failures while resolving or fetching the seed are fatal and end the run in
``aborted``. Failures of a single link or endpoint are reported and the
loop moves on. Cancellation from any suspension point also ends in
``aborted``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar
from urllib.parse import urlparse

import httpx

from .cancel import CancellationToken
from .config import CrawlSettings
from .dom import enumerate_elements, extract_links
from .errors import CrawlCancelled, DnsError, FetchError, InputError, LogWriteError
from .fetcher import FetchResponse, build_client, fetch_async
from .heuristics import find_candidates
from .output import write_elements
from .profile import build_request_profile
from .reporter import ErrorReporter
from .resolver import ServerInfo, resolve_server_async
from .state import CrawlPhase, CrawlRunState, DatabaseEndpointSet, DiscoveredEndpoint
from .urls import default_port, is_valid_web_uri

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Resolver = Callable[[str], Awaitable[ServerInfo]]

# Endpoint payloads are logged in full at DEBUG only
PAYLOAD_PREVIEW_CHARS = 500


class CrawlOrchestrator:
    """Drive one crawl run for a seed URL.

    Args:
        settings: Crawl policy (delay, concurrency, paths, ...).
        reporter: Error reporter; defaults to one writing
            ``settings.error_log_path``.
        token: Cancellation token; a fresh one is created when omitted.
        resolver: Coroutine function resolving the seed hostname.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        settings: Optional[CrawlSettings] = None,
        *,
        reporter: Optional[ErrorReporter] = None,
        token: Optional[CancellationToken] = None,
        resolver: Resolver = resolve_server_async,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or CrawlSettings()
        self.reporter = reporter or ErrorReporter(self.settings.error_log_path)
        self.token = token or CancellationToken()
        self._resolver = resolver
        self._transport = transport

    async def run(self, seed: str) -> CrawlRunState:
        """Run the full pipeline for *seed* and return the final state.

        Raises:
            InputError: If *seed* is not an absolute http(s) URL. No network
                activity happens in that case.
        """
        if not is_valid_web_uri(seed):
            raise InputError(
                "Invalid URL. Please provide a valid URL.", value=str(seed)
            )

        settings = self.settings
        state = CrawlRunState(
            target=seed,
            profile=build_request_profile(
                settings.user_agent, max_redirects=settings.max_redirects
            ),
            endpoints=DatabaseEndpointSet(dedupe=settings.dedupe_endpoints),
            delay=settings.delay,
        )

        timer: Optional[asyncio.TimerHandle] = None
        if settings.run_timeout:
            timer = asyncio.get_running_loop().call_later(
                settings.run_timeout,
                self.token.cancel,
                f"run timeout of {settings.run_timeout}s exceeded",
            )

        try:
            async with build_client(
                state.profile, timeout=settings.timeout, transport=self._transport
            ) as client:
                await self._run_phases(state, client)
        except CrawlCancelled as exc:
            self.reporter.report(f"Crawl cancelled during {state.phase.value}", exc)
            state.record_failure()
            state.abort(exc.reason, cancelled=True)
        finally:
            if timer is not None:
                timer.cancel()

        LOGGER.info(
            "Crawl %s: %d link(s), %d endpoint(s) probed, %d error(s)",
            state.phase.value,
            state.links_fetched,
            state.endpoints_probed,
            state.error_count,
        )
        return state

    async def _run_phases(self, state: CrawlRunState, client: httpx.AsyncClient) -> None:
        try:
            state.advance(CrawlPhase.resolving_server)
            hostname = urlparse(state.target).hostname or ""
            state.server_info = await self.token.guard(self._resolver(hostname))
            LOGGER.info("Server Name: %s", state.server_info.server_name)
            LOGGER.info("Server IP Address: %s", state.server_info.ip_address)

            state.advance(CrawlPhase.fetching_seed)
            seed_response = await self._fetch(client, state, state.target)
        except (DnsError, FetchError) as exc:
            self.reporter.report("Error during the crawling and parsing process", exc)
            state.record_failure()
            state.abort(str(exc))
            return

        state.advance(CrawlPhase.enumerating)
        self._enumerate_seed(state, seed_response)

        state.advance(CrawlPhase.fetching_links)
        await self._fetch_links(state, client)

        state.advance(CrawlPhase.probing_endpoints)
        await self._probe_endpoints(state, client)

        state.advance(CrawlPhase.done)

    def _enumerate_seed(self, state: CrawlRunState, response: FetchResponse) -> None:
        state.elements = enumerate_elements(response.text)
        LOGGER.info("Found %d HTML element(s) on the page", len(state.elements))
        LOGGER.debug(
            "All HTML elements on the page: %s",
            [element.to_dict() for element in state.elements],
        )

        try:
            write_elements(self.settings.output_path, state.elements)
        except LogWriteError as exc:
            LOGGER.error("%s", exc)

        base_url = response.final_url if self.settings.resolve_relative else None
        state.links = extract_links(response.text, base_url=base_url)
        LOGGER.info("Extracted %d link(s) from %s", len(state.links), state.target)

    async def _fetch_links(self, state: CrawlRunState, client: httpx.AsyncClient) -> None:
        async def visit(index: int, link: str) -> List[str]:
            try:
                response = await self._fetch(client, state, link)
            except FetchError as exc:
                self.reporter.report(f"Error processing link #{index + 1}", exc)
                state.record_failure()
                return []

            state.record_success()
            state.links_fetched += 1
            LOGGER.info("Link #%d - Status Code: %d", index + 1, response.status_code)
            LOGGER.info("Click to open: %s", link)
            LOGGER.info("Port of the IP address: %d", default_port(link))
            return find_candidates(response.text, self.settings.endpoint_pattern)

        results = await self._for_each(state.links, visit, state.delay)
        for link, candidates in zip(state.links, results):
            state.endpoints.add_all(candidates, source_url=link)

        LOGGER.info("Collected %d database endpoint candidate(s)", len(state.endpoints))

    async def _probe_endpoints(
        self, state: CrawlRunState, client: httpx.AsyncClient
    ) -> None:
        async def probe(index: int, endpoint: DiscoveredEndpoint) -> None:
            url = endpoint.probe_url(self.settings.resolve_relative)
            try:
                response = await self._fetch(client, state, url)
            except FetchError as exc:
                self.reporter.report(
                    f"Error inspecting the database at endpoint {endpoint.value}", exc
                )
                state.record_failure()
                return

            state.record_success()
            state.endpoints_probed += 1
            LOGGER.info(
                "Database information from endpoint %s: %s",
                endpoint.value,
                response.text[:PAYLOAD_PREVIEW_CHARS],
            )
            LOGGER.debug("Full payload from %s: %s", url, response.text)

        await self._for_each(list(state.endpoints), probe, state.delay)

    async def _fetch(
        self, client: httpx.AsyncClient, state: CrawlRunState, url: str
    ) -> FetchResponse:
        return await self.token.guard(
            fetch_async(
                client,
                url,
                state.profile,
                max_retries=self.settings.max_retries,
                retry_backoff=self.settings.retry_backoff,
                sleep=self.token.sleep,
            )
        )

    async def _for_each(
        self,
        items: Sequence[T],
        worker: Callable[[int, T], Awaitable[R]],
        delay: float,
    ) -> List[R]:
        """Run *worker* per item, waiting *delay* seconds after each.

        Results come back in item order whatever the concurrency.
        """
        if self.settings.concurrency <= 1:
            results: List[R] = []
            for index, item in enumerate(items):
                results.append(await worker(index, item))
                await self.token.sleep(delay)
            return results

        semaphore = asyncio.Semaphore(self.settings.concurrency)

        async def bounded(index: int, item: T) -> R:
            async with semaphore:
                result = await worker(index, item)
                await self.token.sleep(delay)
                return result

        tasks = [asyncio.ensure_future(bounded(i, item)) for i, item in enumerate(items)]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
