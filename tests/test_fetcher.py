"""Tests for webbot.fetcher module."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from webbot.errors import FetchError
from webbot.fetcher import build_client, fetch_async
from webbot.profile import build_request_profile


def _redirect(location: str):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": location})

    return handler


class TestFetchAsync:
    @pytest.mark.asyncio
    async def test_success(self, fake_site):
        fake_site.routes["https://a.test/"] = (200, "<p>hello</p>")
        profile = build_request_profile("Agent/1.0")

        async with build_client(profile, transport=fake_site.transport) as client:
            response = await fetch_async(client, "https://a.test/", profile)

        assert response.status_code == 200
        assert response.text == "<p>hello</p>"
        assert response.final_url == "https://a.test/"
        sent = fake_site.requests[0]
        assert sent.method == "GET"
        assert sent.headers["User-Agent"] == "Agent/1.0"
        assert sent.headers["Accept-Language"] == "en-US,en;q=0.9"
        assert sent.headers["Upgrade-Insecure-Requests"] == "1"

    @pytest.mark.asyncio
    async def test_status_outside_range_fails(self, fake_site):
        fake_site.routes["https://a.test/missing"] = (404, "nope")
        profile = build_request_profile()

        async with build_client(profile, transport=fake_site.transport) as client:
            with pytest.raises(FetchError, match="status code 404") as excinfo:
                await fetch_async(client, "https://a.test/missing", profile)

        assert excinfo.value.status_code == 404
        assert excinfo.value.url == "https://a.test/missing"

    @pytest.mark.asyncio
    async def test_follows_redirects(self, fake_site):
        fake_site.routes["https://a.test/old"] = _redirect("https://a.test/new")
        fake_site.routes["https://a.test/new"] = (200, "moved")
        profile = build_request_profile()

        async with build_client(profile, transport=fake_site.transport) as client:
            response = await fetch_async(client, "https://a.test/old", profile)

        assert response.url == "https://a.test/old"
        assert response.final_url == "https://a.test/new"
        assert response.text == "moved"

    @pytest.mark.asyncio
    async def test_redirect_limit(self, fake_site):
        fake_site.routes["https://a.test/loop"] = _redirect("https://a.test/loop")
        profile = build_request_profile()

        async with build_client(profile, transport=fake_site.transport) as client:
            with pytest.raises(FetchError, match="Exceeded 5 redirects"):
                await fetch_async(client, "https://a.test/loop", profile)

        # initial request plus five followed redirects
        assert len(fake_site.requests) == 6

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        profile = build_request_profile()
        transport = httpx.MockTransport(handler)

        async with build_client(profile, transport=transport) as client:
            with pytest.raises(FetchError, match="connection refused") as excinfo:
                await fetch_async(client, "https://down.test/", profile)

        assert excinfo.value.status_code is None
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_relative_url_is_rejected_without_request(self, fake_site):
        profile = build_request_profile()

        async with build_client(profile, transport=fake_site.transport) as client:
            with pytest.raises(FetchError, match="Not an absolute"):
                await fetch_async(client, "/database/", profile)

        assert fake_site.requests == []


class TestRetries:
    @pytest.mark.asyncio
    async def test_retries_retryable_status(self, fake_site):
        responses = iter([(503, "busy"), (200, "ok")])

        def handler(request: httpx.Request) -> httpx.Response:
            status, body = next(responses)
            return httpx.Response(status, text=body)

        fake_site.routes["https://a.test/"] = handler
        profile = build_request_profile()
        sleep = AsyncMock()

        async with build_client(profile, transport=fake_site.transport) as client:
            response = await fetch_async(
                client,
                "https://a.test/",
                profile,
                max_retries=2,
                retry_backoff=0.25,
                sleep=sleep,
            )

        assert response.text == "ok"
        sleep.assert_awaited_once_with(0.25)

    @pytest.mark.asyncio
    async def test_backoff_doubles_and_gives_up(self, fake_site):
        fake_site.routes["https://a.test/"] = (500, "broken")
        profile = build_request_profile()
        sleep = AsyncMock()

        async with build_client(profile, transport=fake_site.transport) as client:
            with pytest.raises(FetchError, match="500"):
                await fetch_async(
                    client,
                    "https://a.test/",
                    profile,
                    max_retries=2,
                    retry_backoff=0.5,
                    sleep=sleep,
                )

        assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0]
        assert len(fake_site.requests) == 3

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self, fake_site):
        fake_site.routes["https://a.test/gone"] = (404, "gone")
        profile = build_request_profile()
        sleep = AsyncMock()

        async with build_client(profile, transport=fake_site.transport) as client:
            with pytest.raises(FetchError):
                await fetch_async(
                    client, "https://a.test/gone", profile, max_retries=3, sleep=sleep
                )

        sleep.assert_not_awaited()
        assert len(fake_site.requests) == 1

    @pytest.mark.asyncio
    async def test_no_retry_by_default(self, fake_site):
        fake_site.routes["https://a.test/"] = (503, "busy")
        profile = build_request_profile()

        async with build_client(profile, transport=fake_site.transport) as client:
            with pytest.raises(FetchError):
                await fetch_async(client, "https://a.test/", profile)

        assert len(fake_site.requests) == 1
