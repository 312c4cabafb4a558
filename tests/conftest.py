"""Shared fixtures and strict test-accounting guardrails."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest

from webbot.config import CrawlSettings
from webbot.resolver import ServerInfo

Route = Union[Tuple[int, str], Callable[[httpx.Request], httpx.Response]]


@dataclass
class FakeSite:
    """In-memory site served through ``httpx.MockTransport``."""

    routes: Dict[str, Route] = field(default_factory=dict)
    requests: List[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(
            status, text=body, headers={"Content-Type": "text/html"}
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def requested_urls(self) -> List[str]:
        return [str(request.url) for request in self.requests]


@pytest.fixture
def fake_site() -> FakeSite:
    return FakeSite()


@pytest.fixture
def settings(tmp_path: Path) -> CrawlSettings:
    return CrawlSettings(
        delay=0,
        output_path=str(tmp_path / "web_bot_output.json"),
        error_log_path=str(tmp_path / "web_bot_error_log.txt"),
    )


@pytest.fixture
def fake_resolver():
    calls: List[str] = []

    async def resolve(hostname: str) -> ServerInfo:
        calls.append(hostname)
        return ServerInfo(server_name="host.test", ip_address="192.0.2.10")

    resolve.calls = calls
    return resolve


@dataclass
class _TestAccounting:
    deselected: int = 0
    skipped: int = 0
    xfailed: int = 0
    xpassed: int = 0


_ACCOUNTING = _TestAccounting()


def pytest_deselected(items):  # pragma: no cover - pytest hook
    _ACCOUNTING.deselected += len(items)


def pytest_runtest_logreport(report):  # pragma: no cover - pytest hook
    if report.when not in {"setup", "call"}:
        return

    if getattr(report, "wasxfail", False):
        if report.outcome == "skipped":
            _ACCOUNTING.xfailed += 1
        elif report.outcome == "passed":
            _ACCOUNTING.xpassed += 1
        return

    if report.outcome == "skipped":
        _ACCOUNTING.skipped += 1


def pytest_sessionfinish(session, exitstatus):  # pragma: no cover - pytest hook
    violations = [
        f"{name}={count}"
        for name, count in vars(_ACCOUNTING).items()
        if count
    ]
    if not violations:
        return

    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter:
        reporter.write_sep(
            "=",
            "Strict guard failed: test accounting violations detected "
            f"({', '.join(violations)})",
        )
    session.exitstatus = 1
