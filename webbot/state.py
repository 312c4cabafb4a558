"""Per-run crawl state owned by the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional
from urllib.parse import urljoin

from .dom import ElementRecord
from .profile import RequestProfile
from .resolver import ServerInfo
from .urls import is_valid_web_uri


class CrawlPhase(str, Enum):
    """Stages of a crawl run."""

    init = "init"
    resolving_server = "resolving_server"
    fetching_seed = "fetching_seed"
    enumerating = "enumerating_and_extracting"
    fetching_links = "fetching_links"
    probing_endpoints = "probing_endpoints"
    done = "done"
    aborted = "aborted"


@dataclass(frozen=True, slots=True)
class DiscoveredEndpoint:
    """An endpoint candidate and the link whose response contained it."""

    value: str
    source_url: str

    def probe_url(self, resolve_relative: bool = False) -> str:
        """URL to request when probing this endpoint."""
        if resolve_relative and not is_valid_web_uri(self.value):
            return urljoin(self.source_url, self.value)
        return self.value


class DatabaseEndpointSet:
    """Insertion-ordered endpoint candidates accumulated over one run.

    By default every discovery is kept, so an endpoint seen on three pages
    is probed three times. With ``dedupe=True`` only the first discovery of
    each value (compared case-sensitively) is kept.
    """

    def __init__(self, dedupe: bool = False):
        self.dedupe = dedupe
        self._items: List[DiscoveredEndpoint] = []
        self._seen: set[str] = set()

    def add_all(self, candidates: Iterable[str], source_url: str) -> int:
        """Add candidates found in *source_url*'s response; return count added."""
        added = 0
        for value in candidates:
            if self.dedupe:
                if value in self._seen:
                    continue
                self._seen.add(value)
            self._items.append(DiscoveredEndpoint(value=value, source_url=source_url))
            added += 1
        return added

    def values(self) -> List[str]:
        return [item.value for item in self._items]

    def __iter__(self) -> Iterator[DiscoveredEndpoint]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)


@dataclass
class CrawlRunState:
    """Mutable state of a single crawl run."""

    target: str
    profile: RequestProfile
    endpoints: DatabaseEndpointSet
    delay: float = 1.0
    phase: CrawlPhase = CrawlPhase.init
    server_info: Optional[ServerInfo] = None
    elements: List[ElementRecord] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    links_fetched: int = 0
    endpoints_probed: int = 0
    consecutive_errors: int = 0
    error_count: int = 0
    abort_reason: Optional[str] = None
    cancelled: bool = False

    @property
    def completed(self) -> bool:
        return self.phase is CrawlPhase.done

    def advance(self, phase: CrawlPhase) -> None:
        self.phase = phase

    def record_success(self) -> None:
        self.consecutive_errors = 0

    def record_failure(self) -> None:
        self.consecutive_errors += 1
        self.error_count += 1

    def abort(self, reason: str, *, cancelled: bool = False) -> None:
        self.abort_reason = reason
        self.cancelled = cancelled
        self.phase = CrawlPhase.aborted

    def summary(self) -> dict:
        return {
            "target": self.target,
            "phase": self.phase.value,
            "server": self.server_info.to_dict() if self.server_info else None,
            "elements": len(self.elements),
            "links": len(self.links),
            "links_fetched": self.links_fetched,
            "endpoints": len(self.endpoints),
            "endpoints_probed": self.endpoints_probed,
            "errors": self.error_count,
            "consecutive_errors": self.consecutive_errors,
            "abort_reason": self.abort_reason,
        }
