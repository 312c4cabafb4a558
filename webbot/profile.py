"""Request header profile shared by every request of a run."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

USER_AGENTS: Tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Edge/91.0.864.59 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:89.0) Gecko/20100101 Firefox/89.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/14.1.1 Safari/605.1.15",
)

ACCEPT_LANGUAGE = "en-US,en;q=0.9"

# Success is 200 <= status < 400
ACCEPTED_STATUS_RANGE: Tuple[int, int] = (200, 400)


@dataclass(frozen=True)
class RequestProfile:
    """Read-only header set and request policy."""

    headers: Mapping[str, str]
    max_redirects: int = 5
    accepted_status: Tuple[int, int] = field(default=ACCEPTED_STATUS_RANGE)

    @property
    def user_agent(self) -> str:
        return self.headers["User-Agent"]

    def accepts(self, status_code: int) -> bool:
        low, high = self.accepted_status
        return low <= status_code < high


def build_request_profile(
    user_agent: Optional[str] = None,
    *,
    max_redirects: int = 5,
    rng: Optional[random.Random] = None,
) -> RequestProfile:
    """Build the profile for one run, picking a User-Agent from the pool."""
    if not user_agent:
        user_agent = (rng or random).choice(USER_AGENTS)

    headers = {
        "User-Agent": user_agent,
        "Accept-Language": ACCEPT_LANGUAGE,
        "Upgrade-Insecure-Requests": "1",
    }
    return RequestProfile(
        headers=MappingProxyType(headers),
        max_redirects=max_redirects,
    )
