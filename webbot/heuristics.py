"""Textual heuristic for database-looking endpoints in response bodies."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import List, Pattern

DEFAULT_ENDPOINT_PATTERN = r"/database/"


@lru_cache(maxsize=32)
def _compile(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


def find_candidates(body: str, pattern: str = DEFAULT_ENDPOINT_PATTERN) -> List[str]:
    """Return every non-overlapping match of *pattern* in *body*, in order.

    The match runs on the raw text, so JSON, scripts and plain text are
    scanned the same way as HTML.
    """
    if not body:
        return []
    return [match.group(0) for match in _compile(pattern).finditer(body)]
