"""DOM enumeration and link extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, SoupStrainer

from .urls import resolve_href

# SoupStrainer to parse only <a href> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)


@dataclass(frozen=True, slots=True)
class ElementRecord:
    """Tag name and attributes of a single element."""

    kind: str
    attributes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"type": self.kind, "attributes": dict(self.attributes)}


def _parse(html: str, parse_only: Optional[SoupStrainer] = None) -> BeautifulSoup:
    # multi_valued_attributes=None keeps class="a b" as one string
    return BeautifulSoup(
        html or "",
        "lxml",
        parse_only=parse_only,
        multi_valued_attributes=None,
    )


def enumerate_elements(html: str) -> List[ElementRecord]:
    """Return one record per element of *html*, in document order.

    Parsing is lenient: malformed markup is repaired by the parser rather
    than rejected, and the implied ``html``/``head``/``body`` wrappers are
    reported like any other element.
    """
    soup = _parse(html)
    return [
        ElementRecord(
            kind=tag.name,
            attributes={name: str(value) for name, value in tag.attrs.items()},
        )
        for tag in soup.find_all(True)
    ]


def extract_links(html: str, base_url: Optional[str] = None) -> List[str]:
    """Extract anchor hrefs that are absolute web URIs, in document order.

    Relative hrefs are dropped unless *base_url* is given, in which case
    they are resolved against it.
    """
    soup = _parse(html, parse_only=LINK_STRAINER)
    links: List[str] = []
    for anchor in soup.find_all("a", href=True):
        link = resolve_href(anchor.get("href") or "", base_url)
        if link:
            links.append(link)
    return links
