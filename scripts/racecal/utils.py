from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional
from urllib.parse import urljoin, urlparse

from bs4.element import Tag

_WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(value: Optional[str]) -> str:
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value).strip()


def element_text(node: Any) -> str:
    """
    Visible text of a BeautifulSoup node with child strings joined by a space,
    so adjacent cells such as <td>Sat, 5 Jul 2025</td><td>Crit</td> stay apart.
    """
    if node is None:
        return ""
    if isinstance(node, Tag):
        return collapse_whitespace(node.get_text(" ", strip=True))
    return collapse_whitespace(str(node))


def absolute_url(base_url: str, href: str) -> str:
    return urljoin(base_url.rstrip("/") + "/", href.strip())


def url_slug(url: str) -> str:
    """
    Last path segment of a URL, e.g. "brunswick" for
    "https://entryboss.cc/calendar/brunswick". Empty for the site root.
    """
    path = urlparse(url).path.strip("/")
    if not path:
        return ""
    return path.rsplit("/", 1)[-1]


def ensure_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, (tuple, set)):
        return list(value)
    return [value]


def normalize_regions(value: Any) -> Optional[List[str]]:
    """
    Accept a region code, a comma separated string, or an iterable of codes and
    return upper-cased codes. None (or "all") means no region filter.
    """
    items: Iterable[Any] = ensure_list(value)
    codes: List[str] = []
    for item in items:
        for part in str(item).split(","):
            code = part.strip().upper()
            if code and code not in codes:
                codes.append(code)
    if not codes or "ALL" in codes:
        return None
    return codes
