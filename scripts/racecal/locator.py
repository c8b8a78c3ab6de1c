"""
Candidate location: find (name, link, date text) triples on a club page.

Three independent passes run over the same document and their results are
concatenated:

* direct links: every race link, dated by searching the markup around it;
* table rows: rows whose own text carries a date, with the race links inside;
* labelled sections: race links in the elements following an "Upcoming" or
  "Fixtures" heading, dated like direct links.

The same race usually turns up in more than one pass; callers dedupe later.
"""

from __future__ import annotations

import logging
from itertools import islice
from typing import Callable, Iterator, List, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag

from .dates import resolve_detailed
from .models import Club, RawCandidate
from .utils import absolute_url, element_text

logger = logging.getLogger(__name__)

EVENT_PATH_MARKER = "/races/"
EVENT_LINK_SELECTOR = f'a[href*="{EVENT_PATH_MARKER}"]'
ROW_SELECTOR = "tr, .fixture-row, .event-row"
SECTION_HEADING_SELECTOR = "h3, h4, .section-header"
SECTION_MARKERS = ("upcoming", "fixture")
SECTION_SCAN_LIMIT = 10
ANCESTOR_DEPTH = 5
MIN_NAME_LENGTH = 5

# Link labels that name an action rather than a race.
NON_EVENT_NAMES = frozenset({"enter", "register", "sign up", "view", "details"})
NON_EVENT_PHRASES = ("season pass", "volunteer", "replacement", "pre-order")

Strategy = Callable[[BeautifulSoup, Club, str], List[RawCandidate]]


def is_event_name(name: Optional[str]) -> bool:
    if not name:
        return False
    name = " ".join(name.split())
    if len(name) < MIN_NAME_LENGTH:
        return False
    lowered = name.lower()
    if lowered in NON_EVENT_NAMES:
        return False
    return not any(phrase in lowered for phrase in NON_EVENT_PHRASES)


def is_event_link(node) -> bool:
    return isinstance(node, Tag) and node.name == "a" and EVENT_PATH_MARKER in (node.get("href") or "")


def context_fragments(anchor: Tag) -> Iterator[str]:
    """
    Text around ``anchor`` in search order: the anchor itself, then up to
    ANCESTOR_DEPTH ancestors each followed by that ancestor's siblings, then
    the anchor's previous and next siblings.
    """
    yield element_text(anchor)

    ancestor = anchor.parent
    for _ in range(ANCESTOR_DEPTH):
        if ancestor is None or isinstance(ancestor, BeautifulSoup):
            break
        yield element_text(ancestor)
        for sibling in _element_siblings(ancestor):
            yield element_text(sibling)
        ancestor = ancestor.parent

    for neighbour in (_previous_element(anchor), _next_element(anchor)):
        if neighbour is not None:
            yield element_text(neighbour)


def find_context_date(anchor: Tag) -> Optional[str]:
    """
    Source text of the first fully resolved date around ``anchor``. A partial
    date (a bare year in a race name, say) is only used when nothing further
    out resolves completely.
    """
    fallback: Optional[str] = None
    for fragment in context_fragments(anchor):
        resolution = resolve_detailed(fragment)
        if resolution is None:
            continue
        if not resolution.partial:
            return resolution.source
        if fallback is None:
            fallback = resolution.source
    return fallback


def direct_link_candidates(document: BeautifulSoup, club: Club, base_url: str) -> List[RawCandidate]:
    candidates: List[RawCandidate] = []
    for link in document.select(EVENT_LINK_SELECTOR):
        name = _event_name(link, club)
        if name is None:
            continue
        candidates.append(
            RawCandidate(
                name=name,
                link=absolute_url(base_url, link["href"]),
                date_text=find_context_date(link),
                strategy="link",
            )
        )
    return candidates


def table_row_candidates(document: BeautifulSoup, club: Club, base_url: str) -> List[RawCandidate]:
    candidates: List[RawCandidate] = []
    for row in document.select(ROW_SELECTOR):
        resolution = resolve_detailed(element_text(row))
        if resolution is None:
            continue
        for link in row.select(EVENT_LINK_SELECTOR):
            name = _event_name(link, club)
            if name is None:
                continue
            candidates.append(
                RawCandidate(
                    name=name,
                    link=absolute_url(base_url, link["href"]),
                    date_text=resolution.source,
                    strategy="row",
                )
            )
    return candidates


def section_candidates(document: BeautifulSoup, club: Club, base_url: str) -> List[RawCandidate]:
    candidates: List[RawCandidate] = []
    for heading in document.select(SECTION_HEADING_SELECTOR):
        heading_text = element_text(heading).lower()
        if not any(marker in heading_text for marker in SECTION_MARKERS):
            continue
        following = (node for node in heading.next_siblings if isinstance(node, Tag))
        for sibling in islice(following, SECTION_SCAN_LIMIT):
            links = [sibling] if is_event_link(sibling) else sibling.select(EVENT_LINK_SELECTOR)
            for link in links:
                name = _event_name(link, club)
                if name is None:
                    continue
                candidates.append(
                    RawCandidate(
                        name=name,
                        link=absolute_url(base_url, link["href"]),
                        date_text=find_context_date(link),
                        strategy="section",
                    )
                )
    return candidates


STRATEGIES: Sequence[Strategy] = (
    direct_link_candidates,
    table_row_candidates,
    section_candidates,
)


def locate(document: BeautifulSoup, club: Club, base_url: str) -> List[RawCandidate]:
    candidates: List[RawCandidate] = []
    for strategy in STRATEGIES:
        found = strategy(document, club, base_url)
        logger.debug("%s: %s found %d candidates", club.club_name, strategy.__name__, len(found))
        candidates.extend(found)
    return candidates


def _event_name(link: Tag, club: Club) -> Optional[str]:
    if not link.get("href"):
        return None
    name = element_text(link)
    if not is_event_name(name):
        if name:
            logger.debug("%s: skipping non-event link %r", club.club_name, name)
        return None
    return name


def _element_siblings(node: Tag) -> List[Tag]:
    parent = node.parent
    if parent is None:
        return []
    return [child for child in parent.children if isinstance(child, Tag) and child is not node]


def _previous_element(node: Tag) -> Optional[Tag]:
    for sibling in node.previous_siblings:
        if isinstance(sibling, Tag):
            return sibling
    return None


def _next_element(node: Tag) -> Optional[Tag]:
    for sibling in node.next_siblings:
        if isinstance(sibling, Tag):
            return sibling
    return None
