from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from bs4 import BeautifulSoup

from .models import Club, format_instant
from .utils import absolute_url, collapse_whitespace, element_text, normalize_regions

logger = logging.getLogger(__name__)

CLUB_LINK_SELECTOR = 'a[href*="/calendar/"]'
MENU_HEADER_CLASS = "dropdown-header"

REGION_NAMES: Dict[str, str] = {
    "ACT": "Australian Capital Territory",
    "NSW": "New South Wales",
    "NT": "Northern Territory",
    "QLD": "Queensland",
    "SA": "South Australia",
    "TAS": "Tasmania",
    "VIC": "Victoria",
    "WA": "Western Australia",
}

# Checked in order. VIC goes last because its indicators ("northern",
# "western", ...) also occur inside other regions' names.
REGION_INDICATORS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("ACT", ("australian capital territory", "canberra")),
    ("NT", ("northern territory", "darwin", "alice springs")),
    ("WA", ("western australia", "perth")),
    ("SA", ("south australia", "adelaide")),
    ("NSW", ("new south wales", "sydney", "newcastle", "wollongong")),
    ("QLD", ("queensland", "brisbane", "gold coast")),
    ("TAS", ("tasmania", "hobart", "launceston")),
    (
        "VIC",
        (
            "victoria", "vic", "melbourne", "geelong", "ballarat", "bendigo",
            "casey", "eastern", "northern", "western", "southern", "morningside",
            "brunswick", "colac", "hamilton", "frankston", "werribee", "dandenong",
        ),
    ),
)

_WORD_RE = re.compile(r"[a-z]+")


def region_from_heading(text: str) -> Optional[str]:
    """Region code named by a menu header such as "VIC" or "Victoria"."""
    lowered = collapse_whitespace(text).lower()
    words = set(_WORD_RE.findall(lowered))
    for code, name in REGION_NAMES.items():
        if code.lower() in words or name.lower() in lowered:
            return code
    return None


def infer_region(club_name: str, href: str) -> Optional[str]:
    lowered_name = club_name.lower()
    lowered_href = href.lower()
    for code, indicators in REGION_INDICATORS:
        for indicator in indicators:
            if indicator in lowered_name or indicator in lowered_href:
                return code
    return None


def clean_club_name(name: str, base_url: str = "https://entryboss.cc") -> str:
    name = collapse_whitespace(name)
    prefix = base_url.rstrip("/") + "/calendar/"
    if name.startswith(prefix):
        name = name[len(prefix):]
    if name.endswith(" Open"):
        name = name[: -len(" Open")]
    return name


def discover_clubs(
    document: BeautifulSoup,
    base_url: str,
    regions: Any = None,
    now: Optional[datetime] = None,
) -> Dict[str, Club]:
    """
    Read clubs from the site's navigation menu, where each region is a
    ``li.dropdown-header`` followed by ``li`` items linking to club calendars.
    Falls back to guessing regions from link text when the menu has no
    recognisable region headers.
    """
    wanted = normalize_regions(regions)
    stamp = format_instant(now) if now is not None else None

    clubs = _clubs_from_menu(document, base_url, stamp)
    if not clubs:
        logger.info("No clubs found in the region menu, trying fallback method...")
        clubs = _clubs_from_links(document, base_url, stamp)

    if wanted is not None:
        clubs = {url: club for url, club in clubs.items() if club.region in wanted}

    logger.info("Discovered %d clubs", len(clubs))
    return clubs


def _clubs_from_menu(document: BeautifulSoup, base_url: str, stamp: Optional[str]) -> Dict[str, Club]:
    clubs: Dict[str, Club] = {}
    current_region: Optional[str] = None

    for item in document.find_all("li"):
        if MENU_HEADER_CLASS in (item.get("class") or []):
            current_region = region_from_heading(element_text(item))
            if current_region:
                logger.debug("Found %s section in menu", current_region)
            continue
        # Skip wrapper items holding a whole submenu; their inner items are visited on their own.
        if current_region is None or item.find("li") is not None:
            continue

        for link in item.select(CLUB_LINK_SELECTOR):
            name = element_text(link)
            href = link.get("href")
            if not name or not href:
                continue
            url = absolute_url(base_url, href)
            clubs[url] = Club(club_name=name, club_url=url, region=current_region, last_seen=stamp)
            logger.debug("Found %s club: %s -> %s", current_region, name, url)
    return clubs


def _clubs_from_links(document: BeautifulSoup, base_url: str, stamp: Optional[str]) -> Dict[str, Club]:
    clubs: Dict[str, Club] = {}
    for link in document.select(CLUB_LINK_SELECTOR):
        href = link.get("href")
        if not href:
            continue
        name = element_text(link) or element_text(link.parent)
        name = clean_club_name(name, base_url)
        if not name:
            continue
        region = infer_region(name, href)
        if region is None:
            continue
        url = absolute_url(base_url, href)
        clubs[url] = Club(club_name=name, club_url=url, region=region, last_seen=stamp)
        logger.debug("Found %s club (fallback): %s -> %s", region, name, url)
    return clubs
