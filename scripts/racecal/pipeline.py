from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, List

from .assembler import assemble_all
from .connectors import PageConnector
from .discovery import discover_clubs
from .locator import locate
from .models import Club, Event
from .registry import (
    clubs_by_url,
    dedupe_events,
    load_clubs,
    merge_clubs,
    save_clubs,
    save_events,
    sort_events,
)
from .utils import normalize_regions

logger = logging.getLogger(__name__)


class NoClubsError(RuntimeError):
    """Raised when an event run has no clubs to visit."""


def scrape_club_events(
    connector: PageConnector,
    club: Club,
    base_url: str,
    now: datetime,
    allow_partial: bool = True,
) -> List[Event]:
    document = connector.fetch(club.club_url)
    candidates = locate(document, club, base_url)
    events = dedupe_events(assemble_all(candidates, club, now, allow_partial=allow_partial))
    logger.info("  %d candidates -> %d upcoming events", len(candidates), len(events))
    return events


def collect_events(
    connector: PageConnector,
    clubs: Iterable[Club],
    base_url: str,
    now: datetime,
    delay: float = 0.0,
    sleep: Callable[[float], Any] = time.sleep,
    allow_partial: bool = True,
) -> List[Event]:
    events: List[Event] = []
    for index, club in enumerate(clubs):
        if index and delay > 0:
            sleep(delay)
        logger.info("Scraping events for %s...", club.club_name)
        try:
            club_events = scrape_club_events(connector, club, base_url, now, allow_partial=allow_partial)
        except Exception as exc:
            logger.error("Failed to scrape events for %s: %s", club.club_name, exc)
            continue
        events.extend(club_events)
    return sort_events(dedupe_events(events))


def update_clubs(
    connector: PageConnector,
    clubs_path: Path,
    base_url: str,
    now: datetime,
    regions: Any = None,
    dry_run: bool = False,
) -> List[Club]:
    existing = clubs_by_url(load_clubs(clubs_path))
    document = connector.fetch(base_url.rstrip("/") + "/")
    scraped = discover_clubs(document, base_url, regions=regions, now=now)
    merged = list(merge_clubs(existing, scraped, now).values())

    if dry_run:
        logger.info("Dry run enabled; skipping write of %s.", clubs_path)
    else:
        save_clubs(clubs_path, merged)
    return merged


def update_events(
    connector: PageConnector,
    clubs_path: Path,
    events_path: Path,
    base_url: str,
    now: datetime,
    regions: Any = None,
    delay: float = 0.0,
    sleep: Callable[[float], Any] = time.sleep,
    allow_partial: bool = True,
    dry_run: bool = False,
) -> List[Event]:
    clubs = load_clubs(clubs_path)
    wanted = normalize_regions(regions)
    if wanted is not None:
        clubs = [club for club in clubs if club.region in wanted]
    if not clubs:
        raise NoClubsError(f"No clubs to scrape in {clubs_path}; run update-clubs first.")

    events = collect_events(
        connector,
        clubs,
        base_url,
        now,
        delay=delay,
        sleep=sleep,
        allow_partial=allow_partial,
    )
    logger.info("Scraped %d events from %d clubs", len(events), len(clubs))

    if dry_run:
        logger.info("Dry run enabled; skipping write of %s.", events_path)
    else:
        save_events(events_path, events)
    return events
