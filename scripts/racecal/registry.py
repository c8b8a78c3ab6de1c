"""
Club and event registries.

Clubs accumulate across runs: a club missing from the latest scrape is kept.
Events are a derived view that each run replaces wholesale. Both are stored
as indented JSON lists, unique by URL.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from .models import Club, Event, format_instant, parse_instant

logger = logging.getLogger(__name__)


class RegistryWriteError(RuntimeError):
    """Raised when a registry cannot be persisted."""


def dedupe_events(events: Iterable[Event]) -> List[Event]:
    """
    One event per detail URL. When a URL repeats, the last record seen wins
    and takes the position of the first occurrence.
    """
    unique: Dict[str, Event] = {}
    for event in events:
        unique[event.event_url] = event
    return list(unique.values())


def sort_events(events: Iterable[Event]) -> List[Event]:
    return sorted(events, key=lambda event: (event.event_date, event.event_name, event.event_url))


def club_sort_key(club: Club) -> Tuple[str, str, str]:
    return (club.region or "", club.club_name, club.club_url)


def clubs_by_url(clubs: Iterable[Club]) -> Dict[str, Club]:
    return {club.club_url: club for club in clubs if club.club_url}


def merge_clubs(existing: Mapping[str, Club], scraped: Mapping[str, Club], now: datetime) -> Dict[str, Club]:
    stamp = format_instant(now)
    merged: Dict[str, Club] = {url: replace(club, club_url=url) for url, club in existing.items()}

    new_count = updated_count = 0
    for url, club in scraped.items():
        current = merged.get(url)
        if current is not None:
            current.club_name = club.club_name
            current.region = club.region
            current.last_seen = stamp
            updated_count += 1
        else:
            merged[url] = replace(club, club_url=url, last_seen=stamp)
            new_count += 1

    migrated_count = 0
    for club in merged.values():
        if not club.last_seen:
            club.last_seen = stamp
            migrated_count += 1

    logger.info("Club update summary:")
    logger.info("  Total clubs: %d", len(merged))
    logger.info("  New clubs found: %d", new_count)
    logger.info("  Existing clubs updated: %d", updated_count)
    if migrated_count:
        logger.info("  Clubs migrated (added lastSeen): %d", migrated_count)
    logger.info("  Clubs preserved from previous runs: %d", len(merged) - len(scraped))

    ordered = sorted(merged.values(), key=club_sort_key)
    return {club.club_url: club for club in ordered}


def load_clubs(path: Path) -> List[Club]:
    clubs: List[Club] = []
    for row in _load_rows(path, "club"):
        try:
            club = Club.from_row(row)
        except ValueError as exc:
            logger.warning("Skipping malformed club in %s (%s): %r", path, exc, row)
            continue
        if not club.club_url:
            logger.warning("Skipping club without a URL in %s: %r", path, row)
            continue
        clubs.append(club)
    return clubs


def load_events(path: Path) -> List[Event]:
    events: List[Event] = []
    for row in _load_rows(path, "event"):
        try:
            event = Event.from_row(row)
        except ValueError as exc:
            logger.warning("Skipping malformed event in %s (%s): %r", path, exc, row)
            continue
        if not event.event_url:
            logger.warning("Skipping event without a URL in %s: %r", path, row)
            continue
        try:
            parse_instant(event.event_date)
        except (TypeError, ValueError):
            logger.warning("Skipping event with malformed date in %s: %r", path, row)
            continue
        events.append(event)
    return events


def save_clubs(path: Path, clubs: Iterable[Club]) -> None:
    unique = clubs_by_url(clubs)
    rows = [club.to_row() for club in sorted(unique.values(), key=club_sort_key)]
    _write_rows(path, rows)
    logger.info("Persisted %d clubs to %s", len(rows), path)


def save_events(path: Path, events: Iterable[Event]) -> None:
    rows = [event.to_row() for event in sort_events(dedupe_events(events))]
    _write_rows(path, rows)
    logger.info("Persisted %d events to %s", len(rows), path)


def _load_rows(path: Path, label: str) -> List[Dict[str, Any]]:
    path = Path(path)
    if not path.exists():
        logger.info("No existing %s registry at %s", label, path)
        return []

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        logger.warning("Failed to parse existing %s registry %s: %s", label, path, exc)
        return []

    if not isinstance(data, list):
        logger.warning("Ignoring %s registry %s: expected a JSON list, got %s", label, path, type(data).__name__)
        return []
    return [row for row in data if isinstance(row, dict)]


def _write_rows(path: Path, rows: List[Dict[str, Any]]) -> None:
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(rows, handle, indent=2, ensure_ascii=False)
            handle.write("\n")
        os.replace(tmp_path, path)
    except OSError as exc:
        raise RegistryWriteError(f"Failed to write {path}: {exc}") from exc
