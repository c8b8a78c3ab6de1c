from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

CANONICAL_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_instant(value: datetime) -> str:
    """Render a datetime as a UTC ``YYYY-MM-DDTHH:MM:SSZ`` string."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(CANONICAL_FORMAT)


def parse_instant(value: str) -> datetime:
    return datetime.strptime(value, CANONICAL_FORMAT).replace(tzinfo=timezone.utc)


def _text_field(row: Dict[str, Any], key: str) -> str:
    """String value of ``row[key]``; missing or null is ''. Raises ValueError for any other type."""
    value = row.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


@dataclass
class Club:
    """A club listed on the race calendar site, keyed by its calendar URL."""

    club_name: str
    club_url: str
    region: Optional[str] = None
    last_seen: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "clubName": self.club_name,
            "clubUrl": self.club_url,
            "region": self.region,
            "lastSeen": self.last_seen,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Club":
        return cls(
            club_name=_text_field(row, "clubName").strip(),
            club_url=_text_field(row, "clubUrl"),
            region=_text_field(row, "region") or None,
            last_seen=_text_field(row, "lastSeen") or None,
        )


@dataclass
class Event:
    """A single upcoming race, keyed by its detail page URL."""

    event_name: str
    event_date: str
    club_name: str
    event_url: str
    region: Optional[str] = None

    @property
    def starts_at(self) -> datetime:
        return parse_instant(self.event_date)

    def to_row(self) -> Dict[str, Any]:
        return {
            "eventName": self.event_name,
            "eventDate": self.event_date,
            "clubName": self.club_name,
            "region": self.region,
            "eventUrl": self.event_url,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Event":
        return cls(
            event_name=_text_field(row, "eventName"),
            event_date=_text_field(row, "eventDate"),
            club_name=_text_field(row, "clubName"),
            event_url=_text_field(row, "eventUrl"),
            region=_text_field(row, "region") or None,
        )


@dataclass(frozen=True)
class RawCandidate:
    """Unvalidated (name, link, date text) triple found by a locator strategy."""

    name: str
    link: str
    date_text: Optional[str]
    strategy: str = ""
