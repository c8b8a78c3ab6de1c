from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from .dates import resolve_detailed
from .locator import is_event_name
from .models import Club, Event, RawCandidate

logger = logging.getLogger(__name__)

# Tolerates clock and timezone skew between us and the club's page.
GRACE_WINDOW = timedelta(days=1)


def grace_cutoff(now: datetime) -> datetime:
    """Events must start strictly after this instant to count as upcoming."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - GRACE_WINDOW


def assemble(
    candidate: RawCandidate,
    club: Club,
    now: datetime,
    allow_partial: bool = True,
) -> Optional[Event]:
    if not is_event_name(candidate.name):
        return None

    resolution = resolve_detailed(candidate.date_text)
    if resolution is None:
        return None
    if resolution.partial and not allow_partial:
        logger.debug("Dropping %s: partially resolved date %r", candidate.link, resolution.source)
        return None
    if resolution.value <= grace_cutoff(now):
        return None

    return Event(
        event_name=candidate.name,
        event_date=resolution.canonical,
        club_name=club.club_name,
        event_url=candidate.link,
        region=club.region,
    )


def assemble_all(
    candidates: Iterable[RawCandidate],
    club: Club,
    now: datetime,
    allow_partial: bool = True,
) -> List[Event]:
    events: List[Event] = []
    for candidate in candidates:
        event = assemble(candidate, club, now, allow_partial=allow_partial)
        if event is not None:
            events.append(event)
    return events
