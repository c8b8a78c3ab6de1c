from __future__ import annotations

import os
from collections import Counter
from datetime import date, datetime, timezone
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from racecal.assembler import grace_cutoff
from racecal.models import Club, Event
from racecal.registry import load_clubs, load_events, sort_events

PROJECT_ROOT = Path(__file__).resolve().parent.parent

app = FastAPI(
    title="Race Calendar API",
    version="0.1.0",
    description="Read-only view of the scraped club and event registries.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ClubOut(BaseModel):
    club_name: str = Field(alias="clubName")
    club_url: str = Field(alias="clubUrl")
    region: Optional[str] = None
    last_seen: Optional[str] = Field(default=None, alias="lastSeen")


class EventOut(BaseModel):
    event_name: str = Field(alias="eventName")
    event_date: str = Field(alias="eventDate")
    club_name: str = Field(alias="clubName")
    region: Optional[str] = None
    event_url: str = Field(alias="eventUrl")


class ClubList(BaseModel):
    count: int
    results: List[ClubOut]


class EventList(BaseModel):
    count: int
    results: List[EventOut]


class RegionSummary(BaseModel):
    region: Optional[str] = None
    club_count: int


def get_data_dir() -> Path:
    return Path(os.getenv("RACECAL_DATA_DIR") or PROJECT_ROOT / "data")


def get_now() -> datetime:
    return datetime.now(timezone.utc)


def get_clubs(data_dir: Path = Depends(get_data_dir)) -> List[Club]:
    path = data_dir / "clubs.json"
    if not path.exists():
        raise HTTPException(
            status_code=503,
            detail="Club registry not found. Run scripts/update_race_calendar.py update-clubs first.",
        )
    return load_clubs(path)


def get_events(data_dir: Path = Depends(get_data_dir)) -> List[Event]:
    path = data_dir / "events.json"
    if not path.exists():
        raise HTTPException(
            status_code=503,
            detail="Event registry not found. Run scripts/update_race_calendar.py update-events first.",
        )
    return load_events(path)


@app.get("/health")
def healthcheck():
    return {"status": "ok"}


@app.get("/clubs", response_model=ClubList)
def list_clubs(
    clubs: List[Club] = Depends(get_clubs),
    region: Optional[str] = Query(default=None, min_length=2, max_length=3, description="Region code, e.g. VIC"),
    limit: int = Query(default=500, ge=1, le=2000),
):
    if region:
        clubs = [club for club in clubs if (club.region or "").upper() == region.upper()]
    results = [ClubOut(**club.to_row()) for club in clubs[:limit]]
    return {"count": len(results), "results": results}


@app.get("/regions", response_model=List[RegionSummary])
def list_regions(clubs: List[Club] = Depends(get_clubs)):
    counts = Counter(club.region for club in clubs)
    return [
        {"region": region, "club_count": count}
        for region, count in sorted(counts.items(), key=lambda item: item[0] or "")
    ]


@app.get("/events", response_model=EventList)
def list_events(
    events: List[Event] = Depends(get_events),
    now: datetime = Depends(get_now),
    region: Optional[str] = Query(default=None, min_length=2, max_length=3, description="Region code, e.g. VIC"),
    club: Optional[str] = Query(default=None, description="Case-insensitive substring of the club name"),
    date_from: Optional[date] = Query(default=None, description="Earliest event date (inclusive)"),
    date_to: Optional[date] = Query(default=None, description="Latest event date (inclusive)"),
    upcoming: bool = Query(default=True, description="Hide events that started before yesterday"),
    limit: int = Query(default=500, ge=1, le=5000),
):
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must not be after date_to.")

    cutoff = grace_cutoff(now)
    filtered: List[Event] = []
    for event in sort_events(events):
        starts_at = event.starts_at
        if upcoming and starts_at <= cutoff:
            continue
        if region and (event.region or "").upper() != region.upper():
            continue
        if club and club.lower() not in event.club_name.lower():
            continue
        if date_from and starts_at.date() < date_from:
            continue
        if date_to and starts_at.date() > date_to:
            continue
        filtered.append(event)

    results = [EventOut(**event.to_row()) for event in filtered[:limit]]
    return {"count": len(results), "results": results}
