"""
Tests for the per-club scraping pipeline and the two update runs.
"""

import json

import pytest

from racecal.connectors import FetchError, StaticConnector
from racecal.models import Club
from racecal.pipeline import NoClubsError, collect_events, scrape_club_events, update_clubs, update_events
from racecal.registry import load_clubs, save_clubs

BRUNSWICK_URL = "https://entryboss.cc/calendar/brunswick"
NORTHERN_URL = "https://entryboss.cc/calendar/northern"


@pytest.fixture
def connector(club_page_html, menu_html):
    return StaticConnector({
        "type": "static",
        "pages": {
            "https://entryboss.cc/": menu_html,
            BRUNSWICK_URL: club_page_html,
        },
    })


class TestScrapeClubEvents:
    def test_strategies_collapse_to_unique_upcoming_events(self, connector, club, base_url, now):
        events = scrape_club_events(connector, club, base_url, now)

        assert [(e.event_url, e.event_date) for e in events] == [
            ("https://entryboss.cc/races/123", "2025-07-05T00:00:00Z"),
            ("https://entryboss.cc/races/124", "2025-07-13T00:00:00Z"),
            ("https://entryboss.cc/races/130", "2025-08-02T00:00:00Z"),
        ]
        assert all(e.club_name == "Brunswick Cycling Club" and e.region == "VIC" for e in events)

    def test_rerun_is_idempotent(self, connector, club, base_url, now):
        assert scrape_club_events(connector, club, base_url, now) == scrape_club_events(connector, club, base_url, now)


class TestCollectEvents:
    def test_failed_club_is_skipped(self, connector, club, base_url, now, caplog):
        missing = Club(club_name="Northern Combine", club_url=NORTHERN_URL, region="VIC")
        delays = []

        events = collect_events(connector, [missing, club], base_url, now, delay=1.5, sleep=delays.append)

        assert len(events) == 3
        assert delays == [1.5]
        assert "Failed to scrape events for Northern Combine" in caplog.text

    def test_no_delay_before_first_club(self, connector, club, base_url, now):
        delays = []
        collect_events(connector, [club], base_url, now, delay=1.0, sleep=delays.append)
        assert delays == []

    def test_events_sorted_by_date(self, connector, club, base_url, now):
        events = collect_events(connector, [club], base_url, now, sleep=lambda _: None)
        assert [e.event_date for e in events] == sorted(e.event_date for e in events)


class TestUpdateClubs:
    def test_merges_discovered_clubs_into_registry(self, tmp_path, connector, base_url, now):
        clubs_path = tmp_path / "clubs.json"
        legacy = Club(club_name="Colac CC", club_url="https://entryboss.cc/calendar/colac", region="VIC")
        save_clubs(clubs_path, [legacy])

        clubs = update_clubs(connector, clubs_path, base_url, now, regions=["VIC"])

        urls = [club.club_url for club in clubs]
        assert set(urls) == {BRUNSWICK_URL, NORTHERN_URL, legacy.club_url}
        assert all(club.last_seen == "2025-07-01T12:00:00Z" for club in clubs)
        assert [c.club_url for c in load_clubs(clubs_path)] == urls

    def test_dry_run_does_not_write(self, tmp_path, connector, base_url, now):
        clubs_path = tmp_path / "clubs.json"
        update_clubs(connector, clubs_path, base_url, now, dry_run=True)
        assert not clubs_path.exists()

    def test_home_page_failure_propagates(self, tmp_path, base_url, now):
        connector = StaticConnector({"type": "static", "pages": {}})
        with pytest.raises(FetchError):
            update_clubs(connector, tmp_path / "clubs.json", base_url, now)


class TestUpdateEvents:
    def test_replaces_event_registry(self, tmp_path, connector, club, base_url, now):
        clubs_path = tmp_path / "clubs.json"
        events_path = tmp_path / "events.json"
        save_clubs(clubs_path, [club])
        events_path.write_text(json.dumps([{"eventName": "Stale", "eventUrl": "old"}]), encoding="utf-8")

        events = update_events(connector, clubs_path, events_path, base_url, now, sleep=lambda _: None)

        rows = json.loads(events_path.read_text(encoding="utf-8"))
        assert [row["eventUrl"] for row in rows] == [e.event_url for e in events]
        assert "old" not in {row["eventUrl"] for row in rows}

    def test_region_filter_with_no_match_raises(self, tmp_path, connector, club, base_url, now):
        clubs_path = tmp_path / "clubs.json"
        events_path = tmp_path / "events.json"
        save_clubs(clubs_path, [club])

        with pytest.raises(NoClubsError):
            update_events(connector, clubs_path, events_path, base_url, now, regions=["NSW"])
        assert not events_path.exists()
