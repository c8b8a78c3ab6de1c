"""
Tests for turning raw candidates into upcoming events.
"""

from datetime import datetime, timedelta, timezone

import pytest

from racecal.assembler import assemble, assemble_all, grace_cutoff
from racecal.locator import direct_link_candidates, table_row_candidates
from racecal.models import RawCandidate

NOW = datetime(2025, 7, 5, 12, 0, tzinfo=timezone.utc)


def _candidate(date_text, name="Club Criterium", link="https://entryboss.cc/races/123"):
    return RawCandidate(name=name, link=link, date_text=date_text, strategy="link")


class TestFutureCutoff:
    """Events must start after now minus the one-day grace window."""

    def test_two_days_ago_is_dropped(self, club):
        assert assemble(_candidate("2025-07-03"), club, NOW) is None

    def test_twelve_hours_ago_is_kept(self, club):
        """Midnight today is within the grace window at noon."""
        event = assemble(_candidate("2025-07-05"), club, NOW)
        assert event is not None
        assert event.event_date == "2025-07-05T00:00:00Z"

    def test_tomorrow_is_kept(self, club):
        assert assemble(_candidate("2025-07-06"), club, NOW) is not None

    def test_cutoff_is_exclusive(self, club):
        now = datetime(2025, 7, 5, 0, 0, tzinfo=timezone.utc)
        assert assemble(_candidate("2025-07-04"), club, now) is None
        assert assemble(_candidate("2025-07-05"), club, now) is not None

    def test_naive_now_is_treated_as_utc(self, club):
        naive = datetime(2025, 7, 5, 12, 0)
        assert grace_cutoff(naive) == NOW - timedelta(days=1)
        assert assemble(_candidate("2025-07-05"), club, naive) is not None


class TestValidation:
    def test_unresolvable_date_is_dropped(self, club):
        assert assemble(_candidate("TBA"), club, NOW) is None
        assert assemble(_candidate(None), club, NOW) is None

    @pytest.mark.parametrize("name", ["Enter", "Season Pass"])
    def test_denied_name_is_dropped_even_with_valid_date(self, club, name):
        assert assemble(_candidate("Sat, 12 Jul 2025", name=name), club, NOW) is None

    def test_partial_dates_follow_allow_partial(self, club):
        candidate = _candidate("Summer Series 2026")

        assert assemble(candidate, club, NOW).event_date == "2026-01-01T00:00:00Z"
        assert assemble(candidate, club, NOW, allow_partial=False) is None


class TestEventRecord:
    def test_fields_come_from_candidate_and_club(self, club):
        event = assemble(_candidate("Sat, 12 Jul 2025"), club, NOW)

        assert event.event_name == "Club Criterium"
        assert event.event_url == "https://entryboss.cc/races/123"
        assert event.event_date == "2025-07-12T00:00:00Z"
        assert event.club_name == club.club_name
        assert event.region == "VIC"

    def test_assemble_all_skips_dropped_candidates(self, club):
        candidates = [_candidate("2025-07-12"), _candidate("2025-06-01"), _candidate("TBA")]
        events = assemble_all(candidates, club, NOW)
        assert [e.event_date for e in events] == ["2025-07-12T00:00:00Z"]


class TestEndToEndRow:
    def test_dated_row_becomes_one_event(self, make_soup, club, base_url):
        document = make_soup(
            "<table><tr><td>Sat, 5 Jul 2025</td><td>Club Criterium</td>"
            '<td><a href="/races/123">Club Criterium</a></td></tr></table>'
        )
        now = datetime(2025, 7, 1, tzinfo=timezone.utc)

        candidates = table_row_candidates(document, club, base_url)
        events = assemble_all(candidates, club, now)

        assert len(candidates) == 1
        assert len(events) == 1
        assert events[0].event_date == "2025-07-05T00:00:00Z"


class TestEndToEndLink:
    @pytest.mark.parametrize("allow_partial", [True, False])
    def test_year_in_name_keeps_date_from_list_item(self, make_soup, club, base_url, allow_partial):
        document = make_soup(
            '<ul><li><span>Sun, 7 Mar 2027</span> <a href="/races/9">Club Championship 2027</a></li></ul>'
        )
        now = datetime(2026, 10, 18, tzinfo=timezone.utc)

        candidates = direct_link_candidates(document, club, base_url)
        events = assemble_all(candidates, club, now, allow_partial=allow_partial)

        assert [(e.event_name, e.event_date) for e in events] == [
            ("Club Championship 2027", "2027-03-07T00:00:00Z"),
        ]
