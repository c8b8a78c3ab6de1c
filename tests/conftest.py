"""
Pytest configuration and fixtures for the race calendar test suite.
"""

from datetime import datetime, timezone

import pytest
from bs4 import BeautifulSoup

BASE_URL = "https://entryboss.cc"

CLUB_PAGE_HTML = """
<html>
  <body>
    <h1>Brunswick Cycling Club</h1>
    <table>
      <tr><th>Date</th><th>Race</th><th></th></tr>
      <tr>
        <td>Sat, 5 Jul 2025</td>
        <td><a href="/races/123">Club Criterium</a></td>
        <td><a href="/races/123/enter">Enter</a></td>
      </tr>
      <tr>
        <td>Sunday, 13 July 2025</td>
        <td><a href="/races/124">Kinglake Road Race</a></td>
      </tr>
      <tr>
        <td>Sat, 14 Jun 2025</td>
        <td><a href="/races/100">Winter Handicap</a></td>
      </tr>
    </table>
    <h3>Upcoming events</h3>
    <div class="event">
      <span class="date">2025-08-02</span>
      <a href="/races/130">Hill Climb Championship</a>
    </div>
    <div class="event">
      <a href="/races/131">2025 Season Pass</a>
    </div>
  </body>
</html>
"""

MENU_HTML = """
<html>
  <body>
    <ul class="nav">
      <li class="dropdown">
        <a href="#">Clubs</a>
        <ul class="dropdown-menu">
          <li class="dropdown-header">NSW</li>
          <li><a href="/calendar/sydney-uni">Sydney Uni Velo</a></li>
          <li class="dropdown-header">VIC</li>
          <li><a href="/calendar/brunswick">Brunswick Cycling Club</a></li>
          <li><a href="/calendar/northern">Northern Combine</a></li>
          <li class="dropdown-header">Popular</li>
          <li><a href="/calendar/featured">Featured Events</a></li>
        </ul>
      </li>
    </ul>
  </body>
</html>
"""


@pytest.fixture
def base_url():
    return BASE_URL


@pytest.fixture
def now():
    return datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def club():
    from racecal.models import Club

    return Club(
        club_name="Brunswick Cycling Club",
        club_url=f"{BASE_URL}/calendar/brunswick",
        region="VIC",
        last_seen="2025-06-01T00:00:00Z",
    )


@pytest.fixture
def make_soup():
    def _make(html):
        return BeautifulSoup(html, "html.parser")

    return _make


@pytest.fixture
def club_page_html():
    return CLUB_PAGE_HTML


@pytest.fixture
def menu_html():
    return MENU_HTML
