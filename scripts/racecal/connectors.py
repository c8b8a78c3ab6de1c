from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import requests
from bs4 import BeautifulSoup, ParserRejectedMarkup

from .utils import url_slug

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "racecal/0.1 (club race calendar)"


class FetchError(RuntimeError):
    """Raised when a page cannot be retrieved or parsed."""


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class PageConnector:
    """
    Base connector that turns a page URL into a parsed document.
    """

    def __init__(self, source_config: Dict[str, Any]):
        self.source = source_config

    def fetch(self, url: str) -> BeautifulSoup:
        html = self._fetch_html(url)
        try:
            return parse_html(html)
        except ParserRejectedMarkup as exc:
            raise FetchError(f"Failed to parse HTML from {url}: {exc}") from exc

    def _fetch_html(self, url: str) -> str:
        raise NotImplementedError


class HTTPConnector(PageConnector):
    """
    Fetches live pages with a shared requests session. Any status other than
    200 is a failure; retries are left to the caller.
    """

    def __init__(self, source_config: Dict[str, Any]):
        super().__init__(source_config)
        self.session = requests.Session()
        self.session.headers["User-Agent"] = self.source.get("user_agent") or DEFAULT_USER_AGENT

    def _fetch_html(self, url: str) -> str:
        timeout = self.source.get("timeout", 15)
        logger.debug("GET %s", url)
        try:
            response = self.session.get(url, timeout=timeout)
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}") from exc
        if response.status_code != 200:
            raise FetchError(f"Non-200 status code {response.status_code} for {url}")
        return response.text


class DirectoryConnector(PageConnector):
    """
    Serves pages saved to disk, named after the last URL path segment
    (``brunswick.html`` for ``/calendar/brunswick``, ``index.html`` for ``/``).
    """

    def _fetch_html(self, url: str) -> str:
        path = Path(self.source["path"]) / f"{url_slug(url) or 'index'}.html"
        if not path.exists():
            raise FetchError(f"Saved page not found for {url}: {path}")
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FetchError(f"Failed to read {path}: {exc}") from exc


class StaticConnector(PageConnector):
    def _fetch_html(self, url: str) -> str:
        pages = self.source.get("pages", {})
        for key in (url, url.rstrip("/"), url.rstrip("/") + "/"):
            if key in pages:
                return pages[key]
        raise FetchError(f"No static page registered for {url}")


def build_connector(source_config: Dict[str, Any]) -> PageConnector:
    connectors = {
        "http": HTTPConnector,
        "html_dir": DirectoryConnector,
        "static": StaticConnector,
    }
    source_type = source_config.get("type")
    if source_type not in connectors:
        raise ValueError(f"Unsupported page source type: {source_type}")
    return connectors[source_type](source_config)
