"""
Race Calendar Update Pipeline
-----------------------------

Discovers cycling clubs from the EntryBoss navigation menu (``update-clubs``)
and scrapes each known club's calendar page for upcoming races
(``update-events``). Results are written to ``data/clubs.json`` and
``data/events.json`` for the calendar front-end and ``api/main.py``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import Settings, load_settings
from racecal.connectors import FetchError, build_connector
from racecal.pipeline import NoClubsError, update_clubs, update_events
from racecal.registry import RegistryWriteError
from racecal.utils import normalize_regions

logger = logging.getLogger(__name__)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Discover cycling clubs and their upcoming races.")
    parser.add_argument("--clubs", type=Path, default=settings.clubs_path, help="Club registry JSON path.")
    parser.add_argument("--events", type=Path, default=settings.events_path, help="Event registry JSON path.")
    parser.add_argument(
        "--region",
        action="append",
        dest="regions",
        help="Region code to include, e.g. VIC (repeatable; 'all' for every region). Defaults to RACECAL_REGIONS.",
    )
    parser.add_argument("--base-url", default=settings.base_url, help="Listing site root URL.")
    parser.add_argument(
        "--delay",
        type=float,
        default=settings.request_delay,
        help="Seconds to wait between club page requests.",
    )
    parser.add_argument("--html-dir", type=Path, help="Read saved pages from this directory instead of the network.")
    parser.add_argument(
        "--strict-dates",
        action="store_true",
        help="Drop events whose date was missing a month or day.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Scrape and log without writing registries.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("update-clubs", help="Refresh the club registry from the site's region menu.")
    subparsers.add_parser("update-events", help="Replace the event registry with upcoming races of known clubs.")
    return parser


def source_config_from_args(args: argparse.Namespace, settings: Settings) -> Dict[str, Any]:
    if args.html_dir:
        return {"type": "html_dir", "path": str(args.html_dir)}
    return {"type": "http", "timeout": settings.request_timeout, "user_agent": settings.user_agent}


def resolve_regions(args: argparse.Namespace, settings: Settings) -> Optional[List[str]]:
    if args.regions:
        return normalize_regions(args.regions)
    return list(settings.regions) if settings.regions else None


def main(argv: Optional[List[str]] = None) -> int:
    settings = load_settings()
    args = build_parser(settings).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    connector = build_connector(source_config_from_args(args, settings))
    regions = resolve_regions(args, settings)
    now = datetime.now(timezone.utc)
    logger.info("Regions: %s", ", ".join(regions) if regions else "all")

    try:
        if args.command == "update-clubs":
            clubs = update_clubs(
                connector,
                args.clubs,
                args.base_url,
                now,
                regions=regions,
                dry_run=args.dry_run,
            )
            logger.info("Club registry holds %d clubs", len(clubs))
        else:
            events = update_events(
                connector,
                args.clubs,
                args.events,
                args.base_url,
                now,
                regions=regions,
                delay=args.delay,
                allow_partial=not args.strict_dates,
                dry_run=args.dry_run,
            )
            logger.info("Event registry holds %d upcoming events", len(events))
    except (FetchError, NoClubsError, RegistryWriteError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
