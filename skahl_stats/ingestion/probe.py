"""Quick probe of the SportNinja API: schedules, date ranges and game counts."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone

from skahl_stats.ingestion.schedules import active_schedules
from skahl_stats.ingestion.sportninja_client import ApiError, SportNinjaClient
from skahl_stats.ingestion.sportninja_parser import normalize_schedule
from skahl_stats.ingestion.token import TokenNotFound, acquire_token
from skahl_stats.settings import resolve_source_config


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Probe SportNinja schedules for the organization and print game counts.",
    )
    parser.add_argument(
        "--org",
        type=str,
        default=None,
        help="Organization id (default: SPORTNINJA_ORG_ID or the league default).",
    )
    parser.add_argument(
        "--skip-games",
        action="store_true",
        help="Only list schedules, do not page through their games.",
    )
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = _parse_args()
    source = resolve_source_config()
    org_id = args.org or source.org_id

    try:
        token = acquire_token(source)
    except TokenNotFound as exc:
        logging.error("Token error: %s", exc)
        raise SystemExit(1)

    client = SportNinjaClient(token, source.api_base, site_url=source.site_url)
    try:
        raw_schedules = client.fetch_schedules(org_id)
    except ApiError as exc:
        logging.error("Schedules error: status=%s body=%s", exc.status, exc.body)
        raise SystemExit(1)

    schedules = [s for s in (normalize_schedule(raw) for raw in raw_schedules) if s is not None]
    active_ids = {s.id for s in active_schedules(schedules, datetime.now(timezone.utc))}
    logging.info("Found %s schedules for org=%s", len(schedules), org_id)

    grand_total = 0
    for schedule in schedules:
        marker = "*" if schedule.id in active_ids else " "
        logging.info(
            "%s %s (%s) starts=%s ends=%s season_id=%s",
            marker,
            schedule.name,
            schedule.id,
            schedule.starts_at,
            schedule.ends_at,
            schedule.season_id or "MISSING",
        )
        if args.skip_games:
            continue
        try:
            games = client.fetch_schedule_games(schedule.id)
        except ApiError as exc:
            logging.warning("    Failed to fetch games: %s", exc)
            continue
        logging.info("    Games: %s", len(games))
        grand_total += len(games)

    if not args.skip_games:
        logging.info("Total games in API: %s", grand_total)


if __name__ == "__main__":
    main()
