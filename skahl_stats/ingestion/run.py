"""CLI entrypoint for ingestion, detail backfill, stats aggregation and maintenance."""

from __future__ import annotations

import argparse
import logging

from skahl_stats.db import create_client
from skahl_stats.ingestion.details import DETAIL_CHUNK_SIZE, backfill_game_details
from skahl_stats.ingestion.maintenance import analyze_games, log_report, purge_games
from skahl_stats.ingestion.schedules import NoActiveSchedule
from skahl_stats.ingestion.sportninja_client import ApiError, SportNinjaClient
from skahl_stats.ingestion.stats import aggregate_stats
from skahl_stats.ingestion.sync import sync_active_schedule
from skahl_stats.ingestion.token import TokenNotFound, acquire_token
from skahl_stats.models import collection_names
from skahl_stats.settings import SourceConfig, resolve_source_config, resolve_store_config

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="SKAHL stats ingestion and maintenance commands.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("ingest", help="Sync games, teams and rosters for the active schedule.")

    details = commands.add_parser("details", help="Backfill periods/goals/penalties for started games.")
    details.add_argument(
        "--limit",
        type=int,
        default=DETAIL_CHUNK_SIZE,
        help=f"Maximum games to process in this run (default: {DETAIL_CHUNK_SIZE}).",
    )

    commands.add_parser("aggregate", help="Recompute player stats from detailed games.")

    purge = commands.add_parser("purge", help="Delete all games from Firestore.")
    purge.add_argument(
        "--yes",
        action="store_true",
        help="Confirm the irreversible delete.",
    )

    commands.add_parser("analyze", help="Summarize stored games and teams.")

    return parser.parse_args(argv)


def _authenticated_client(source: SourceConfig) -> SportNinjaClient:
    try:
        token = acquire_token(source)
    except TokenNotFound:
        logger.exception("Failed to get token.")
        raise SystemExit(1)
    return SportNinjaClient(token, source.api_base, site_url=source.site_url)


def _run_ingest(db, collections, source: SourceConfig) -> None:
    client = _authenticated_client(source)
    try:
        result = sync_active_schedule(client, db, collections, source.org_id)
    except (ApiError, NoActiveSchedule):
        logger.exception("Ingestion aborted.")
        raise SystemExit(1)
    logger.info(
        "Done: schedule=%s games_fetched=%s games_written=%s teams=%s rosters=%s players=%s roster_errors=%s",
        result.schedule_id,
        result.games_fetched,
        result.games_written,
        result.teams_written,
        result.rosters_fetched,
        result.players_written,
        result.roster_errors,
    )


def _run_details(db, collections, source: SourceConfig, limit: int) -> None:
    client = _authenticated_client(source)
    result = backfill_game_details(client, db, collections, limit=limit)
    logger.info(
        "Done: selected=%s completed=%s missing=%s failed=%s",
        result.selected,
        result.completed,
        result.missing,
        result.failed,
    )


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    args = _parse_args(argv)
    source = resolve_source_config()
    store = resolve_store_config()
    collections = collection_names(store.collection_prefix)
    db = create_client(store)

    logging.info("Starting %s (project=%s mode=%s)", args.command, store.project_id, store.mode.value)
    if args.command == "ingest":
        _run_ingest(db, collections, source)
    elif args.command == "details":
        _run_details(db, collections, source, args.limit)
    elif args.command == "aggregate":
        result = aggregate_stats(db, collections)
        logger.info(
            "Done: games=%s players=%s updated=%s skipped=%s",
            result.games,
            result.players,
            result.updated,
            result.skipped,
        )
    elif args.command == "purge":
        if not args.yes:
            raise SystemExit("Refusing to purge without --yes.")
        purge_games(db, collections)
    elif args.command == "analyze":
        log_report(analyze_games(db, collections))


if __name__ == "__main__":
    main()
