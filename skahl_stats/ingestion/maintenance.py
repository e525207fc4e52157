"""Bulk purge and inspection of stored games and teams."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from skahl_stats.ingestion.sportninja_parser import parse_timestamp, resolve_field
from skahl_stats.ingestion.writer import delete_all
from skahl_stats.models import Collections

logger = logging.getLogger(__name__)
UNKNOWN_SCHEDULE = "UNKNOWN_SCHEDULE"
UNKNOWN_SEASON = "UNKNOWN_SEASON"


@dataclass
class GamesReport:
    total_games: int = 0
    by_schedule: Counter = field(default_factory=Counter)
    by_season: Counter = field(default_factory=Counter)
    earliest: datetime | None = None
    latest: datetime | None = None
    games_without_date: int = 0
    total_teams: int = 0
    teams_by_season: Counter = field(default_factory=Counter)


def purge_games(db, collections: Collections) -> int:
    """Delete every document in the games collection. Irreversible.

    Sub-collections (periods/goals/penalties) are not removed by
    Firestore when their parent document is deleted.
    """

    logger.warning("Purging ALL games from Firestore (%s)...", collections.games)
    references = [snapshot.reference for snapshot in db.collection(collections.games).stream()]
    if not references:
        logger.info("No games to delete.")
        return 0
    logger.info("Found %s games. Deleting in batches...", len(references))
    deleted = delete_all(db, references)
    logger.info("Deleted %s games.", deleted)
    return deleted


def analyze_games(db, collections: Collections) -> GamesReport:
    report = GamesReport()

    for snapshot in db.collection(collections.games).stream():
        data = snapshot.to_dict() or {}
        report.total_games += 1
        schedule_id = resolve_field(data, "schedule_id", "scheduleId", "schedule_uid")
        report.by_schedule[str(schedule_id) if schedule_id else UNKNOWN_SCHEDULE] += 1
        season_id = resolve_field(data, "season_id", "seasonId")
        report.by_season[str(season_id) if season_id else UNKNOWN_SEASON] += 1

        started = parse_timestamp(resolve_field(data, "starts_at", "started_at"))
        if started is None:
            report.games_without_date += 1
            continue
        if report.earliest is None or started < report.earliest:
            report.earliest = started
        if report.latest is None or started > report.latest:
            report.latest = started

    for snapshot in db.collection(collections.teams).stream():
        data = snapshot.to_dict() or {}
        report.total_teams += 1
        season_id = resolve_field(data, "seasonId", "season_id")
        report.teams_by_season[str(season_id) if season_id else UNKNOWN_SEASON] += 1

    return report


def log_report(report: GamesReport) -> None:
    logger.info("Total games: %s", report.total_games)
    for schedule_id, count in report.by_schedule.most_common():
        logger.info("  schedule=%s games=%s", schedule_id, count)
    for season_id, count in report.by_season.most_common():
        logger.info("  season=%s games=%s", season_id, count)
    logger.info(
        "Earliest game: %s | Latest game: %s | Games w/o date: %s",
        report.earliest.isoformat() if report.earliest else "N/A",
        report.latest.isoformat() if report.latest else "N/A",
        report.games_without_date,
    )
    logger.info("Total teams: %s", report.total_teams)
    for season_id, count in report.teams_by_season.most_common():
        logger.info("  season=%s teams=%s", season_id, count)
