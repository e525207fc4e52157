"""Sync the active SportNinja schedule into Firestore."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from skahl_stats.ingestion.schema import PlayerDTO, ScheduleDTO, TeamDTO
from skahl_stats.ingestion.schedules import select_active_schedule
from skahl_stats.ingestion.sportninja_client import ApiError, SportNinjaClient
from skahl_stats.ingestion.sportninja_parser import (
    extract_teams,
    normalize_game,
    normalize_player,
    normalize_schedule,
    resolve_field,
    roster_schedule_id,
)
from skahl_stats.ingestion.writer import game_writes, player_writes, team_writes, write_all
from skahl_stats.models import Collections

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    schedule_id: str | None = None
    games_fetched: int = 0
    games_written: int = 0
    teams_written: int = 0
    rosters_fetched: int = 0
    players_written: int = 0
    roster_errors: int = 0


def _rosters_for_schedule(raw_rosters: list[Any], schedule: ScheduleDTO) -> list[Any]:
    """Keep the rosters tied to the active schedule.

    Rosters that carry no schedule reference at all are all kept.
    """

    tagged = [roster for roster in raw_rosters if roster_schedule_id(roster) is not None]
    if not tagged:
        return raw_rosters
    return [roster for roster in tagged if roster_schedule_id(roster) == schedule.id]


def _fetch_team_players(client: SportNinjaClient, team: TeamDTO, schedule: ScheduleDTO, result: SyncResult) -> list[PlayerDTO]:
    raw_rosters = _rosters_for_schedule(client.fetch_team_rosters(team.id), schedule)
    players: list[PlayerDTO] = []
    for raw_roster in raw_rosters:
        roster_id = resolve_field(raw_roster, "id")
        if roster_id is None:
            continue
        roster_id = str(roster_id)
        result.rosters_fetched += 1
        for raw_player in client.fetch_roster_players(team.id, roster_id):
            player = normalize_player(raw_player, team.id, roster_id)
            if player is not None:
                players.append(player)
    return players


def sync_active_schedule(
    client: SportNinjaClient,
    db,
    collections: Collections,
    org_id: str,
    now: datetime | None = None,
) -> SyncResult:
    """Fetch, normalize, and upsert games, teams and rosters for the active schedule.

    Schedule discovery errors propagate; a failing team roster is logged
    and skipped.
    """

    now = now or datetime.now(timezone.utc)
    result = SyncResult()

    logger.info("Fetching schedules for organization=%s", org_id)
    schedules = [
        schedule
        for schedule in (normalize_schedule(raw) for raw in client.fetch_schedules(org_id))
        if schedule is not None
    ]
    logger.info("Found %s schedules.", len(schedules))
    if not any(schedule.season_id for schedule in schedules):
        logger.warning("No schedule carries a season_id; seasonId will be left unset")

    schedule = select_active_schedule(schedules, now)
    result.schedule_id = schedule.id
    logger.info("Targeting schedule %s (%s)", schedule.name, schedule.id)

    raw_games = client.fetch_schedule_games(schedule.id)
    result.games_fetched = len(raw_games)
    games = [game for game in (normalize_game(raw, schedule) for raw in raw_games) if game is not None]
    if len(games) != len(raw_games):
        logger.warning("Skipped %s games without an id", len(raw_games) - len(games))
    result.games_written = write_all(db, game_writes(db, collections, games, now)).written
    logger.info("Saved %s games for schedule=%s", result.games_written, schedule.id)

    teams = extract_teams(raw_games, schedule)
    result.teams_written = write_all(db, team_writes(db, collections, teams, now)).written
    logger.info("Saved %s teams discovered from games", result.teams_written)

    for team in teams:
        try:
            players = _fetch_team_players(client, team, schedule, result)
            written = write_all(db, player_writes(db, collections, players, now)).written
        except ApiError as exc:
            result.roster_errors += 1
            logger.warning("Skipping roster for team=%s (%s): %s", team.name, team.id, exc)
            continue
        except Exception:
            result.roster_errors += 1
            logger.exception("Error syncing roster for team=%s (%s)", team.name, team.id)
            continue
        result.players_written += written
        logger.info("Saved %s players for team=%s (%s)", written, team.name, team.id)

    return result
