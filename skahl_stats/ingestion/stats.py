"""Recompute per-player goals, assists, points and penalty minutes.

Totals are rebuilt from scratch on every run from the detail records of
every game with ``has_details == true``. Games played is not derived:
only scoresheet appearances are known, not full game rosters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from google.cloud.firestore_v1.base_query import FieldFilter

from skahl_stats.ingestion.schema import PlayerStatsDTO
from skahl_stats.ingestion.writer import write_all
from skahl_stats.models import GOALS_COLLECTION, PENALTIES_COLLECTION, Collections, roster_ref

logger = logging.getLogger(__name__)

PlayerKey = tuple[str, str]


class RosterNotFound(LookupError):
    pass


@dataclass
class AggregateResult:
    games: int = 0
    players: int = 0
    updated: int = 0
    skipped: int = 0


def _as_id(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _minutes(penalty: dict[str, Any]) -> int:
    details = penalty.get("penalty")
    amount = details.get("amount") if isinstance(details, dict) else None
    try:
        return int(amount or 0)
    except (TypeError, ValueError):
        return 0


def _assist_player_id(assist: Any) -> str | None:
    if not isinstance(assist, dict):
        return None
    player = assist.get("player")
    if isinstance(player, dict) and player.get("id") is not None:
        return _as_id(player.get("id"))
    return _as_id(assist.get("player_id"))


def accumulate_game(
    totals: dict[PlayerKey, PlayerStatsDTO],
    goals: Iterable[dict[str, Any]],
    penalties: Iterable[dict[str, Any]],
) -> None:
    """Fold one game's goals and penalties into ``totals``."""

    def stats_for(player_id: str, team_id: str) -> PlayerStatsDTO:
        key = (player_id, team_id)
        if key not in totals:
            totals[key] = PlayerStatsDTO()
        return totals[key]

    for goal in goals:
        shot = goal.get("shot") if isinstance(goal.get("shot"), dict) else {}
        team_id = _as_id(shot.get("team_id"))
        scorer_id = _as_id(shot.get("player_id"))
        if team_id is None:
            continue
        if scorer_id is not None:
            scorer = stats_for(scorer_id, team_id)
            scorer.goals += 1
            scorer.points += 1
        for assist in goal.get("assists") or []:
            helper_id = _assist_player_id(assist)
            if helper_id is None:
                continue
            helper = stats_for(helper_id, team_id)
            helper.assists += 1
            helper.points += 1

    for penalty in penalties:
        player_id = _as_id(penalty.get("player_id"))
        team_id = _as_id(penalty.get("team_id"))
        if player_id is None or team_id is None:
            continue
        stats_for(player_id, team_id).pim += _minutes(penalty)


def _sub_documents(game_reference, name: str) -> list[dict[str, Any]]:
    return [snapshot.to_dict() or {} for snapshot in game_reference.collection(name).stream()]


def collect_player_totals(db, collections: Collections) -> tuple[dict[PlayerKey, PlayerStatsDTO], int]:
    totals: dict[PlayerKey, PlayerStatsDTO] = {}
    games = 0
    query = db.collection(collections.games).where(filter=FieldFilter("has_details", "==", True))
    for snapshot in query.stream():
        games += 1
        accumulate_game(
            totals,
            _sub_documents(snapshot.reference, GOALS_COLLECTION),
            _sub_documents(snapshot.reference, PENALTIES_COLLECTION),
        )
    return totals, games


def locate_roster_document(db, collections: Collections, player_id: str, team_id: str):
    reference = roster_ref(db, collections, team_id, player_id)
    if not reference.get().exists:
        raise RosterNotFound(f"No roster document for player={player_id} team={team_id}")
    return reference


def aggregate_stats(db, collections: Collections, now: datetime | None = None) -> AggregateResult:
    now = now or datetime.now(timezone.utc)
    result = AggregateResult()

    logger.info("Fetching games with details...")
    totals, result.games = collect_player_totals(db, collections)
    result.players = len(totals)
    logger.info("Aggregated stats for %s players across %s games.", result.players, result.games)

    writes = []
    for (player_id, team_id), stats in totals.items():
        try:
            reference = locate_roster_document(db, collections, player_id, team_id)
        except RosterNotFound as exc:
            # Players no longer on a roster are not recreated as stats-only documents.
            result.skipped += 1
            logger.debug("%s; skipping", exc)
            continue
        writes.append((reference, {"stats": {**stats.model_dump(), "lastUpdated": now}}))

    result.updated = write_all(db, writes).written
    logger.info("Updated %s player documents (skipped %s without roster).", result.updated, result.skipped)
    return result
