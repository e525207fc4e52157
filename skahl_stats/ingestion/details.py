"""Backfill periods, goals and penalties for games that have started."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from google.cloud.firestore_v1.base_query import FieldFilter

from skahl_stats.ingestion.sportninja_client import SportNinjaClient
from skahl_stats.ingestion.sportninja_parser import resolve_field, to_iso_z
from skahl_stats.models import (
    GOALS_COLLECTION,
    PENALTIES_COLLECTION,
    PERIODS_COLLECTION,
    Collections,
)

logger = logging.getLogger(__name__)
DETAIL_CHUNK_SIZE = 50
INTER_GAME_DELAY_SECONDS = 0.5

# Sub-collection name -> upstream keys, in precedence order.
DETAIL_SOURCES = {
    PERIODS_COLLECTION: ("periods",),
    GOALS_COLLECTION: ("goals",),
    PENALTIES_COLLECTION: ("offenses", "penalties"),
}


class MissingGameDetail(LookupError):
    pass


@dataclass
class BackfillResult:
    selected: int = 0
    completed: int = 0
    missing: int = 0
    failed: int = 0


def select_games_needing_details(db, collections: Collections, now: datetime, limit: int = DETAIL_CHUNK_SIZE) -> list[Any]:
    """Started games whose ``has_details`` is not true, at most ``limit``.

    ``has_details`` is filtered here rather than in the query: an
    inequality filter never matches documents that lack the field, and
    freshly ingested games do.
    """

    query = db.collection(collections.games).where(filter=FieldFilter("starts_at", "<", to_iso_z(now)))
    selected = []
    for snapshot in query.stream():
        data = snapshot.to_dict() or {}
        if data.get("has_details") is True:
            continue
        selected.append(snapshot)
        if len(selected) >= limit:
            break
    return selected


def _score_fields(detail: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for key in ("home_team_score", "visiting_team_score", "game_status_id"):
        value = detail.get(key)
        if value is not None:
            fields[key] = value
    if "home_team_score" in fields:
        fields["homeTeam"] = {"score": fields["home_team_score"]}
    if "visiting_team_score" in fields:
        fields["visitingTeam"] = {"score": fields["visiting_team_score"]}
    return fields


def store_game_detail(db, game_reference, detail: dict[str, Any], now: datetime) -> dict[str, int]:
    """Write sub-records and the ``has_details`` marker in one atomic batch."""

    batch = db.batch()
    counts: dict[str, int] = {}
    for collection_name, upstream_keys in DETAIL_SOURCES.items():
        items = resolve_field(detail, *upstream_keys)
        counts[collection_name] = 0
        if not isinstance(items, list):
            continue
        sub_collection = game_reference.collection(collection_name)
        for item in items:
            item_id = item.get("id") if isinstance(item, dict) else None
            if item_id is None:
                continue
            batch.set(sub_collection.document(str(item_id)), item, merge=True)
            counts[collection_name] += 1

    game_update = {"has_details": True, "lastDetailUpdate": now}
    game_update.update(_score_fields(detail))
    batch.set(game_reference, game_update, merge=True)
    batch.commit()
    return counts


def backfill_game_details(
    client: SportNinjaClient,
    db,
    collections: Collections,
    now: datetime | None = None,
    limit: int = DETAIL_CHUNK_SIZE,
    delay_seconds: float = INTER_GAME_DELAY_SECONDS,
) -> BackfillResult:
    now = now or datetime.now(timezone.utc)
    result = BackfillResult()

    logger.info("Querying for games that started before %s and missing details...", to_iso_z(now))
    snapshots = select_games_needing_details(db, collections, now, limit)
    result.selected = len(snapshots)
    logger.info("Found %s games to process.", result.selected)

    for index, snapshot in enumerate(snapshots):
        game_id = snapshot.id
        logger.info("Processing game %s...", game_id)
        try:
            detail = client.fetch_game_detail(game_id)
            if not detail:
                raise MissingGameDetail(f"No data returned for game {game_id}")
            counts = store_game_detail(db, snapshot.reference, detail, now)
            result.completed += 1
            logger.info(
                "Saved details for game %s periods=%s goals=%s penalties=%s",
                game_id,
                counts[PERIODS_COLLECTION],
                counts[GOALS_COLLECTION],
                counts[PENALTIES_COLLECTION],
            )
        except MissingGameDetail as exc:
            result.missing += 1
            logger.warning("%s; leaving it for a later run", exc)
        except Exception:
            result.failed += 1
            logger.exception("Error processing game %s", game_id)

        if index < len(snapshots) - 1:
            time.sleep(delay_seconds)

    return result
