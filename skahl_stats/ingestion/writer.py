"""Batched merge writes into Firestore."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator

from skahl_stats.ingestion.schema import GameDTO, PlayerDTO, TeamDTO
from skahl_stats.models import Collections, game_ref, roster_ref, team_ref

logger = logging.getLogger(__name__)

# Firestore allows 500 operations per batch; stay well under it.
MAX_BATCH_WRITES = 400


@dataclass
class WriteResult:
    written: int = 0
    batches: int = 0


def write_all(db, writes: Iterable[tuple[Any, dict[str, Any]]]) -> WriteResult:
    """Merge-write every ``(reference, data)`` pair, committing every 400 writes.

    Batches commit in order, so an interrupted run leaves a written prefix
    and an untouched remainder. Re-running is safe: writes are keyed by
    upstream id and merged.
    """

    result = WriteResult()
    batch = db.batch()
    pending = 0
    for reference, data in writes:
        batch.set(reference, data, merge=True)
        pending += 1
        if pending >= MAX_BATCH_WRITES:
            batch.commit()
            result.written += pending
            result.batches += 1
            logger.debug("Committed batch of %s writes (total=%s)", pending, result.written)
            batch = db.batch()
            pending = 0
    if pending:
        batch.commit()
        result.written += pending
        result.batches += 1
    return result


def delete_all(db, references: Iterable[Any]) -> int:
    deleted = 0
    batch = db.batch()
    pending = 0
    for reference in references:
        batch.delete(reference)
        pending += 1
        if pending >= MAX_BATCH_WRITES:
            batch.commit()
            deleted += pending
            logger.info("... deleted %s", deleted)
            batch = db.batch()
            pending = 0
    if pending:
        batch.commit()
        deleted += pending
    return deleted


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def game_writes(db, collections: Collections, games: Iterable[GameDTO], now: datetime | None = None) -> Iterator[tuple[Any, dict[str, Any]]]:
    stamp = now or _utcnow()
    for game in games:
        yield game_ref(db, collections, game.id), game.to_document(stamp)


def team_writes(db, collections: Collections, teams: Iterable[TeamDTO], now: datetime | None = None) -> Iterator[tuple[Any, dict[str, Any]]]:
    stamp = now or _utcnow()
    for team in teams:
        yield team_ref(db, collections, team.id), team.to_document(stamp)


def player_writes(db, collections: Collections, players: Iterable[PlayerDTO], now: datetime | None = None) -> Iterator[tuple[Any, dict[str, Any]]]:
    stamp = now or _utcnow()
    for player in players:
        yield roster_ref(db, collections, player.team_id, player.id), player.to_document(stamp)
