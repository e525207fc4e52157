"""Document store layout: collection names and document references."""

from __future__ import annotations

from dataclasses import dataclass

ROSTER_COLLECTION = "roster"
PERIODS_COLLECTION = "periods"
GOALS_COLLECTION = "goals"
PENALTIES_COLLECTION = "penalties"
GAME_DETAIL_COLLECTIONS = (PERIODS_COLLECTION, GOALS_COLLECTION, PENALTIES_COLLECTION)


@dataclass(frozen=True)
class Collections:
    games: str = "games"
    teams: str = "teams"


def collection_names(prefix: str | None = None) -> Collections:
    """Top-level collection names, namespaced as ``{prefix}_games`` when a prefix is set."""

    if not prefix:
        return Collections()
    return Collections(games=f"{prefix}_games", teams=f"{prefix}_teams")


def game_ref(db, collections: Collections, game_id: str):
    return db.collection(collections.games).document(game_id)


def team_ref(db, collections: Collections, team_id: str):
    return db.collection(collections.teams).document(team_id)


def roster_ref(db, collections: Collections, team_id: str, player_id: str):
    return team_ref(db, collections, team_id).collection(ROSTER_COLLECTION).document(player_id)
