"""Read-side queries over the stored games, teams and rosters."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from skahl_stats.models import (
    GAME_DETAIL_COLLECTIONS,
    ROSTER_COLLECTION,
    Collections,
    game_ref,
    roster_ref,
    team_ref,
)

PREFIX_SEARCH_END = "\uf8ff"
SEARCH_LIMIT = 5


def _document(snapshot) -> dict[str, Any]:
    data = snapshot.to_dict() or {}
    data.setdefault("id", snapshot.id)
    return data


def _prefix_query(collection, field_name: str, term: str, limit: int):
    return (
        collection.where(filter=FieldFilter(field_name, ">=", term))
        .where(filter=FieldFilter(field_name, "<=", term + PREFIX_SEARCH_END))
        .limit(limit)
    )


def _involves_team(game: dict[str, Any], team_id: str) -> bool:
    for slot in ("homeTeam", "visitingTeam"):
        team = game.get(slot)
        if isinstance(team, dict) and str(team.get("id")) == team_id:
            return True
    return False


def list_games(
    db,
    collections: Collections,
    start: str | None = None,
    end: str | None = None,
    team_id: str | None = None,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    query = db.collection(collections.games)
    if start:
        query = query.where(filter=FieldFilter("starts_at", ">=", start))
    if end:
        query = query.where(filter=FieldFilter("starts_at", "<", end))
    query = query.order_by("starts_at", direction=firestore.Query.ASCENDING)

    games: list[dict[str, Any]] = []
    for snapshot in query.stream():
        game = _document(snapshot)
        # No index on team ids: filter after fetching.
        if team_id and not _involves_team(game, team_id):
            continue
        games.append(game)
        if limit is not None and len(games) >= limit:
            break
    return games


def get_game(db, collections: Collections, game_id: str) -> dict[str, Any] | None:
    reference = game_ref(db, collections, game_id)
    snapshot = reference.get()
    if not snapshot.exists:
        return None
    game = _document(snapshot)
    for name in GAME_DETAIL_COLLECTIONS:
        game[name] = [_document(item) for item in reference.collection(name).stream()]
    return game


def list_teams(db, collections: Collections) -> list[dict[str, Any]]:
    teams = [_document(snapshot) for snapshot in db.collection(collections.teams).stream()]
    return sorted(teams, key=lambda team: str(team.get("name") or ""))


def search_teams(db, collections: Collections, term: str, limit: int = SEARCH_LIMIT) -> list[dict[str, Any]]:
    query = _prefix_query(db.collection(collections.teams), "name", term, limit)
    return [_document(snapshot) for snapshot in query.stream()]


def search_players(db, term: str, limit: int = SEARCH_LIMIT) -> list[dict[str, Any]]:
    query = _prefix_query(db.collection_group(ROSTER_COLLECTION), "name_last", term, limit)
    return [_document(snapshot) for snapshot in query.stream()]


def get_team(db, collections: Collections, team_id: str) -> dict[str, Any] | None:
    reference = team_ref(db, collections, team_id)
    snapshot = reference.get()
    if not snapshot.exists:
        return None
    team = _document(snapshot)
    roster = [_document(player) for player in reference.collection(ROSTER_COLLECTION).stream()]
    team["roster"] = sorted(
        roster,
        key=lambda player: (str(player.get("name_last") or ""), str(player.get("name_first") or "")),
    )
    return team


def get_player(db, collections: Collections, team_id: str, player_id: str) -> dict[str, Any] | None:
    snapshot = roster_ref(db, collections, team_id, player_id).get()
    if not snapshot.exists:
        return None
    return _document(snapshot)


@dataclass
class StandingRow:
    id: str
    name: str
    league: str | None = None
    division: str | None = None
    gp: int = 0
    w: int = 0
    l: int = 0
    t: int = 0
    gf: int = 0
    ga: int = 0
    pts: int = 0


def _score(team: Any) -> int | None:
    if not isinstance(team, dict) or team.get("score") is None:
        return None
    try:
        return int(team["score"])
    except (TypeError, ValueError):
        return None


def compute_standings(teams: Iterable[dict[str, Any]], games: Iterable[dict[str, Any]]) -> list[StandingRow]:
    """Wins are worth 2 points, ties 1. Games without both scores are unplayed."""

    metadata = {str(team.get("id")): team for team in teams}
    rows: dict[str, StandingRow] = {}

    def row_for(team: dict[str, Any]) -> StandingRow:
        team_id = str(team.get("id"))
        if team_id not in rows:
            meta = metadata.get(team_id, {})
            rows[team_id] = StandingRow(
                id=team_id,
                name=str(team.get("name") or meta.get("name") or ""),
                league=meta.get("league"),
                division=meta.get("division"),
            )
        return rows[team_id]

    for game in games:
        home_team = game.get("homeTeam")
        visiting_team = game.get("visitingTeam")
        home_score = _score(home_team)
        visiting_score = _score(visiting_team)
        if home_score is None or visiting_score is None:
            continue
        home = row_for(home_team)
        visitor = row_for(visiting_team)
        home.gp += 1
        visitor.gp += 1
        home.gf += home_score
        home.ga += visiting_score
        visitor.gf += visiting_score
        visitor.ga += home_score
        if home_score > visiting_score:
            home.w += 1
            home.pts += 2
            visitor.l += 1
        elif visiting_score > home_score:
            visitor.w += 1
            visitor.pts += 2
            home.l += 1
        else:
            home.t += 1
            visitor.t += 1
            home.pts += 1
            visitor.pts += 1

    return sorted(rows.values(), key=lambda row: (-row.pts, -row.w, -(row.gf - row.ga)))


def standings(
    db,
    collections: Collections,
    league: str | None = None,
    division: str | None = None,
) -> list[dict[str, Any]]:
    teams = [_document(snapshot) for snapshot in db.collection(collections.teams).stream()]
    games = [_document(snapshot) for snapshot in db.collection(collections.games).stream()]
    rows = compute_standings(teams, games)
    if league:
        rows = [row for row in rows if row.league == league]
    if division:
        rows = [row for row in rows if row.division == division]
    return [asdict(row) for row in rows]
