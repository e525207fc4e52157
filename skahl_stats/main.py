from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException

from skahl_stats import queries
from skahl_stats.db import get_collections, get_db
from skahl_stats.models import Collections
from skahl_stats.schemas import (
    GameDetailOut,
    GameOut,
    PlayerOut,
    StandingOut,
    TeamDetailOut,
    TeamOut,
)

app = FastAPI(title="SKAHL Stats")
logger = logging.getLogger(__name__)


@app.get("/api/games", response_model=list[GameOut])
def api_games(
    start: str | None = None,
    end: str | None = None,
    team_id: str | None = None,
    limit: int | None = None,
    db=Depends(get_db),
    collections: Collections = Depends(get_collections),
):
    if limit is not None and limit < 1:
        raise HTTPException(status_code=400, detail="limit must be >= 1")
    games = queries.list_games(db, collections, start=start, end=end, team_id=team_id, limit=limit)
    return [GameOut.model_validate(game) for game in games]


@app.get("/api/games/{game_id}", response_model=GameDetailOut)
def api_game(game_id: str, db=Depends(get_db), collections: Collections = Depends(get_collections)):
    game = queries.get_game(db, collections, game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")
    return GameDetailOut.model_validate(game)


@app.get("/api/teams", response_model=list[TeamOut])
def api_teams(q: str | None = None, db=Depends(get_db), collections: Collections = Depends(get_collections)):
    term = (q or "").strip()
    teams = queries.search_teams(db, collections, term) if term else queries.list_teams(db, collections)
    return [TeamOut.model_validate(team) for team in teams]


@app.get("/api/teams/{team_id}", response_model=TeamDetailOut)
def api_team(team_id: str, db=Depends(get_db), collections: Collections = Depends(get_collections)):
    team = queries.get_team(db, collections, team_id)
    if team is None:
        raise HTTPException(status_code=404, detail="Team not found")
    return TeamDetailOut.model_validate(team)


@app.get("/api/teams/{team_id}/roster/{player_id}", response_model=PlayerOut)
def api_player(
    team_id: str,
    player_id: str,
    db=Depends(get_db),
    collections: Collections = Depends(get_collections),
):
    player = queries.get_player(db, collections, team_id, player_id)
    if player is None:
        raise HTTPException(status_code=404, detail="Player not found")
    return PlayerOut.model_validate(player)


@app.get("/api/players/search", response_model=list[PlayerOut])
def api_player_search(q: str, db=Depends(get_db)):
    term = q.strip()
    if not term:
        return []
    return [PlayerOut.model_validate(player) for player in queries.search_players(db, term)]


@app.get("/api/standings", response_model=list[StandingOut])
def api_standings(
    league: str | None = None,
    division: str | None = None,
    db=Depends(get_db),
    collections: Collections = Depends(get_collections),
):
    rows = queries.standings(db, collections, league=league, division=division)
    logger.debug("Standings computed rows=%s league=%s division=%s", len(rows), league, division)
    return [StandingOut.model_validate(row) for row in rows]
