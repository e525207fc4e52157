from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import Any, Optional, Union


class _Out(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TeamRefOut(_Out):
    id: str
    name: str = ""
    score: Optional[int] = None


class GameOut(_Out):
    id: str
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None
    homeTeam: Optional[TeamRefOut] = None
    visitingTeam: Optional[TeamRefOut] = None
    home_team_score: Optional[int] = None
    visiting_team_score: Optional[int] = None
    game_status_id: Optional[Union[int, str]] = None
    scheduleId: Optional[str] = None
    scheduleName: Optional[str] = None
    seasonId: Optional[str] = None
    has_details: bool = False
    lastUpdated: Optional[datetime] = None


class GameDetailOut(GameOut):
    periods: list[dict[str, Any]] = []
    goals: list[dict[str, Any]] = []
    penalties: list[dict[str, Any]] = []


class PlayerStatsOut(_Out):
    goals: int = 0
    assists: int = 0
    points: int = 0
    pim: int = 0
    lastUpdated: Optional[datetime] = None


class PlayerOut(_Out):
    id: str
    teamId: Optional[str] = None
    rosterId: Optional[str] = None
    name_first: Optional[str] = None
    name_last: Optional[str] = None
    jersey_number: Optional[str] = None
    position: Optional[str] = None
    stats: Optional[PlayerStatsOut] = None


class TeamOut(_Out):
    id: str
    name: str = ""
    league: Optional[str] = None
    division: Optional[str] = None
    image: Optional[str] = None
    seasonId: Optional[str] = None


class TeamDetailOut(TeamOut):
    roster: list[PlayerOut] = []


class StandingOut(_Out):
    id: str
    name: str
    league: Optional[str] = None
    division: Optional[str] = None
    gp: int
    w: int
    l: int
    t: int
    gf: int
    ga: int
    pts: int
