"""Canonical documents produced by the normalizer and stored in Firestore."""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_document(self, last_updated: datetime) -> dict[str, Any]:
        """Serialize for a merge write.

        Unset fields are left out so a sparse payload never erases values
        stored by an earlier, more complete one.
        """

        document = self.model_dump(by_alias=True, exclude_none=True)
        document["lastUpdated"] = last_updated
        return document


class ScheduleDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None
    season_id: Optional[str] = None


class TeamRefDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    score: Optional[int] = None


class GameDTO(_Document):
    id: str
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None
    home_team: Optional[TeamRefDTO] = Field(default=None, alias="homeTeam")
    visiting_team: Optional[TeamRefDTO] = Field(default=None, alias="visitingTeam")
    home_team_score: Optional[int] = None
    visiting_team_score: Optional[int] = None
    game_status_id: Optional[Union[int, str]] = None
    schedule_id: Optional[str] = Field(default=None, alias="scheduleId")
    schedule_name: Optional[str] = Field(default=None, alias="scheduleName")
    season_id: Optional[str] = Field(default=None, alias="seasonId")


class TeamDTO(_Document):
    id: str
    name: Optional[str] = None
    league: Optional[str] = None
    division: Optional[str] = None
    image: Optional[str] = None
    schedule_id: Optional[str] = Field(default=None, alias="scheduleId")
    season_id: Optional[str] = Field(default=None, alias="seasonId")


class PlayerDTO(_Document):
    id: str
    team_id: str = Field(alias="teamId")
    roster_id: Optional[str] = Field(default=None, alias="rosterId")
    name_first: Optional[str] = None
    name_last: Optional[str] = None
    jersey_number: Optional[str] = None
    position: Optional[str] = None


class PlayerStatsDTO(BaseModel):
    goals: int = 0
    assists: int = 0
    points: int = 0
    pim: int = 0
