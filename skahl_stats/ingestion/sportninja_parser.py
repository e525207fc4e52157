"""Normalize SportNinja payloads into canonical DTOs.

Upstream field names drifted over time, so every logical field is read
through an ordered alias list. Missing values come back as None; nothing
here raises on an unexpected shape.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

from skahl_stats.ingestion.schema import GameDTO, PlayerDTO, ScheduleDTO, TeamDTO, TeamRefDTO

START_ALIASES = ("starts_at", "started_at")
END_ALIASES = ("ends_at", "ended_at")
SCHEDULE_ID_ALIASES = ("schedule_id", "schedule_uid")
SEASON_ID_ALIASES = ("season_id", "seasonId")
HOME_TEAM_ALIASES = ("homeTeam", "home_team")
VISITING_TEAM_ALIASES = ("visitingTeam", "visiting_team")
HOME_TEAM_ID_ALIASES = ("home_team_id",)
VISITING_TEAM_ID_ALIASES = ("visiting_team_id",)
LEAGUE_ALIASES = ("league", "league_name")
DIVISION_ALIASES = ("division", "division_name")
IMAGE_ALIASES = ("image", "logo", "image_url")
FIRST_NAME_ALIASES = ("name_first", "first_name")
LAST_NAME_ALIASES = ("name_last", "last_name")
JERSEY_ALIASES = ("jersey_number", "player_number")
POSITION_ALIASES = ("position", "player_type")
PLAYER_ID_ALIASES = ("id", "player_id")


def resolve_field(payload: Any, *aliases: str) -> Any:
    """Return the first non-None value among ``aliases``, else None."""

    if not isinstance(payload, dict):
        return None
    for alias in aliases:
        value = payload.get(alias)
        if value is not None:
            return value
    return None


def _safe_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _safe_str(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _label(value: Any) -> str | None:
    """Plain string for fields that arrive either as text or as ``{"name": ...}``."""

    if isinstance(value, dict):
        return _safe_str(value.get("name"))
    return _safe_str(value)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an upstream ISO date or datetime into an aware UTC datetime."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso_z(value: datetime) -> str:
    """Render a datetime like ``2024-05-15T19:00:00.000Z``."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _canonical_timestamp(value: Any) -> str | None:
    parsed = parse_timestamp(value)
    if parsed is not None:
        return to_iso_z(parsed)
    return _safe_str(value)


def normalize_schedule(raw: Any) -> Optional[ScheduleDTO]:
    schedule_id = _safe_str(resolve_field(raw, "id"))
    if schedule_id is None:
        return None
    return ScheduleDTO(
        id=schedule_id,
        name=_safe_str(resolve_field(raw, "name")),
        starts_at=_safe_str(resolve_field(raw, *START_ALIASES)),
        ends_at=_safe_str(resolve_field(raw, *END_ALIASES)),
        season_id=_safe_str(resolve_field(raw, *SEASON_ID_ALIASES)),
    )


def _team_ref(raw_game: dict, object_aliases: tuple[str, ...], id_aliases: tuple[str, ...], score: int | None) -> Optional[TeamRefDTO]:
    team = resolve_field(raw_game, *object_aliases)
    team = team if isinstance(team, dict) else {}
    team_id = _safe_str(team.get("id")) or _safe_str(resolve_field(raw_game, *id_aliases))
    if team_id is None:
        return None
    team_score = _safe_int(team.get("score"))
    return TeamRefDTO(
        id=team_id,
        name=_safe_str(team.get("name")),
        score=team_score if team_score is not None else score,
    )


def normalize_game(raw: Any, schedule: Optional[ScheduleDTO] = None) -> Optional[GameDTO]:
    """Map one upstream game onto the canonical game document.

    The active schedule's id, name and season are copied onto the game so
    readers never have to join against schedules.
    """

    game_id = _safe_str(resolve_field(raw, "id"))
    if game_id is None:
        return None

    home_score = _safe_int(resolve_field(raw, "home_team_score"))
    visiting_score = _safe_int(resolve_field(raw, "visiting_team_score"))

    if schedule is not None:
        schedule_id = schedule.id
        schedule_name = schedule.name or None
    else:
        schedule_id = _safe_str(resolve_field(raw, *SCHEDULE_ID_ALIASES))
        schedule_name = _safe_str(resolve_field(raw, "schedule_name"))
    season_id = _safe_str(resolve_field(raw, *SEASON_ID_ALIASES))
    if season_id is None and schedule is not None:
        season_id = schedule.season_id

    status = resolve_field(raw, "game_status_id")
    if isinstance(status, (dict, list, bool)):
        status = None
    elif status is not None and not isinstance(status, (int, str)):
        status = str(status)

    return GameDTO(
        id=game_id,
        starts_at=_canonical_timestamp(resolve_field(raw, *START_ALIASES)),
        ends_at=_canonical_timestamp(resolve_field(raw, *END_ALIASES)),
        home_team=_team_ref(raw, HOME_TEAM_ALIASES, HOME_TEAM_ID_ALIASES, home_score),
        visiting_team=_team_ref(raw, VISITING_TEAM_ALIASES, VISITING_TEAM_ID_ALIASES, visiting_score),
        home_team_score=home_score,
        visiting_team_score=visiting_score,
        game_status_id=status,
        schedule_id=schedule_id,
        schedule_name=schedule_name,
        season_id=season_id,
    )


def normalize_team(raw: Any, schedule: Optional[ScheduleDTO] = None) -> Optional[TeamDTO]:
    team_id = _safe_str(resolve_field(raw, "id"))
    if team_id is None:
        return None
    return TeamDTO(
        id=team_id,
        name=_safe_str(resolve_field(raw, "name")),
        league=_label(resolve_field(raw, *LEAGUE_ALIASES)),
        division=_label(resolve_field(raw, *DIVISION_ALIASES)),
        image=_label(resolve_field(raw, *IMAGE_ALIASES)),
        schedule_id=schedule.id if schedule is not None else None,
        season_id=schedule.season_id if schedule is not None else None,
    )


def extract_teams(raw_games: Iterable[Any], schedule: Optional[ScheduleDTO] = None) -> list[TeamDTO]:
    """Collect the distinct teams referenced by home/visiting slots, first seen wins."""

    seen: set[str] = set()
    teams: list[TeamDTO] = []
    for raw_game in raw_games:
        for aliases in (HOME_TEAM_ALIASES, VISITING_TEAM_ALIASES):
            team = normalize_team(resolve_field(raw_game, *aliases), schedule)
            if team is None or team.id in seen:
                continue
            seen.add(team.id)
            teams.append(team)
    return teams


def normalize_player(raw: Any, team_id: str, roster_id: Optional[str] = None) -> Optional[PlayerDTO]:
    player_id = _safe_str(resolve_field(raw, *PLAYER_ID_ALIASES))
    if player_id is None:
        return None
    return PlayerDTO(
        id=player_id,
        team_id=team_id,
        roster_id=roster_id,
        name_first=_safe_str(resolve_field(raw, *FIRST_NAME_ALIASES)),
        name_last=_safe_str(resolve_field(raw, *LAST_NAME_ALIASES)),
        jersey_number=_safe_str(resolve_field(raw, *JERSEY_ALIASES)),
        position=_label(resolve_field(raw, *POSITION_ALIASES)),
    )


def roster_schedule_id(raw_roster: Any) -> str | None:
    return _safe_str(resolve_field(raw_roster, *SCHEDULE_ID_ALIASES))
