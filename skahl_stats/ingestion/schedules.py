from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from skahl_stats.ingestion.schema import ScheduleDTO
from skahl_stats.ingestion.sportninja_parser import parse_timestamp

logger = logging.getLogger(__name__)


class NoActiveSchedule(LookupError):
    pass


def _is_active(schedule: ScheduleDTO, now: datetime) -> bool:
    starts_at = parse_timestamp(schedule.starts_at)
    ends_at = parse_timestamp(schedule.ends_at)
    if starts_at is None or ends_at is None:
        logger.debug("Schedule %s has no usable date range, ignoring", schedule.id)
        return False
    return starts_at <= now <= ends_at


def active_schedules(schedules: Sequence[ScheduleDTO], now: datetime) -> list[ScheduleDTO]:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return [schedule for schedule in schedules if _is_active(schedule, now)]


def select_active_schedule(schedules: Sequence[ScheduleDTO], now: datetime) -> ScheduleDTO:
    """Pick the schedule whose date range contains ``now``.

    Overlaps are resolved by upstream list order and reported, not
    second-guessed.
    """

    matches = active_schedules(schedules, now)
    if not matches:
        raise NoActiveSchedule(
            f"No schedule covers {now.isoformat()} (checked {len(schedules)} schedules)"
        )
    if len(matches) > 1:
        logger.warning(
            "Multiple active schedules match %s: %s. Using first in upstream order: %s",
            now.isoformat(),
            ", ".join(f"{s.name} ({s.id})" for s in matches),
            matches[0].id,
        )
    return matches[0]
