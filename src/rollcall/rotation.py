"""Cyclic rotation arithmetic.

A rotation is anchored on a start date (day 0, an arrival day) and repeats
every cycle_length days: the first days_on_base days are spent on base (the
first of them an arrival, the last a departure) and the rest at home.

Dates before the anchor resolve as if the cycle had always been running.
"""

from datetime import date

from src.rollcall.dates import days_between, parse_day
from src.rollcall.logging import get_logger
from src.rollcall.models import CycleDay, PersonalRotation, TeamRotation

log = get_logger(__name__)


def cycle_offset(day: date, start: date, cycle_length: int) -> int:
    """Zero-based index of day within the cycle anchored on start."""
    # Python's % already floors toward negative infinity
    return days_between(start, day) % cycle_length


def classify_offset(offset: int, days_on: int) -> CycleDay:
    """Map a cycle offset to the kind of day it is."""
    if offset == 0:
        return "arrival"
    if offset < days_on - 1:
        return "full"
    if offset == days_on - 1:
        return "departure"
    return "home"


def classify(day: date, schedule: TeamRotation) -> CycleDay | None:
    """Classify a date under a team rotation.

    Returns:
        "arrival", "full", "departure" or "home"; None only when the schedule
        itself is unusable (unparsable start_date, non-positive cycle length).
    """
    start = parse_day(schedule.start_date)
    cycle_length = schedule.effective_cycle_length
    if start is None or cycle_length <= 0:
        log.debug(
            "record_skipped",
            record="team_rotation",
            rotation_id=schedule.id,
            team_id=schedule.team_id,
            reason="unusable_schedule",
        )
        return None

    if cycle_length != schedule.days_on_base + schedule.days_at_home:
        log.warning(
            "rotation_cycle_mismatch",
            rotation_id=schedule.id,
            team_id=schedule.team_id,
            cycle_length=cycle_length,
            days_on_base=schedule.days_on_base,
            days_at_home=schedule.days_at_home,
        )

    offset = cycle_offset(day, start, cycle_length)
    if schedule.days_on_base >= cycle_length:
        # Fully resident rotation: never a departure or home day
        return "arrival" if offset == 0 else "full"
    return classify_offset(offset, schedule.days_on_base)


def rotation_applies(day: date, schedule: TeamRotation) -> bool:
    """Whether the rotation is in force on day (honors the optional end_date)."""
    if schedule.end_date is None:
        return True
    end = parse_day(schedule.end_date)
    if end is None:
        # An unreadable end date is ignored rather than voiding the rotation
        return True
    return day <= end


def classify_personal(day: date, rotation: PersonalRotation) -> CycleDay | None:
    """Classify a date under a person's own rotation.

    Returns None when the rotation is inactive or has no usable start date.
    """
    if not rotation.is_active:
        return None
    start = parse_day(rotation.start_date)
    if start is None:
        return None

    days_on = rotation.days_on if rotation.days_on > 0 else 1
    days_off = rotation.days_off if rotation.days_off > 0 else 1
    offset = cycle_offset(day, start, days_on + days_off)
    return classify_offset(offset, days_on)
