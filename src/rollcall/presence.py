"""Point-in-time presence.

Decides whether a resolved EffectiveAvailability counts as "present" at a given
minute of the day. This is the single rule used for headcounts.

Block enforcement is asymmetric: approved absences and hourly blockages (which
have no approval step) remove the person for their window, while pending or
rejected absence requests stay visible on the availability but never remove
anyone.
"""

from collections.abc import Iterable
from datetime import date, datetime, time

from src.rollcall.dates import MINUTES_PER_DAY, minute_of_day, parse_minutes
from src.rollcall.models import (
    BINDING_ABSENCE_STATUSES,
    Absence,
    EffectiveAvailability,
    HourlyBlockage,
    Person,
    TeamRotation,
    UnavailableBlock,
)
from src.rollcall.resolver import resolve

ABSENT_STATUSES: frozenset[str] = frozenset({"home", "unavailable"})


def block_is_binding(block: UnavailableBlock) -> bool:
    """Whether a block actually removes the person during its window."""
    return block.status is None or block.status in BINDING_ABSENCE_STATUSES


def block_contains(block: UnavailableBlock, minute: int) -> bool:
    """Whether minute falls in the block's half-open [start, end) window.

    A block ending before it starts runs past midnight. Blocks with unreadable
    times never match.
    """
    start = parse_minutes(block.start)
    end = parse_minutes(block.end)
    if start is None or end is None:
        return False
    if end < start:
        end += MINUTES_PER_DAY
    return start <= minute < end


def is_present(availability: EffectiveAvailability, minute: int | time | str) -> bool:
    """Decide presence at a minute of the day.

    Args:
        availability: Resolved day-level availability.
        minute: Minutes since midnight, a time, or an "HH:MM" string.

    Returns:
        True if the person counts as present at that moment.
    """
    target = minute_of_day(minute)

    if not availability.is_available or availability.status in ABSENT_STATUSES:
        return False

    if availability.status == "arrival":
        arrival = parse_minutes(availability.start_hour)
        if arrival is not None and target < arrival:
            return False

    if availability.status == "departure":
        departure = parse_minutes(availability.end_hour)
        if departure is not None and target >= departure:
            return False

    for block in availability.unavailable_blocks:
        if block_is_binding(block) and block_contains(block, target):
            return False

    return True


def is_person_present_at(
    person: Person,
    day: date | datetime | str,
    clock: int | time | str,
    team_rotations: Iterable[TeamRotation] = (),
    absences: Iterable[Absence] = (),
    hourly_blockages: Iterable[HourlyBlockage] = (),
) -> bool:
    """Resolve a person's day and check presence at a clock time."""
    availability = resolve(person, day, team_rotations, absences, hourly_blockages)
    return is_present(availability, clock)


def headcount(
    availabilities: Iterable[EffectiveAvailability], minute: int | time | str
) -> int:
    """Number of availabilities counting as present at minute."""
    target = minute_of_day(minute)
    return sum(1 for availability in availabilities if is_present(availability, target))
