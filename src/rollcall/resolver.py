"""Effective availability resolution.

Resolution runs an ordered pipeline of rules over one person and one date:

    1. approved absences          (locks the day as home)
    2. manual daily entry         (locks the day as entered)
    3. last manual status         (carried forward from the latest earlier entry)
    4. algorithm daily entry      (locks the day as scheduled)
    5. personal rotation          (off days lock the day as home)
    6. team rotation              (overrides a personal on-day)
    7. default: full day on base

Each rule either declines (returns None) or returns a decision. A locked
decision, or one that makes the person unavailable, ends the pipeline, so a
later rule can never hand back availability that an earlier rule took away.
Absences of every status and hourly blockages for the date are collected into
unavailable_blocks independently of which rule decided the day.

resolve() is a pure function of its arguments.
"""

from collections.abc import Callable, Iterable
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from src.rollcall.dates import day_key, normalize_time, parse_day
from src.rollcall.logging import get_logger
from src.rollcall.models import (
    BINDING_ABSENCE_STATUSES,
    HOME_STATUS_TYPES,
    Absence,
    AvailabilitySource,
    DailyEntry,
    DayStatus,
    EffectiveAvailability,
    HomeStatusType,
    HourlyBlockage,
    Person,
    TeamRotation,
    UnavailableBlock,
)
from src.rollcall.rotation import classify, classify_personal, rotation_applies

log = get_logger(__name__)

DAY_START = "00:00"
DAY_END = "23:59"

DEFAULT_ABSENCE_REASON = "Absence request"
DEFAULT_BLOCKAGE_REASON = "Blocked"
DEFAULT_HOME_STATUS_TYPE: HomeStatusType = "leave_shamp"

# Statuses of an earlier manual entry that keep the person home afterwards
CARRIED_HOME_STATUSES: frozenset[str] = frozenset(
    {"home", "unavailable", "leave", "departure"} | HOME_STATUS_TYPES
)
CARRIED_BASE_STATUSES: frozenset[str] = frozenset({"base", "full", "arrival"})


class Decision(BaseModel):
    """Outcome of one rule in the pipeline."""

    model_config = ConfigDict(frozen=True)

    status: DayStatus
    is_available: bool
    source: AvailabilitySource
    start_hour: str | None = None
    end_hour: str | None = None
    home_status_type: HomeStatusType | None = None
    extra_blocks: tuple[UnavailableBlock, ...] = ()
    locked: bool = False


class DayContext(BaseModel):
    """Inputs of one resolution, already narrowed to the person and date."""

    model_config = ConfigDict(frozen=True)

    person: Person
    day: date
    key: str
    team_rotations: tuple[TeamRotation, ...]
    absences: tuple[Absence, ...]


Rule = Callable[[DayContext], Decision | None]

DEFAULT_DECISION = Decision(status="full", is_available=True, source="default")


# ---------------------------------------------------------------------------
# Record matching
# ---------------------------------------------------------------------------
def absences_on(person_id: str, day: date, absences: Iterable[Absence]) -> list[Absence]:
    """Absences of person_id whose inclusive range covers day.

    Absences with unparsable dates are skipped.
    """
    matched = []
    for absence in absences:
        if absence.person_id != person_id:
            continue
        start = parse_day(absence.start_date)
        end = parse_day(absence.end_date)
        if start is None or end is None:
            log.debug("record_skipped", record="absence", absence_id=absence.id)
            continue
        if start <= day <= end:
            matched.append(absence)
    return matched


def blockages_on(
    person_id: str, day: date, hourly_blockages: Iterable[HourlyBlockage]
) -> list[HourlyBlockage]:
    """Hourly blockages of person_id falling on day."""
    matched = []
    for blockage in hourly_blockages:
        if blockage.person_id != person_id:
            continue
        blockage_day = parse_day(blockage.date)
        if blockage_day is None:
            log.debug("record_skipped", record="hourly_blockage", blockage_id=blockage.id)
            continue
        if blockage_day == day:
            matched.append(blockage)
    return matched


def absence_block(absence: Absence, key: str) -> UnavailableBlock:
    """Window an absence occupies on the day identified by key.

    The whole day, except that start_time bounds the first day of the range
    and end_time bounds the last.
    """
    start = DAY_START
    end = DAY_END
    if parse_day(absence.start_date).isoformat() == key and absence.start_time:
        start = normalize_time(absence.start_time)
    if parse_day(absence.end_date).isoformat() == key and absence.end_time:
        end = normalize_time(absence.end_time)
    return UnavailableBlock(
        id=absence.id,
        start=start,
        end=end,
        reason=absence.reason or DEFAULT_ABSENCE_REASON,
        kind="absence",
        status=absence.status,
    )


def blockage_block(blockage: HourlyBlockage) -> UnavailableBlock:
    return UnavailableBlock(
        id=blockage.id,
        start=normalize_time(blockage.start_time) or "",
        end=normalize_time(blockage.end_time) or "",
        reason=blockage.reason or DEFAULT_BLOCKAGE_REASON,
        kind="hourly_blockage",
        status=None,
    )


def team_rotation_for(
    person: Person, day: date, team_rotations: Iterable[TeamRotation]
) -> TeamRotation | None:
    """Pick the schedule governing the person's team on day.

    When several schedules exist for the same team, the last applicable one in
    input order wins.
    """
    if not person.team_id:
        return None
    chosen = None
    for rotation in team_rotations:
        if rotation.team_id == person.team_id and rotation_applies(day, rotation):
            chosen = rotation
    return chosen


# ---------------------------------------------------------------------------
# Stored daily entries
# ---------------------------------------------------------------------------
def _marks_arrival(entry: DailyEntry) -> bool:
    start = normalize_time(entry.start_hour)
    return bool(start) and start != DAY_START


def _marks_departure(entry: DailyEntry) -> bool:
    end = normalize_time(entry.end_hour)
    return bool(end) and end not in (DAY_END, DAY_START)


def _raw_status(entry: DailyEntry) -> str:
    status = (entry.status or "").strip().lower()
    if not status:
        status = "home" if entry.is_available is False else "full"
    return "full" if status == "base" else status


def entry_decision(entry: DailyEntry, source: AvailabilitySource) -> Decision:
    """Turn a stored slot into a locked decision.

    An available full day with hours becomes an arrival (start after 00:00)
    or a departure (end before 23:59). Home sub-types such as "gimel" resolve
    to home and are kept as the home_status_type.
    """
    status = _raw_status(entry)
    home_type = entry.home_status_type
    if status in HOME_STATUS_TYPES:
        home_type = home_type or status
        status = "home"

    if entry.is_available is False:
        status = "home"
    elif status == "full":
        if _marks_arrival(entry):
            status = "arrival"
        elif _marks_departure(entry):
            status = "departure"
    elif status not in ("arrival", "departure", "home", "unavailable"):
        # Free-text labels like "leave" mean the person is away
        status = "home"

    is_available = status not in ("home", "unavailable")
    return Decision(
        status=status,
        is_available=is_available,
        source=source,
        start_hour=normalize_time(entry.start_hour) if status == "arrival" else None,
        end_hour=normalize_time(entry.end_hour) if status == "departure" else None,
        home_status_type=None if is_available else home_type,
        extra_blocks=entry.unavailable_blocks,
        locked=True,
    )


def previous_manual_entry(person: Person, day: date) -> DailyEntry | None:
    """The person's latest manual entry strictly before day."""
    latest_day = None
    latest_entry = None
    for key, entry in person.daily_availability.items():
        if not entry.is_manual:
            continue
        entry_day = parse_day(key)
        if entry_day is None:
            log.debug("record_skipped", record="daily_entry", person_id=person.id, key=key)
            continue
        if entry_day < day and (latest_day is None or entry_day > latest_day):
            latest_day, latest_entry = entry_day, entry
    return latest_entry


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------
def absence_rule(ctx: DayContext) -> Decision | None:
    """An approved absence covering the day sends the person home."""
    if any(a.status in BINDING_ABSENCE_STATUSES for a in ctx.absences):
        return Decision(status="home", is_available=False, source="absence", locked=True)
    return None


def manual_entry_rule(ctx: DayContext) -> Decision | None:
    """A commander's entry for the day is final."""
    entry = ctx.person.daily_availability.get(ctx.key)
    if entry is None or not entry.is_manual:
        return None
    return entry_decision(entry, "manual")


def carry_forward_rule(ctx: DayContext) -> Decision | None:
    """Carry the latest earlier manual status into a day with no entry.

    Someone sent home (or who departed) stays home until a commander says
    otherwise. Someone marked on base stays available, but the schedules
    evaluated after this rule may still refine the day.
    """
    entry = previous_manual_entry(ctx.person, ctx.day)
    if entry is not None:
        status = _raw_status(entry)
        if entry.is_available is not False:
            if _marks_departure(entry):
                status = "departure"
            elif _marks_arrival(entry):
                status = "arrival"

        if status in CARRIED_HOME_STATUSES:
            home_type = entry.home_status_type
            if home_type is None:
                home_type = status if status in HOME_STATUS_TYPES else DEFAULT_HOME_STATUS_TYPE
            return Decision(
                status="home",
                is_available=False,
                source="last_manual",
                home_status_type=home_type,
            )
        if status in CARRIED_BASE_STATUSES:
            return Decision(status="full", is_available=True, source="last_manual")
        return None

    last = ctx.person.last_manual_status
    if last is None:
        return None
    if last.status in ("home", "unavailable"):
        return Decision(
            status="home",
            is_available=False,
            source="last_manual",
            home_status_type=last.home_status_type or DEFAULT_HOME_STATUS_TYPE,
        )
    return Decision(status="full", is_available=True, source="last_manual")


def algorithm_entry_rule(ctx: DayContext) -> Decision | None:
    """A slot the scheduling algorithm stored for the day."""
    entry = ctx.person.daily_availability.get(ctx.key)
    if entry is None or entry.is_manual:
        return None
    return entry_decision(entry, "algorithm")


def personal_rotation_rule(ctx: DayContext) -> Decision | None:
    """An active personal rotation's off days send the person home.

    On days only mark the person available; the team schedule may still
    refine or restrict them.
    """
    rotation = ctx.person.personal_rotation
    if rotation is None:
        return None
    cycle_day = classify_personal(ctx.day, rotation)
    if cycle_day is None:
        return None
    if cycle_day == "home":
        return Decision(
            status="home", is_available=False, source="personal_rotation", locked=True
        )
    return Decision(status=cycle_day, is_available=True, source="personal_rotation")


def team_rotation_rule(ctx: DayContext) -> Decision | None:
    rotation = team_rotation_for(ctx.person, ctx.day, ctx.team_rotations)
    if rotation is None:
        return None
    cycle_day = classify(ctx.day, rotation)
    if cycle_day is None:
        return None
    if cycle_day == "home":
        return Decision(status="home", is_available=False, source="team_rotation")
    if cycle_day == "arrival":
        return Decision(
            status="arrival",
            is_available=True,
            source="team_rotation",
            start_hour=normalize_time(rotation.arrival_time),
        )
    if cycle_day == "departure":
        return Decision(
            status="departure",
            is_available=True,
            source="team_rotation",
            end_hour=normalize_time(rotation.departure_time),
        )
    return Decision(status="full", is_available=True, source="team_rotation")


RULES: tuple[Rule, ...] = (
    absence_rule,
    manual_entry_rule,
    carry_forward_rule,
    algorithm_entry_rule,
    personal_rotation_rule,
    team_rotation_rule,
)


def run_rules(ctx: DayContext, rules: Iterable[Rule] = RULES) -> Decision:
    """Apply rules in precedence order.

    A locked decision, or any decision that makes the person unavailable, ends
    the run.
    """
    decision = DEFAULT_DECISION
    for rule in rules:
        outcome = rule(ctx)
        if outcome is None:
            continue
        decision = outcome
        if decision.locked or not decision.is_available:
            break
    return decision


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def resolve(
    person: Person,
    day: date | datetime | str,
    team_rotations: Iterable[TeamRotation] = (),
    absences: Iterable[Absence] = (),
    hourly_blockages: Iterable[HourlyBlockage] = (),
) -> EffectiveAvailability:
    """Resolve where person is expected to be on day.

    Args:
        person: The roster member (its personal_rotation and stored daily
            entries are honored).
        day: Calendar day; a datetime contributes its own calendar date.
        team_rotations: Team schedules of the organization.
        absences: Absence requests; other people's records are ignored.
        hourly_blockages: Sub-day blockages; other people's records are ignored.

    Returns:
        A fresh, immutable EffectiveAvailability.
    """
    key = day_key(day)
    target = date.fromisoformat(key)

    day_absences = absences_on(person.id, target, absences)
    day_blockages = blockages_on(person.id, target, hourly_blockages)

    ctx = DayContext(
        person=person,
        day=target,
        key=key,
        team_rotations=tuple(team_rotations),
        absences=tuple(day_absences),
    )
    decision = run_rules(ctx)

    blocks = [absence_block(a, key) for a in day_absences]
    blocks.extend(blockage_block(b) for b in day_blockages)
    blocks.extend(decision.extra_blocks)

    return EffectiveAvailability(
        status=decision.status,
        is_available=decision.is_available,
        source=decision.source,
        start_hour=decision.start_hour,
        end_hour=decision.end_hour,
        unavailable_blocks=tuple(blocks),
        home_status_type=decision.home_status_type,
    )


def resolver_for(
    day: date | datetime | str,
    team_rotations: Iterable[TeamRotation] = (),
    absences: Iterable[Absence] = (),
    hourly_blockages: Iterable[HourlyBlockage] = (),
    resolve_fn: Callable[..., EffectiveAvailability] = resolve,
) -> Callable[[Person], EffectiveAvailability]:
    """Bind a day and its records, leaving a person -> availability function.

    Useful for the snapshot differ and for capturing batches, which only vary
    the person.
    """
    rotations = tuple(team_rotations)
    absence_list = tuple(absences)
    blockage_list = tuple(hourly_blockages)

    def _resolve(person: Person) -> EffectiveAvailability:
        return resolve_fn(person, day, rotations, absence_list, blockage_list)

    return _resolve
