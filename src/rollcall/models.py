"""Pydantic models for attendance data.

Input records mirror the rows an external query layer fetches (people, team
rotations, absences, hourly blockages, snapshot rows). Their dates stay as
strings and are parsed lazily by the engine so that a malformed row is skipped
instead of failing the whole batch at construction time.

Computed values (EffectiveAvailability, snapshot records, changes) are frozen.
"""

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.rollcall.errors import SnapshotError

DayStatus = Literal["full", "arrival", "departure", "home", "unavailable"]
CycleDay = Literal["arrival", "full", "departure", "home"]
AvailabilitySource = Literal[
    "absence",
    "manual",
    "algorithm",
    "last_manual",
    "personal_rotation",
    "team_rotation",
    "default",
]
AbsenceStatus = Literal["approved", "pending", "rejected", "partially_approved"]
BlockKind = Literal["absence", "hourly_blockage", "manual"]
HomeStatusType = Literal[
    "leave_shamp", "gimel", "absent", "organization_days", "not_in_shamp"
]

HOME_STATUS_TYPES: frozenset[str] = frozenset(get_args(HomeStatusType))

# Absence statuses that actually take the person off the roster
BINDING_ABSENCE_STATUSES: frozenset[str] = frozenset({"approved", "partially_approved"})


class PersonalRotation(BaseModel):
    """An individually-assigned on/off cycle embedded on a person."""

    is_active: bool = False
    days_on: int = 1
    days_off: int = 1
    start_date: str | None = None  # "YYYY-MM-DD" anchor of the cycle


class UnavailableBlock(BaseModel):
    """A time window surfaced on an EffectiveAvailability."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    start: str  # "HH:MM"
    end: str  # "HH:MM"
    reason: str | None = None
    kind: BlockKind = "manual"
    status: str | None = None  # None for hourly blockages (always enforced)


class DailyEntry(BaseModel):
    """A stored per-day availability slot on a person.

    Written either by a commander (source "manual", the default) or by the
    scheduling algorithm (source "algorithm"). Status is free text as entered:
    "base", "home", a home sub-type such as "gimel", ...
    """

    is_available: bool | None = None
    status: str | None = None
    start_hour: str | None = None  # "HH:MM"; anything after 00:00 marks an arrival
    end_hour: str | None = None  # "HH:MM"; anything before 23:59 marks a departure
    source: str | None = None
    home_status_type: HomeStatusType | None = None
    unavailable_blocks: tuple[UnavailableBlock, ...] = ()

    @property
    def is_manual(self) -> bool:
        return self.source != "algorithm"


class LastManualStatus(BaseModel):
    """The most recent status a commander set for a person, on any date."""

    status: Literal["base", "home", "unavailable"]
    home_status_type: HomeStatusType | None = None
    date: str | None = None


class Person(BaseModel):
    """A roster member. Owned externally; read-only to the engine."""

    id: str
    name: str = ""
    team_id: str | None = None
    unit_id: str | None = None  # organizational sub-unit (company) for reports
    is_active: bool = True
    personal_rotation: PersonalRotation | None = None
    # Stored slots keyed by "YYYY-MM-DD"
    daily_availability: dict[str, DailyEntry] = Field(default_factory=dict)
    last_manual_status: LastManualStatus | None = None


class TeamRotation(BaseModel):
    """A team-level on-base/at-home cycle, e.g. 11 days on, 3 days home."""

    id: str | None = None
    team_id: str
    days_on_base: int
    days_at_home: int
    cycle_length: int | None = None  # days_on_base + days_at_home when omitted
    start_date: str  # "YYYY-MM-DD" anchor, day 0 is an arrival day
    end_date: str | None = None  # optional last day the rotation applies
    arrival_time: str | None = None  # "HH:MM"
    departure_time: str | None = None  # "HH:MM"

    @property
    def effective_cycle_length(self) -> int:
        if self.cycle_length is None:
            return self.days_on_base + self.days_at_home
        return self.cycle_length


class Absence(BaseModel):
    """A date-ranged leave request, inclusive on both ends."""

    id: str | None = None
    person_id: str
    start_date: str
    end_date: str
    start_time: str | None = None  # window start on the first day only
    end_time: str | None = None  # window end on the last day only
    status: AbsenceStatus = "pending"
    reason: str | None = None


class HourlyBlockage(BaseModel):
    """A sub-day unavailability window. Never changes the day-level status."""

    id: str | None = None
    person_id: str
    date: str  # "YYYY-MM-DD", a longer ISO timestamp is tolerated
    start_time: str
    end_time: str
    reason: str | None = None


class EffectiveAvailability(BaseModel):
    """Resolved day-level availability of one person on one date."""

    model_config = ConfigDict(frozen=True)

    status: DayStatus
    is_available: bool
    source: AvailabilitySource
    start_hour: str | None = None  # arrival hour on arrival days
    end_hour: str | None = None  # departure hour on departure days
    unavailable_blocks: tuple[UnavailableBlock, ...] = ()
    home_status_type: HomeStatusType | None = None  # kind of home day, when known


class PresenceSnapshotRecord(BaseModel):
    """One person's status as captured at a point in time."""

    model_config = ConfigDict(frozen=True)

    person_id: str
    status: str  # coarse label: "base", "home", "leave", "mission", ...
    captured_at: str  # ISO timestamp shared by the whole batch
    unit_id: str | None = None


class SnapshotBatch(BaseModel):
    """All records written by one capture event. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    captured_at: str
    records: tuple[PresenceSnapshotRecord, ...] = ()

    @model_validator(mode="after")
    def _single_capture(self) -> "SnapshotBatch":
        stray = {r.captured_at for r in self.records} - {self.captured_at}
        if stray:
            raise SnapshotError(
                f"Batch {self.captured_at} contains records from {sorted(stray)}"
            )
        return self


class StatusChange(BaseModel):
    """A person whose normalized status differs from the prior snapshot."""

    model_config = ConfigDict(frozen=True)

    person: Person
    from_status: str
    to_status: str


class UnitSummary(BaseModel):
    """Per sub-unit counts for a morning-report style summary."""

    unit_id: str | None = None
    total: int = 0
    present: int = 0
    changes: int = 0


class SnapshotReport(BaseModel):
    """Changes since a snapshot plus per-unit aggregates."""

    has_snapshots: bool
    changes: list[StatusChange] = Field(default_factory=list)
    units: dict[str | None, UnitSummary] = Field(default_factory=dict)
