"""Effective availability resolution engine for personnel attendance.

Resolves where a person is expected to be on a given day from stored daily
entries, team and personal rotations, absence requests and hourly blockages,
answers point-in-time presence questions, and reports status changes against
captured snapshots.
"""

from src.rollcall.models import (
    Absence,
    DailyEntry,
    EffectiveAvailability,
    HourlyBlockage,
    LastManualStatus,
    Person,
    PersonalRotation,
    PresenceSnapshotRecord,
    SnapshotBatch,
    StatusChange,
    TeamRotation,
)
from src.rollcall.presence import is_person_present_at, is_present
from src.rollcall.resolver import resolve, resolver_for
from src.rollcall.rotation import classify
from src.rollcall.snapshots import build_report, capture_batch, diff, normalize_status
from src.rollcall.strategy import OnDemandStrategy, PrecomputedStrategy, get_strategy

__all__ = [
    "Absence",
    "DailyEntry",
    "EffectiveAvailability",
    "HourlyBlockage",
    "LastManualStatus",
    "Person",
    "PersonalRotation",
    "PresenceSnapshotRecord",
    "SnapshotBatch",
    "StatusChange",
    "TeamRotation",
    "classify",
    "resolve",
    "resolver_for",
    "is_present",
    "is_person_present_at",
    "get_strategy",
    "OnDemandStrategy",
    "PrecomputedStrategy",
    "diff",
    "build_report",
    "capture_batch",
    "normalize_status",
]
