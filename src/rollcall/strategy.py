"""Interchangeable availability strategies.

Organizations run one of two engine versions:

    v1_legacy       recompute availability from the raw records on every call
    v2_write_based  read the availability a write path materialized ahead of
                    time, recomputing only for days with no stored record

Both expose the same resolve() contract, so callers pick a strategy once per
organization and stay agnostic of which one they hold.
"""

from collections.abc import Iterable
from datetime import date, datetime
from typing import Protocol

from src.rollcall.config import get_config
from src.rollcall.dates import day_key
from src.rollcall.logging import get_logger, log_context
from src.rollcall.models import (
    Absence,
    EffectiveAvailability,
    HourlyBlockage,
    Person,
    TeamRotation,
)
from src.rollcall.resolver import resolve
from src.rollcall.store import InMemoryMaterializedStore, MaterializedStore, fetch_materialized

log = get_logger(__name__)

ON_DEMAND = "v1_legacy"
PRECOMPUTED = "v2_write_based"

ENGINE_VERSIONS: frozenset[str] = frozenset({ON_DEMAND, PRECOMPUTED})


class AvailabilityStrategy(Protocol):
    def resolve(
        self,
        person: Person,
        day: date | datetime | str,
        team_rotations: Iterable[TeamRotation] = (),
        absences: Iterable[Absence] = (),
        hourly_blockages: Iterable[HourlyBlockage] = (),
    ) -> EffectiveAvailability: ...


class OnDemandStrategy:
    """Recomputes from the raw records on every call."""

    version = ON_DEMAND

    def resolve(
        self,
        person: Person,
        day: date | datetime | str,
        team_rotations: Iterable[TeamRotation] = (),
        absences: Iterable[Absence] = (),
        hourly_blockages: Iterable[HourlyBlockage] = (),
    ) -> EffectiveAvailability:
        return resolve(person, day, team_rotations, absences, hourly_blockages)


class PrecomputedStrategy:
    """Serves materialized records, falling back to recomputation per day.

    The fallback is decided per (person, day): a day with a stored record is
    returned verbatim, a day without one is resolved on demand.
    """

    version = PRECOMPUTED

    def __init__(
        self,
        store: MaterializedStore,
        fallback: AvailabilityStrategy | None = None,
    ) -> None:
        self.store = store
        self.fallback = fallback or OnDemandStrategy()

    def resolve(
        self,
        person: Person,
        day: date | datetime | str,
        team_rotations: Iterable[TeamRotation] = (),
        absences: Iterable[Absence] = (),
        hourly_blockages: Iterable[HourlyBlockage] = (),
    ) -> EffectiveAvailability:
        key = day_key(day)
        with log_context(engine_version=self.version, person_id=person.id, day=key):
            record = fetch_materialized(self.store, person.id, key)
            if record is not None:
                return record
            log.debug("materialized_record_missing")
            return self.fallback.resolve(
                person, key, team_rotations, absences, hourly_blockages
            )


def get_strategy(
    version_tag: str | None,
    store: MaterializedStore | None = None,
) -> AvailabilityStrategy:
    """Select the strategy for an organization's engine version.

    Args:
        version_tag: The organization's stored engine version. Empty or None
            selects the configured default_engine_version.
        store: Materialized-record store for the precomputed strategy. An empty
            in-memory store is used when omitted, which makes every read fall
            back to recomputation.

    Returns:
        An object exposing resolve(person, day, team_rotations, absences,
        hourly_blockages).
    """
    tag = (version_tag or "").strip() or get_config().default_engine_version

    if tag == PRECOMPUTED:
        return PrecomputedStrategy(store if store is not None else InMemoryMaterializedStore())
    if tag != ON_DEMAND:
        log.warning("unknown_engine_version", version=tag, using=ON_DEMAND)
    return OnDemandStrategy()
