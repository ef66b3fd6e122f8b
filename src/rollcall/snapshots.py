"""Change detection against presence snapshots.

A capture event records every active person's coarse status under one
captured_at timestamp (a batch). Later in the day, fresh availability is
compared against that batch to report who changed status since, e.g. the
morning report.

Comparison happens on normalized statuses: arrival, departure and full days
all count as "base", because the report cares about present vs not.

Used by reporting consumers with a resolver bound to the report date
(see resolver.resolver_for).
"""

from collections.abc import Callable, Iterable

from src.rollcall.logging import get_logger, log_context
from src.rollcall.models import (
    EffectiveAvailability,
    Person,
    PresenceSnapshotRecord,
    SnapshotBatch,
    SnapshotReport,
    StatusChange,
    UnitSummary,
)

log = get_logger(__name__)

ResolverFn = Callable[[Person], EffectiveAvailability]

BASE = "base"
HOME = "home"

# Fine-grained day statuses that all mean "on base"
BASE_STATUSES: frozenset[str] = frozenset({"base", "full", "arrival", "departure"})


def normalize_status(status: str | None) -> str:
    """Collapse a day status into the coarse set used for comparison.

    Missing statuses count as home.
    """
    value = (status or "").strip().lower()
    if not value:
        return HOME
    if value in BASE_STATUSES:
        return BASE
    return value


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------
def capture_batch(
    people: Iterable[Person],
    resolver_fn: ResolverFn,
    captured_at: str,
) -> SnapshotBatch:
    """Build the snapshot batch for one capture event.

    Every record is computed before the batch is created, so a failure while
    resolving anyone leaves no partial batch behind. Inactive people are not
    captured. Statuses are stored normalized.

    Args:
        people: Roster to capture.
        resolver_fn: person -> EffectiveAvailability for the capture day.
        captured_at: ISO timestamp identifying the batch.
    """
    with log_context(captured_at=captured_at):
        records = tuple(
            PresenceSnapshotRecord(
                person_id=person.id,
                status=normalize_status(resolver_fn(person).status),
                captured_at=captured_at,
                unit_id=person.unit_id,
            )
            for person in people
            if person.is_active
        )
    log.info("snapshot_captured", captured_at=captured_at, records=len(records))
    return SnapshotBatch(captured_at=captured_at, records=records)


def latest_batch(records: Iterable[PresenceSnapshotRecord]) -> SnapshotBatch | None:
    """Group fetched snapshot rows by captured_at and return the newest batch.

    Returns:
        The batch with the greatest captured_at, or None if there are no rows.
    """
    by_capture: dict[str, list[PresenceSnapshotRecord]] = {}
    for record in records:
        by_capture.setdefault(record.captured_at, []).append(record)
    if not by_capture:
        return None
    newest = max(by_capture)
    return SnapshotBatch(captured_at=newest, records=tuple(by_capture[newest]))


# ---------------------------------------------------------------------------
# Diff
# ---------------------------------------------------------------------------
def _prior_lookup(
    prior_batch: SnapshotBatch | Iterable[PresenceSnapshotRecord],
) -> dict[str, PresenceSnapshotRecord]:
    records = prior_batch.records if isinstance(prior_batch, SnapshotBatch) else prior_batch
    return {record.person_id: record for record in records}


def diff(
    prior_batch: SnapshotBatch | Iterable[PresenceSnapshotRecord],
    current_people: Iterable[Person],
    resolver_fn: ResolverFn,
) -> list[StatusChange]:
    """Compare a prior snapshot batch against fresh availability.

    Identity key: person_id

    A person without a prior record is compared as if they had been home.
    Without any prior records there is no baseline, so nothing is reported.
    Inactive people are skipped.

    Args:
        prior_batch: The baseline batch (or its records).
        current_people: Current roster.
        resolver_fn: person -> EffectiveAvailability for the report day.

    Returns:
        One StatusChange per person whose normalized status differs, in roster
        order.
    """
    return build_report(prior_batch, current_people, resolver_fn).changes


def build_report(
    prior_batch: SnapshotBatch | Iterable[PresenceSnapshotRecord],
    current_people: Iterable[Person],
    resolver_fn: ResolverFn,
) -> SnapshotReport:
    """Diff against a prior batch and aggregate counts per sub-unit.

    Returns:
        SnapshotReport with the changes, per-unit totals (active people,
        present on base, changes) and whether a prior batch existed at all.
    """
    prior_by_person = _prior_lookup(prior_batch)
    has_snapshots = bool(prior_by_person)

    changes: list[StatusChange] = []
    units: dict[str | None, UnitSummary] = {}

    for person in current_people:
        if not person.is_active:
            continue

        summary = units.setdefault(person.unit_id, UnitSummary(unit_id=person.unit_id))
        summary.total += 1

        current = normalize_status(resolver_fn(person).status)
        if current == BASE:
            summary.present += 1

        if not has_snapshots:
            # No baseline to compare against; only the counts are meaningful
            continue

        prior_record = prior_by_person.get(person.id)
        prior = normalize_status(prior_record.status) if prior_record else HOME

        if prior != current:
            summary.changes += 1
            changes.append(StatusChange(person=person, from_status=prior, to_status=current))

    log.info(
        "snapshot_diff_computed",
        prior_records=len(prior_by_person),
        changes=len(changes),
        units=len(units),
    )
    return SnapshotReport(
        has_snapshots=has_snapshots,
        changes=changes,
        units=units,
    )
