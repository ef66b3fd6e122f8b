"""Tests for snapshot capture and change detection."""

from datetime import date

import pytest
from pydantic import ValidationError

from src.rollcall.errors import SnapshotError
from src.rollcall.models import (
    Absence,
    EffectiveAvailability,
    Person,
    PresenceSnapshotRecord,
    SnapshotBatch,
)
from src.rollcall.resolver import resolver_for
from src.rollcall.snapshots import (
    build_report,
    capture_batch,
    diff,
    latest_batch,
    normalize_status,
)

MORNING = "2026-01-11T07:00:00+00:00"


def _fixed(statuses: dict[str, str]):
    """Resolver returning a preset status per person id."""

    def _resolve(person: Person) -> EffectiveAvailability:
        status = statuses[person.id]
        return EffectiveAvailability(
            status=status,
            is_available=status not in {"home", "unavailable"},
            source="default",
        )

    return _resolve


def _record(person_id: str, status: str, captured_at: str = MORNING, unit_id: str | None = None):
    return PresenceSnapshotRecord(
        person_id=person_id, status=status, captured_at=captured_at, unit_id=unit_id
    )


class TestNormalizeStatus:
    @pytest.mark.parametrize("status", ["full", "arrival", "departure", "base", " Base "])
    def test_on_base_statuses_collapse(self, status):
        assert normalize_status(status) == "base"

    @pytest.mark.parametrize("status", ["home", "leave", "mission", "unavailable"])
    def test_other_statuses_pass_through(self, status):
        assert normalize_status(status) == status

    def test_missing_status_counts_as_home(self):
        assert normalize_status(None) == "home"
        assert normalize_status("") == "home"


class TestDiff:
    def test_arrival_to_departure_is_not_a_change(self):
        person = Person(id="p-1")
        prior = SnapshotBatch(captured_at=MORNING, records=(_record("p-1", "arrival"),))

        assert diff(prior, [person], _fixed({"p-1": "departure"})) == []

    def test_base_to_home_is_a_change(self):
        person = Person(id="p-1")
        changes = diff([_record("p-1", "base")], [person], _fixed({"p-1": "home"}))

        assert len(changes) == 1
        assert changes[0].person == person
        assert changes[0].from_status == "base"
        assert changes[0].to_status == "home"

    def test_missing_prior_record_defaults_to_home(self):
        newcomer = Person(id="p-2")
        stayed_home = Person(id="p-3")
        prior = [_record("p-1", "base")]

        changes = diff(
            prior, [newcomer, stayed_home], _fixed({"p-2": "full", "p-3": "home"})
        )

        assert [(c.person.id, c.from_status, c.to_status) for c in changes] == [
            ("p-2", "home", "base")
        ]

    def test_empty_prior_batch_reports_no_changes(self):
        assert diff([], [Person(id="p-1")], _fixed({"p-1": "full"})) == []

    def test_inactive_people_are_skipped(self):
        retired = Person(id="p-1", is_active=False)
        assert diff([_record("p-1", "base")], [retired], _fixed({"p-1": "home"})) == []

    def test_coarse_labels_compare_verbatim(self):
        person = Person(id="p-1")
        changes = diff([_record("p-1", "mission")], [person], _fixed({"p-1": "full"}))

        assert (changes[0].from_status, changes[0].to_status) == ("mission", "base")

    def test_with_real_resolver(self, soldier, rotation_11_3):
        # Captured on the departure day morning, person left by the next day
        prior = capture_batch([soldier], resolver_for(date(2026, 1, 11), [rotation_11_3]), MORNING)
        changes = diff(prior, [soldier], resolver_for(date(2026, 1, 12), [rotation_11_3]))

        assert prior.records[0].status == "base"
        assert [(c.from_status, c.to_status) for c in changes] == [("base", "home")]


class TestBuildReport:
    def test_counts_per_unit(self):
        people = [
            Person(id="a1", unit_id="alpha"),
            Person(id="a2", unit_id="alpha"),
            Person(id="b1", unit_id="bravo"),
            Person(id="b2", unit_id="bravo", is_active=False),
        ]
        prior = [_record("a1", "base"), _record("a2", "base"), _record("b1", "home")]
        resolver = _fixed({"a1": "full", "a2": "home", "b1": "arrival", "b2": "full"})

        report = build_report(prior, people, resolver)

        assert report.has_snapshots is True
        assert len(report.changes) == 2
        alpha, bravo = report.units["alpha"], report.units["bravo"]
        assert (alpha.total, alpha.present, alpha.changes) == (2, 1, 1)
        assert (bravo.total, bravo.present, bravo.changes) == (1, 1, 1)

    def test_no_prior_batch_is_flagged(self):
        report = build_report([], [Person(id="p-1")], _fixed({"p-1": "home"}))

        assert report.has_snapshots is False
        assert report.changes == []

    def test_no_prior_batch_still_counts_units(self, soldier, rotation_11_3):
        resolver = resolver_for(date(2026, 1, 5), [rotation_11_3])

        report = build_report([], [soldier], resolver)

        assert report.changes == []
        summary = report.units["company-a"]
        assert (summary.total, summary.present, summary.changes) == (1, 1, 0)

    def test_report_matches_diff(self, soldier, rotation_11_3):
        resolver = resolver_for(date(2026, 1, 12), [rotation_11_3])
        prior = [_record("p-1", "base")]

        assert build_report(prior, [soldier], resolver).changes == diff(prior, [soldier], resolver)


class TestCapture:
    def test_capture_stores_normalized_statuses(self, soldier, rotation_11_3):
        absent = Person(id="p-2", team_id="team-1", unit_id="company-a")
        absence = Absence(person_id="p-2", start_date="2026-01-01", end_date="2026-01-01", status="approved")
        resolver = resolver_for(date(2026, 1, 1), [rotation_11_3], [absence])

        batch = capture_batch([soldier, absent], resolver, MORNING)

        assert batch.captured_at == MORNING
        assert [(r.person_id, r.status, r.unit_id) for r in batch.records] == [
            ("p-1", "base", "company-a"),
            ("p-2", "home", "company-a"),
        ]

    def test_capture_skips_inactive_people(self):
        batch = capture_batch(
            [Person(id="p-1", is_active=False)], _fixed({"p-1": "full"}), MORNING
        )
        assert batch.records == ()

    def test_failed_capture_produces_no_batch(self):
        def _explode(person: Person) -> EffectiveAvailability:
            raise RuntimeError("records unavailable")

        with pytest.raises(RuntimeError):
            capture_batch([Person(id="p-1")], _explode, MORNING)

    def test_batch_rejects_mixed_capture_times(self):
        with pytest.raises(SnapshotError):
            SnapshotBatch(
                captured_at=MORNING,
                records=(_record("p-1", "base"), _record("p-2", "base", "2026-01-11T12:00:00+00:00")),
            )

    def test_batch_is_immutable(self):
        batch = SnapshotBatch(captured_at=MORNING, records=(_record("p-1", "base"),))
        with pytest.raises(ValidationError):
            batch.captured_at = "later"


class TestLatestBatch:
    def test_picks_newest_capture(self):
        noon = "2026-01-11T12:00:00+00:00"
        records = [
            _record("p-1", "base"),
            _record("p-1", "home", noon),
            _record("p-2", "base", noon),
        ]

        batch = latest_batch(records)

        assert batch.captured_at == noon
        assert {r.person_id for r in batch.records} == {"p-1", "p-2"}

    def test_no_records(self):
        assert latest_batch([]) is None
