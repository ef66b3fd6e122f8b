"""Tests for point-in-time presence."""

from datetime import date, time

import pytest

from src.rollcall.models import (
    Absence,
    DailyEntry,
    EffectiveAvailability,
    HourlyBlockage,
    UnavailableBlock,
)
from src.rollcall.presence import headcount, is_person_present_at, is_present


def _full_day(*blocks: UnavailableBlock) -> EffectiveAvailability:
    return EffectiveAvailability(
        status="full", is_available=True, source="default", unavailable_blocks=blocks
    )


def _absence_block(status: str, start: str = "09:00", end: str = "11:00") -> UnavailableBlock:
    return UnavailableBlock(start=start, end=end, kind="absence", status=status)


class TestDayLevelStatus:
    @pytest.mark.parametrize("status", ["home", "unavailable"])
    def test_absent_statuses_never_present(self, status):
        availability = EffectiveAvailability(status=status, is_available=False, source="default")

        assert is_present(availability, 0) is False
        assert is_present(availability, "12:00") is False

    def test_unavailable_flag_wins(self):
        availability = EffectiveAvailability(status="full", is_available=False, source="default")
        assert is_present(availability, "12:00") is False

    def test_arrival_hour_boundary(self):
        availability = EffectiveAvailability(
            status="arrival", is_available=True, source="team_rotation", start_hour="10:00"
        )

        assert is_present(availability, "09:59") is False
        assert is_present(availability, "10:00") is True
        assert is_present(availability, "18:00") is True

    def test_arrival_without_hour_is_present_all_day(self):
        availability = EffectiveAvailability(status="arrival", is_available=True, source="personal_rotation")
        assert is_present(availability, "00:00") is True

    def test_departure_hour_boundary(self):
        availability = EffectiveAvailability(
            status="departure", is_available=True, source="team_rotation", end_hour="14:00"
        )

        assert is_present(availability, "13:59") is True
        assert is_present(availability, "14:00") is False

    def test_departure_without_hour_is_present_all_day(self):
        availability = EffectiveAvailability(status="departure", is_available=True, source="team_rotation")
        assert is_present(availability, "23:00") is True


class TestBlockExclusion:
    def test_approved_block_excludes_its_window(self):
        availability = _full_day(_absence_block("approved"))

        assert is_present(availability, "10:00") is False
        assert is_present(availability, "12:00") is True

    def test_window_is_half_open(self):
        availability = _full_day(_absence_block("approved"))

        assert is_present(availability, "09:00") is False
        assert is_present(availability, "11:00") is True

    def test_pending_block_does_not_exclude(self):
        assert is_present(_full_day(_absence_block("pending")), "10:00") is True

    def test_rejected_block_does_not_exclude(self):
        assert is_present(_full_day(_absence_block("rejected")), "10:00") is True

    def test_partially_approved_block_excludes(self):
        assert is_present(_full_day(_absence_block("partially_approved")), "10:00") is False

    def test_hourly_blockage_without_status_is_enforced(self):
        block = UnavailableBlock(start="12:00", end="14:00", kind="hourly_blockage")
        assert is_present(_full_day(block), "13:00") is False

    def test_block_crossing_midnight(self):
        block = UnavailableBlock(start="22:00", end="02:00", kind="hourly_blockage")
        availability = _full_day(block)

        assert is_present(availability, "23:00") is False
        assert is_present(availability, "21:59") is True

    def test_unreadable_block_is_ignored(self):
        block = UnavailableBlock(start="", end="", kind="hourly_blockage")
        assert is_present(_full_day(block), "10:00") is True

    def test_blocks_apply_on_arrival_days_too(self):
        availability = EffectiveAvailability(
            status="arrival",
            is_available=True,
            source="team_rotation",
            start_hour="10:00",
            unavailable_blocks=(_absence_block("approved", "15:00", "16:00"),),
        )

        assert is_present(availability, "12:00") is True
        assert is_present(availability, "15:30") is False

    def test_accepts_time_objects_and_minutes(self):
        availability = _full_day(_absence_block("approved"))

        assert is_present(availability, time(10, 0)) is False
        assert is_present(availability, 600) is False


class TestEndToEnd:
    def test_person_present_at_clock_time(self, soldier, rotation_11_3):
        blockages = [
            HourlyBlockage(person_id="p-1", date="2026-01-05", start_time="12:00", end_time="14:00")
        ]

        assert is_person_present_at(soldier, date(2026, 1, 5), "11:00", [rotation_11_3], [], blockages)
        assert not is_person_present_at(soldier, date(2026, 1, 5), "13:00", [rotation_11_3], [], blockages)
        assert not is_person_present_at(soldier, date(2026, 1, 12), "11:00", [rotation_11_3])

    def test_pending_absence_keeps_person_present(self, soldier, free_day):
        pending = Absence(
            person_id="p-1", start_date="2026-02-06", end_date="2026-02-06", status="pending"
        )
        assert is_person_present_at(soldier, free_day, "10:00", absences=[pending])

    def test_manual_arrival_hour_applies(self, soldier, free_day):
        late = soldier.model_copy(
            update={"daily_availability": {"2026-02-06": DailyEntry(status="base", start_hour="13:00")}}
        )

        assert not is_person_present_at(late, free_day, "12:59")
        assert is_person_present_at(late, free_day, "13:00")

    def test_headcount(self):
        availabilities = [
            _full_day(),
            _full_day(_absence_block("approved")),
            EffectiveAvailability(status="home", is_available=False, source="absence"),
        ]

        assert headcount(availabilities, "10:00") == 1
        assert headcount(availabilities, "12:00") == 2
