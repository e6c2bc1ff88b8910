from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import random
from typing import Optional

import pytest
import pytz

from sessionbook.core.enums import LanePolicy
from sessionbook.core.exceptions import ValidationException
from sessionbook.services.lane_packer import LanePacker, pack, pack_day

MONDAY = datetime(2024, 3, 11, tzinfo=timezone.utc)


@dataclass(eq=False)
class FakeSlot:
    start_time: datetime
    end_time: datetime
    status: str = "open"
    id: Optional[str] = None


def slot(day: int, start_hour: float, end_hour: float, status: str = "open") -> FakeSlot:
    base = MONDAY + timedelta(days=day)
    return FakeSlot(
        start_time=base + timedelta(hours=start_hour),
        end_time=base + timedelta(hours=end_hour),
        status=status,
    )


def _open_overlaps_in_lane(layout) -> bool:
    for day in layout.days:
        for lane in day.lanes:
            opens = [s for s in lane if s.status == "open"]
            for i, a in enumerate(opens):
                for b in opens[i + 1 :]:
                    if a.start_time < b.end_time and b.start_time < a.end_time:
                        return True
    return False


class TestPackBasics:
    def test_empty_week_has_seven_empty_days(self) -> None:
        layout = pack([])

        assert len(layout.days) == 7
        assert all(day.lanes == [] for day in layout.days)
        assert layout.max_lanes_used == 0
        assert layout.display_lanes == 0

    def test_single_slot_uses_one_lane(self) -> None:
        only = slot(2, 9, 10)
        layout = pack([only])

        assert layout.max_lanes_used == 1
        assert layout.position_of(only) == (2, 0)

    @pytest.mark.parametrize("policy", list(LanePolicy))
    def test_non_overlapping_open_slots_share_lane_zero(self, policy: LanePolicy) -> None:
        slots = [slot(0, 8, 9), slot(0, 9.5, 10.5), slot(0, 14, 16), slot(0, 17, 18)]
        layout = pack(slots, policy=policy)

        assert layout.day(0).lane_count == 1
        assert all(layout.position_of(s) == (0, 0) for s in slots)

    def test_days_follow_week_start_weekday(self) -> None:
        layout = pack([], week_start_weekday=6)

        assert [day.weekday for day in layout.days] == [6, 0, 1, 2, 3, 4, 5]

    def test_invalid_interval_rejected_before_packing(self) -> None:
        bad = FakeSlot(start_time=MONDAY, end_time=MONDAY, id="broken")

        with pytest.raises(ValidationException) as exc_info:
            pack([slot(0, 9, 10), bad])

        assert exc_info.value.details["slot_id"] == "broken"

    def test_timezone_moves_slot_to_local_day(self) -> None:
        late = FakeSlot(
            start_time=MONDAY + timedelta(hours=23, minutes=30),
            end_time=MONDAY + timedelta(hours=24, minutes=30),
        )

        utc_layout = pack([late])
        berlin_layout = pack([late], tz=pytz.timezone("Europe/Berlin"))

        assert utc_layout.position_of(late) == (0, 0)
        assert berlin_layout.position_of(late) == (1, 0)


class TestFirstFit:
    def test_booked_slot_scenario(self) -> None:
        s1 = slot(0, 9, 10)
        s2 = slot(0, 9.5, 10.5)
        s3 = slot(0, 9, 10, status="booked")

        layout = pack([s1, s2, s3], policy=LanePolicy.FIRST_FIT)

        assert layout.position_of(s1) == (0, 0)
        assert layout.position_of(s2) == (0, 1)
        assert layout.position_of(s3) == (0, 0)
        assert layout.max_lanes_used == 2

    def test_adjacent_half_open_slots_share_a_lane(self) -> None:
        a = slot(1, 9, 10)
        b = slot(1, 10, 11)

        layout = pack([a, b], policy=LanePolicy.FIRST_FIT)

        assert layout.day(1).lane_count == 1

    def test_open_slot_fills_lowest_free_lane(self) -> None:
        a = slot(0, 8, 10)
        b = slot(0, 9, 11)
        c = slot(0, 13, 14)

        layout = pack([a, b, c], policy=LanePolicy.FIRST_FIT)

        assert layout.position_of(c) == (0, 0)

    def test_committed_slots_do_not_share_lane_when_overlapping(self) -> None:
        a = slot(0, 9, 10, status="confirmed")
        b = slot(0, 9.5, 10.5, status="tentative")

        layout = pack([a, b], policy=LanePolicy.FIRST_FIT)

        assert layout.position_of(b) == (0, 1)


class TestLastFreeLane:
    def test_booked_slot_scenario(self) -> None:
        s1 = slot(0, 9, 10)
        s2 = slot(0, 9.5, 10.5)
        s3 = slot(0, 9, 10, status="booked")

        layout = pack([s1, s2, s3], policy=LanePolicy.LAST_FREE_LANE)

        assert layout.position_of(s1) == (0, 0)
        assert layout.position_of(s2) == (0, 1)
        assert layout.position_of(s3) == (0, 1)
        assert layout.max_lanes_used == 2

    def test_open_slot_goes_to_last_scanned_free_lane(self) -> None:
        a = slot(0, 8, 10)
        b = slot(0, 9, 11)
        c = slot(0, 13, 14)

        layout = pack([a, b, c], policy=LanePolicy.LAST_FREE_LANE)

        assert layout.position_of(c) == (0, 1)

    def test_touching_endpoints_count_as_conflict(self) -> None:
        a = slot(1, 9, 10)
        b = slot(1, 10, 11)

        layout = pack([a, b], policy=LanePolicy.LAST_FREE_LANE)

        assert layout.day(1).lane_count == 2

    def test_conflict_in_first_lane_opens_new_lane(self) -> None:
        lanes = pack_day(
            [slot(0, 8, 9), slot(0, 12, 13), slot(0, 8.5, 9.5)],
            LanePolicy.LAST_FREE_LANE,
        )

        assert [len(lane) for lane in lanes] == [2, 1]


class TestLayoutProperties:
    @pytest.mark.parametrize("policy", list(LanePolicy))
    @pytest.mark.parametrize("seed", [1, 7, 42, 2024])
    def test_open_slots_in_a_lane_never_intersect(self, policy: LanePolicy, seed: int) -> None:
        rng = random.Random(seed)
        slots = []
        for _ in range(40):
            start = rng.randint(8 * 4, 21 * 4) / 4
            status = rng.choice(["open", "open", "open", "tentative", "confirmed"])
            length = rng.choice([0.5, 1, 1.5, 2])
            slots.append(slot(rng.randint(0, 6), start, start + length, status))

        layout = pack(slots, policy=policy)

        assert not _open_overlaps_in_lane(layout)
        assert sum(len(lane) for day in layout.days for lane in day.lanes) == len(slots)

    def test_max_lanes_used_is_busiest_day(self) -> None:
        slots = [slot(0, 9, 10), slot(0, 9, 10), slot(3, 9, 10), slot(3, 9, 10), slot(3, 9, 10)]

        layout = pack(slots)

        assert layout.day(0).lane_count == 2
        assert layout.day(3).lane_count == 3
        assert layout.max_lanes_used == 3

    def test_ceiling_clamps_display_but_keeps_lanes(self) -> None:
        slots = [slot(4, 9, 10) for _ in range(5)]

        layout = LanePacker(ceiling=3).pack(slots)

        assert layout.max_lanes_used == 5
        assert layout.display_lanes == 3
        assert layout.day(4).lane_count == 5

    def test_packing_does_not_mutate_input(self) -> None:
        slots = [slot(0, 9, 10), slot(0, 9.5, 10.5)]
        before = [(s.start_time, s.end_time, s.status) for s in slots]

        pack(slots)

        assert [(s.start_time, s.end_time, s.status) for s in slots] == before
