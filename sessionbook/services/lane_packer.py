# sessionbook/services/lane_packer.py
"""
Lane packing for the weekly availability grid.

Each day's slots are stacked into lanes (rows) so that no two open slots in
the same lane overlap. Booked slots (tentative/booked/confirmed) may share a
lane with open postings they cover.

Two placement policies are available:

FIRST_FIT
    An open slot goes to the lowest lane where nothing intersects it.
    A committed slot goes to the lowest lane holding no intersecting
    committed slot.

LAST_FREE_LANE
    Lanes are scanned in order. An open slot stops the scan at the first
    lane that touches it and lands in the lane scanned just before, or a
    new lane when lane 0 already touches it. A committed slot never stops
    the scan and lands in the last lane. Intervals sharing an endpoint
    count as touching.

This module is pure: it does not read settings or touch the database.
"""

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from ..core.constants import DAYS_IN_WEEK, DEFAULT_MAX_LANES
from ..core.enums import LanePolicy, SlotStatus
from ..core.exceptions import ValidationException
from ..core.time_utils import weekday_order

logger = logging.getLogger(__name__)


class PackableSlot(Protocol):
    start_time: datetime
    end_time: datetime
    status: str


@dataclass
class DayLayout:
    """Lanes for one weekday (0=Monday)."""

    weekday: int
    lanes: List[List[Any]] = field(default_factory=list)

    @property
    def lane_count(self) -> int:
        return len(self.lanes)


@dataclass
class WeekLayout:
    """
    Packed week.

    ``days`` holds seven entries in display order. ``max_lanes_used`` is the
    largest lane count on any day; ``display_lanes`` is that number clamped
    to the ceiling. Lanes beyond the ceiling are kept, not dropped.
    """

    days: List[DayLayout]
    max_lanes_used: int
    display_lanes: int
    policy: LanePolicy = LanePolicy.FIRST_FIT

    def day(self, weekday: int) -> DayLayout:
        for day in self.days:
            if day.weekday == weekday:
                return day
        raise KeyError(weekday)

    def position_of(self, slot: Any) -> Optional[Tuple[int, int]]:
        """(weekday, lane index) of a slot, by identity."""
        for day in self.days:
            for lane_index, lane in enumerate(day.lanes):
                if any(item is slot for item in lane):
                    return day.weekday, lane_index
        return None


def _is_open(slot: PackableSlot) -> bool:
    return slot.status == SlotStatus.OPEN.value


def _intersects(a: PackableSlot, b: PackableSlot) -> bool:
    return a.start_time < b.end_time and b.start_time < a.end_time


def _touches(a: PackableSlot, b: PackableSlot) -> bool:
    return a.start_time <= b.end_time and b.start_time <= a.end_time


def _first_fit_lane(candidate: PackableSlot, lanes: List[List[Any]]) -> int:
    candidate_open = _is_open(candidate)
    for index, lane in enumerate(lanes):
        if candidate_open:
            blocked = any(_intersects(candidate, placed) for placed in lane)
        else:
            blocked = any(
                not _is_open(placed) and _intersects(candidate, placed) for placed in lane
            )
        if not blocked:
            return index
    return -1


def _last_free_lane(candidate: PackableSlot, lanes: List[List[Any]]) -> int:
    if not lanes:
        return 0
    candidate_open = _is_open(candidate)
    free_index = -1
    for index, lane in enumerate(lanes):
        if candidate_open and any(_touches(candidate, placed) for placed in lane):
            break
        free_index = index
    return free_index


_PLACEMENT = {
    LanePolicy.FIRST_FIT: _first_fit_lane,
    LanePolicy.LAST_FREE_LANE: _last_free_lane,
}


def validate_slots(slots: Iterable[PackableSlot]) -> None:
    """Raise ValidationException for any slot whose start is not before its end."""
    for slot in slots:
        if slot.start_time >= slot.end_time:
            raise ValidationException(
                "Slot start time must be before its end time",
                code="INVALID_SLOT_INTERVAL",
                details={
                    "slot_id": getattr(slot, "id", None),
                    "start_time": slot.start_time.isoformat(),
                    "end_time": slot.end_time.isoformat(),
                },
            )


def pack_day(
    slots: Iterable[PackableSlot], policy: LanePolicy = LanePolicy.FIRST_FIT
) -> List[List[Any]]:
    """Pack one day's slots, in input order, into lanes."""
    place = _PLACEMENT[LanePolicy(policy)]
    lanes: List[List[Any]] = []
    for slot in slots:
        index = place(slot, lanes)
        if index == -1 or index >= len(lanes):
            lanes.append([slot])
        else:
            lanes[index].append(slot)
    return lanes


def pack(
    week_slots: Sequence[PackableSlot],
    week_start_weekday: int = 0,
    *,
    ceiling: int = DEFAULT_MAX_LANES,
    policy: LanePolicy = LanePolicy.FIRST_FIT,
    tz: Optional[tzinfo] = None,
) -> WeekLayout:
    """
    Pack a week of slots into per-day lanes.

    Args:
        week_slots: Slots of one week, in the order they should be placed
        week_start_weekday: First weekday of the display week (0=Monday)
        ceiling: Maximum number of lanes shown
        policy: Lane placement policy
        tz: Timezone used to decide which day a slot starts on (UTC if None)

    Returns:
        WeekLayout with seven days in display order

    Raises:
        ValidationException: If any slot has start_time >= end_time
    """
    validate_slots(week_slots)
    policy = LanePolicy(policy)

    by_weekday: Dict[int, List[PackableSlot]] = {weekday: [] for weekday in range(DAYS_IN_WEEK)}
    for slot in week_slots:
        start = slot.start_time.astimezone(tz) if tz is not None else slot.start_time
        by_weekday[start.weekday()].append(slot)

    days = [
        DayLayout(weekday=weekday, lanes=pack_day(by_weekday[weekday], policy))
        for weekday in weekday_order(week_start_weekday)
    ]
    max_lanes_used = max((day.lane_count for day in days), default=0)
    if max_lanes_used > ceiling:
        logger.info("Week uses %s lanes, display limited to %s", max_lanes_used, ceiling)

    return WeekLayout(
        days=days,
        max_lanes_used=max_lanes_used,
        display_lanes=min(max_lanes_used, ceiling),
        policy=policy,
    )


class LanePacker:
    """Packs weeks with a fixed policy and ceiling."""

    def __init__(
        self, policy: LanePolicy = LanePolicy.FIRST_FIT, ceiling: int = DEFAULT_MAX_LANES
    ):
        self.policy = LanePolicy(policy)
        self.ceiling = ceiling

    def pack(
        self,
        week_slots: Sequence[PackableSlot],
        week_start_weekday: int = 0,
        tz: Optional[tzinfo] = None,
    ) -> WeekLayout:
        return pack(
            week_slots,
            week_start_weekday,
            ceiling=self.ceiling,
            policy=self.policy,
            tz=tz,
        )
