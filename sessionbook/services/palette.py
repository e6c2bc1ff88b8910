# sessionbook/services/palette.py
"""Slot color assignment by student enrolment order."""

from typing import Dict, Iterable, List, Optional

from ..core.config import settings


def color_for_index(
    index: int,
    palette: Optional[List[str]] = None,
    max_lanes: Optional[int] = None,
    default: Optional[str] = None,
) -> str:
    """Palette entry for the index-th active student, or the default color."""
    palette = settings.slot_colors if palette is None else palette
    default = default or settings.slot_color
    if not palette:
        return default
    max_lanes = max_lanes or settings.max_lanes
    return palette[(index % max_lanes) % len(palette)]


def assign_colors(
    student_ids: Iterable[str],
    palette: Optional[List[str]] = None,
    max_lanes: Optional[int] = None,
) -> Dict[str, str]:
    return {
        student_id: color_for_index(index, palette, max_lanes)
        for index, student_id in enumerate(student_ids)
    }
