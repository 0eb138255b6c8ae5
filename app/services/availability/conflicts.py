# ===== app/services/availability/conflicts.py =====
"""
Conflict detection between appointment intervals of one staff member.

Intervals are half-open: [start, start + duration). An appointment ending at
11:00 does not conflict with one starting at 11:00.
"""
from typing import Iterable, List, Sequence, Tuple

# (start_minute, duration_minutes)
Interval = Tuple[int, int]


def conflicts(start_a: int, duration_a: int, start_b: int, duration_b: int) -> bool:
    """True if [start_a, start_a+duration_a) and [start_b, start_b+duration_b) intersect"""
    return start_a < start_b + duration_b and start_b < start_a + duration_a


def is_slot_free(start_minute: int, duration_minutes: int, existing: Iterable[Interval]) -> bool:
    """True if the requested interval overlaps none of the existing ones"""
    return not any(
        conflicts(start_minute, duration_minutes, other_start, other_duration)
        for other_start, other_duration in existing
    )


def filter_available(
        candidates: Sequence[int],
        existing: Sequence[Interval],
        requested_duration: int
) -> List[int]:
    """
    Keep the candidate starts that do not overlap any existing appointment.

    ``existing`` must already exclude cancelled appointments and, for a
    reschedule, the appointment being moved. Candidate order is preserved.
    """
    if not existing:
        return list(candidates)
    return [start for start in candidates if is_slot_free(start, requested_duration, existing)]
