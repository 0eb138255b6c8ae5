# ===== app/services/appointment/state_machine.py =====
"""Allowed appointment status transitions"""
from typing import Dict, FrozenSet, Union

from app.core.exceptions import InvalidStateError
from app.models.appointment import AppointmentStatus

PENDING = AppointmentStatus.PENDING
CONFIRMED = AppointmentStatus.CONFIRMED
COMPLETED = AppointmentStatus.COMPLETED
CANCELLED = AppointmentStatus.CANCELLED

# PENDING -> PENDING and CONFIRMED -> PENDING are reschedules.
# CANCELLED -> CANCELLED keeps cancel idempotent.
TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    PENDING: frozenset({PENDING, CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({PENDING, COMPLETED, CANCELLED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset({CANCELLED}),
}


def can_transition(current: Union[AppointmentStatus, str], target: Union[AppointmentStatus, str]) -> bool:
    return AppointmentStatus(target) in TRANSITIONS[AppointmentStatus(current)]


def transition(current: Union[AppointmentStatus, str], target: Union[AppointmentStatus, str]) -> AppointmentStatus:
    """Return ``target`` if the edge exists, otherwise raise InvalidStateError"""
    current = AppointmentStatus(current)
    target = AppointmentStatus(target)
    if target not in TRANSITIONS[current]:
        raise InvalidStateError(
            f"Cannot change a {current.value} appointment to {target.value}"
        )
    return target
