"""Reservation lifecycle: the closed status set and its adjacency map.

    Pending ──► Approved ──► Preparing ──► Ready ──► Claimed
       │            │
       └────────────┴──► Rejected

Claimed and Rejected are terminal. Every transition is validated here and
nowhere else.
"""

from src.cn_common.enums import ReservationStatus
from src.cn_common.errors import AlreadyInStateError, IllegalTransitionError, ValidationError

ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.APPROVED, ReservationStatus.REJECTED}
    ),
    ReservationStatus.APPROVED: frozenset(
        {ReservationStatus.PREPARING, ReservationStatus.REJECTED}
    ),
    ReservationStatus.PREPARING: frozenset({ReservationStatus.READY}),
    ReservationStatus.READY: frozenset({ReservationStatus.CLAIMED}),
    ReservationStatus.CLAIMED: frozenset(),
    ReservationStatus.REJECTED: frozenset(),
}

# Client-facing aliases; a cancellation is a rejection
_ALIASES: dict[str, ReservationStatus] = {
    "cancelled": ReservationStatus.REJECTED,
    "canceled": ReservationStatus.REJECTED,
}

_LIFECYCLE_ORDER = list(ReservationStatus)


def parse_status(raw: object) -> ReservationStatus:
    """Normalise a client-supplied status (case-insensitive, Cancelled -> Rejected)."""
    if isinstance(raw, ReservationStatus):
        return raw
    text = str(raw if raw is not None else "").strip()
    if not text:
        raise ValidationError("Missing status")
    key = text.lower()
    if key in _ALIASES:
        return _ALIASES[key]
    for status in ReservationStatus:
        if status.value.lower() == key:
            return status
    raise ValidationError(f"Unknown reservation status: {text}")


def allowed_next(current: ReservationStatus) -> list[ReservationStatus]:
    return sorted(ALLOWED_TRANSITIONS[current], key=_LIFECYCLE_ORDER.index)


def check_transition(
    reservation_id: str, current: ReservationStatus, target: ReservationStatus
) -> None:
    if target is current:
        raise AlreadyInStateError(reservation_id, current.value)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise IllegalTransitionError(
            current.value, target.value, [s.value for s in allowed_next(current)]
        )
