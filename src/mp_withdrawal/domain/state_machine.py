"""Withdrawal status transitions.

    INITIATED  -> PROCESSING | COMPLETED | FAILED
    PROCESSING -> COMPLETED | FAILED
    FAILED     -> INITIATED | PROCESSING     (retry)
    COMPLETED, REFUNDED: terminal

REFUNDED is not a forward transition; only the explicit refund action
reaches it, from COMPLETED or PROCESSING.
"""

from src.mp_common.enums import WithdrawalStatus as S
from src.mp_common.errors import InvalidWithdrawalTransitionError

ALLOWED_TRANSITIONS: dict[S, frozenset[S]] = {
    S.INITIATED: frozenset({S.PROCESSING, S.COMPLETED, S.FAILED}),
    S.PROCESSING: frozenset({S.COMPLETED, S.FAILED}),
    S.COMPLETED: frozenset(),
    S.FAILED: frozenset({S.INITIATED, S.PROCESSING}),
    S.REFUNDED: frozenset(),
}

REFUNDABLE_STATES: frozenset[S] = frozenset({S.COMPLETED, S.PROCESSING})

IN_FLIGHT_STATES: frozenset[S] = frozenset({S.INITIATED, S.PROCESSING})


def can_transition(current: str, target: str) -> bool:
    try:
        return S(target) in ALLOWED_TRANSITIONS[S(current)]
    except ValueError:
        return False


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidWithdrawalTransitionError(current, target)


def ensure_refundable(current: str) -> None:
    if current not in {s.value for s in REFUNDABLE_STATES}:
        raise InvalidWithdrawalTransitionError(current, S.REFUNDED.value)


def reopens_request(current: str, target: str) -> bool:
    """A retry out of FAILED puts the withdrawal back in flight."""
    return current == S.FAILED.value and target in {s.value for s in IN_FLIGHT_STATES}
