from src.mp_common.errors import (
    InsufficientBalanceError,
    WithdrawalAmountOutOfBoundsError,
    WithdrawalInFlightError,
)
from src.mp_settings.domain.models import WithdrawalBounds
from src.mp_withdrawal.domain.models import Withdrawal


def check_sufficient_balance(available: int, amount: int) -> None:
    if available < amount:
        raise InsufficientBalanceError(amount, available)


def check_within_bounds(amount: int, bounds: WithdrawalBounds) -> None:
    """max == 0 means no upper bound."""
    if not bounds.allows(amount):
        raise WithdrawalAmountOutOfBoundsError(amount, bounds.minimum, bounds.maximum)


def check_no_in_flight(existing: Withdrawal | None) -> None:
    """At most one INITIATED/PROCESSING withdrawal per seller."""
    if existing is not None:
        raise WithdrawalInFlightError(existing.id, existing.status)
