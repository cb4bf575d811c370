"""Unified error codes and custom exceptions.

Every error carries a ``kind`` so the transport layer can map it without
parsing messages:
  validation          -> 400
  business_rule       -> 422
  not_found           -> 404
  external_provider   -> 502
  partial_settlement  -> 500

Error code ranges:
  1xxx: Auth/Identity
  2xxx: Earnings ledger
  3xxx: Settings
  4xxx: Order
  5xxx: Withdrawal
  6xxx: Payment provider
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    kind: str = "system"

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- Kinds ---

class InvalidInputError(AppError):
    kind = "validation"

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 400)


class BusinessRuleError(AppError):
    kind = "business_rule"

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


class NotFoundError(AppError):
    kind = "not_found"

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404)


class PaymentProviderError(AppError):
    """Timeout, auth failure, declined capture or a malformed provider reply.

    The order stays PENDING; the caller may retry verification.
    """

    kind = "external_provider"

    def __init__(self, provider: str, detail: str, code: int = 6001) -> None:
        self.provider = provider
        super().__init__(code, f"Payment provider {provider} error: {detail}", 502)


class PartialSettlementError(AppError):
    """The order is PAID but seller accrual or platform earning did not persist."""

    kind = "partial_settlement"

    def __init__(self, order_id: str, failed_steps: list[str]) -> None:
        self.order_id = order_id
        self.failed_steps = failed_steps
        super().__init__(
            4090,
            f"Order {order_id} is paid but settlement is incomplete: {', '.join(failed_steps)}",
            500,
        )


# --- 1xxx: Auth/Identity ---

class InvalidCredentialsError(AppError):
    kind = "auth"

    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class ForbiddenError(AppError):
    kind = "auth"

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(1003, detail, 403)


# --- 2xxx: Earnings ledger ---

class InsufficientBalanceError(BusinessRuleError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
        )


# --- 3xxx: Settings ---

class InvalidSettingError(InvalidInputError):
    def __init__(self, detail: str) -> None:
        super().__init__(3001, f"Invalid setting: {detail}")


class SettingGroupNotFoundError(NotFoundError):
    def __init__(self, key: str) -> None:
        super().__init__(3004, f"Settings group not found: {key}")


# --- 4xxx: Order ---

class DuplicateItemError(InvalidInputError):
    def __init__(self, item_ids: list[str]) -> None:
        super().__init__(4001, f"Duplicate items in order: {', '.join(item_ids)}")


class InvalidQuantityError(InvalidInputError):
    def __init__(self, item_id: str, quantity: int) -> None:
        super().__init__(
            4002, f"Item {item_id} is unique, quantity must be 1 (got {quantity})"
        )


class ItemNotPurchasableError(BusinessRuleError):
    def __init__(self, item_ids: list[str]) -> None:
        super().__init__(4003, f"Items not available for purchase: {', '.join(item_ids)}")


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}")


class SelfPurchaseError(BusinessRuleError):
    def __init__(self, titles: list[str]) -> None:
        super().__init__(4005, f"You cannot purchase your own items: {', '.join(titles)}")


class OrderNotCancellableError(BusinessRuleError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(4006, f"Order {order_id} in status {status} cannot be cancelled")


class EmptyOrderError(InvalidInputError):
    def __init__(self) -> None:
        super().__init__(4007, "Order must contain at least one item")


class OrderNotPayableError(BusinessRuleError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(4008, f"Order {order_id} in status {status} cannot be paid")


# --- 5xxx: Withdrawal ---

class PayoutDestinationNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__(5001, "Payout account not found for this seller")


class SellerNotEligibleError(BusinessRuleError):
    def __init__(self, reason: str) -> None:
        super().__init__(5002, f"Seller is not eligible for withdrawal: {reason}")


class ActiveDisputeError(BusinessRuleError):
    def __init__(self, count: int) -> None:
        super().__init__(
            5003, f"Withdrawals are blocked while {count} dispute(s) are in progress"
        )


class WithdrawalNotFoundError(NotFoundError):
    def __init__(self, withdrawal_id: str) -> None:
        super().__init__(5004, f"Withdrawal not found: {withdrawal_id}")


class WithdrawalAmountOutOfBoundsError(BusinessRuleError):
    def __init__(self, amount: int, minimum: int, maximum: int) -> None:
        upper = "unlimited" if maximum == 0 else f"{maximum} cents"
        super().__init__(
            5005,
            f"Withdrawal amount {amount} cents is outside [{minimum} cents, {upper}]",
        )


class WithdrawalInFlightError(BusinessRuleError):
    def __init__(self, existing_id: str, status: str) -> None:
        super().__init__(
            5006, f"Withdrawal {existing_id} is already {status}; wait until it is resolved"
        )


class InvalidPayoutDestinationError(BusinessRuleError):
    def __init__(self, channel: str) -> None:
        super().__init__(5007, f"Payout account is not a valid {channel} destination")


class InvalidWithdrawalTransitionError(BusinessRuleError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(5008, f"Withdrawal cannot move from {current} to {target}")


class SellerNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__(5009, f"Seller not found: {user_id}")


# --- 6xxx: Payment provider ---

class UnsupportedProviderError(InvalidInputError):
    def __init__(self, provider: str) -> None:
        super().__init__(6002, f"Unsupported payment provider: {provider}")


class PaymentAmountMismatchError(PaymentProviderError):
    def __init__(self, provider: str, expected: int, received: int) -> None:
        super().__init__(
            provider,
            f"paid amount {received} cents does not cover order total {expected} cents",
            code=6003,
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
