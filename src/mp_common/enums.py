"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class TransactionStatus(str, Enum):
    INITIATED = "INITIATED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ItemStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SOLD = "SOLD"
    WITHDRAWN = "WITHDRAWN"


class WithdrawalStatus(str, Enum):
    INITIATED = "INITIATED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class DisputeStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class UserRole(str, Enum):
    BUYER = "BUYER"
    SELLER = "SELLER"
    ADMIN = "ADMIN"


class PaymentProviderName(str, Enum):
    CHAPA = "chapa"
    PAYPAL = "paypal"


class VerificationStatus(str, Enum):
    """Normalized provider verdict. Only SUCCESS settles an order."""
    SUCCESS = "success"
    PENDING = "pending"
    FAILED = "failed"


class PayoutChannel(str, Enum):
    PAYPAL = "paypal"
    BANK = "bank"


class LedgerEntryType(str, Enum):
    SELLER_PAYMENT = "SELLER_PAYMENT"
