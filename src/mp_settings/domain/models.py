"""Domain models for mp_settings — typed views over the key/value settings rows.

Each group is stored as one JSONB row in `platform_settings` keyed by GROUP.
Missing keys fall back to the defaults below.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, ClassVar, TypeVar

from src.mp_common.errors import InvalidSettingError


@dataclass
class PlatformSettings:
    GROUP: ClassVar[str] = "platform"

    commission_rate_bps: int = 1000  # 10%

    def validate(self) -> None:
        if not (0 <= self.commission_rate_bps <= 10000):
            raise InvalidSettingError("commission_rate_bps must be between 0 and 10000")


@dataclass
class PaymentSettings:
    GROUP: ClassVar[str] = "payment"

    min_withdrawal_amount: int = 1000   # cents
    max_withdrawal_amount: int = 0      # cents, 0 = unlimited

    def validate(self) -> None:
        if self.min_withdrawal_amount < 0 or self.max_withdrawal_amount < 0:
            raise InvalidSettingError("withdrawal bounds cannot be negative")
        if self.max_withdrawal_amount and self.max_withdrawal_amount < self.min_withdrawal_amount:
            raise InvalidSettingError("max_withdrawal_amount must be 0 or >= min_withdrawal_amount")


@dataclass
class OrderSettings:
    GROUP: ClassVar[str] = "order"

    order_expiration_hours: int = 24        # 0 disables
    auto_cancel_pending_days: int = 7       # 0 disables

    def validate(self) -> None:
        if self.order_expiration_hours < 0 or self.auto_cancel_pending_days < 0:
            raise InvalidSettingError("expiry windows cannot be negative")


SettingsGroup = PlatformSettings | PaymentSettings | OrderSettings
G = TypeVar("G", PlatformSettings, PaymentSettings, OrderSettings)

GROUPS: dict[str, type[SettingsGroup]] = {
    PlatformSettings.GROUP: PlatformSettings,
    PaymentSettings.GROUP: PaymentSettings,
    OrderSettings.GROUP: OrderSettings,
}


def group_from_dict(cls: type[G], raw: dict[str, Any] | None) -> G:
    """Build a group from a stored JSON value, ignoring unknown keys."""
    known = {f.name for f in fields(cls)}
    values = {k: int(v) for k, v in (raw or {}).items() if k in known and v is not None}
    return cls(**values)


def group_to_dict(group: SettingsGroup) -> dict[str, Any]:
    return asdict(group)


@dataclass(frozen=True)
class WithdrawalBounds:
    minimum: int
    maximum: int  # 0 = unbounded

    def allows(self, amount: int) -> bool:
        return amount >= self.minimum and (self.maximum == 0 or amount <= self.maximum)


@dataclass(frozen=True)
class ExpiryWindows:
    expire_after_hours: int
    auto_cancel_after_days: int
