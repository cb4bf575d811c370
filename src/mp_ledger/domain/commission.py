"""Commission split for a settled order (commission-inclusive pricing).

The buyer pays the listed price; the platform keeps
ceil(line_total * rate_bps / 10000) per line and the seller gets the rest.
Pure functions, no IO.
"""

from dataclasses import dataclass
from typing import Protocol

from src.mp_common.cents import calculate_commission


class SettlementLine(Protocol):
    item_id: str
    seller_id: str
    price: int
    quantity: int


@dataclass(frozen=True)
class LineSplit:
    item_id: str
    seller_id: str
    line_total: int
    commission: int
    seller_amount: int


@dataclass(frozen=True)
class SettlementSplit:
    rate_bps: int
    lines: tuple[LineSplit, ...]

    @property
    def gross(self) -> int:
        return sum(line.line_total for line in self.lines)

    @property
    def total_commission(self) -> int:
        return sum(line.commission for line in self.lines)

    @property
    def seller_totals(self) -> dict[str, int]:
        """Seller id -> accrued amount, in first-seen order. Zero amounts are dropped."""
        totals: dict[str, int] = {}
        for line in self.lines:
            totals[line.seller_id] = totals.get(line.seller_id, 0) + line.seller_amount
        return {seller: amount for seller, amount in totals.items() if amount > 0}


def split_order(lines: list[SettlementLine], rate_bps: int) -> SettlementSplit:
    splits = []
    for line in lines:
        line_total = line.price * line.quantity
        commission = calculate_commission(line_total, rate_bps)
        splits.append(
            LineSplit(
                item_id=line.item_id,
                seller_id=line.seller_id,
                line_total=line_total,
                commission=commission,
                seller_amount=line_total - commission,
            )
        )
    return SettlementSplit(rate_bps=rate_bps, lines=tuple(splits))


def apportion_commission(order_commission: int, line_total: int, order_total: int) -> int:
    """Share of an order's recorded commission attributable to one line (floor)."""
    if order_total <= 0:
        return 0
    return order_commission * line_total // order_total
