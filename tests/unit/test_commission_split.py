from src.mp_ledger.domain.commission import apportion_commission, split_order
from src.mp_order.domain.models import OrderItem


def _item(item_id: str, seller_id: str, price: int) -> OrderItem:
    return OrderItem(item_id=item_id, seller_id=seller_id, title=item_id, price=price)


class TestSplitOrder:
    def test_single_line_ten_percent(self) -> None:
        split = split_order([_item("i1", "s1", 10000)], 1000)
        assert split.gross == 10000
        assert split.total_commission == 1000
        assert split.seller_totals == {"s1": 9000}

    def test_commission_rounds_up_per_line(self) -> None:
        split = split_order([_item("i1", "s1", 999), _item("i2", "s1", 999)], 1000)
        assert [line.commission for line in split.lines] == [100, 100]
        assert split.seller_totals == {"s1": 1798}

    def test_multiple_sellers_conserve_money(self) -> None:
        lines = [_item("i1", "s1", 2550), _item("i2", "s2", 1333), _item("i3", "s1", 7)]
        split = split_order(lines, 1250)
        assert split.total_commission + sum(split.seller_totals.values()) == split.gross
        assert set(split.seller_totals) == {"s1", "s2"}

    def test_zero_rate_pays_seller_everything(self) -> None:
        split = split_order([_item("i1", "s1", 4200)], 0)
        assert split.total_commission == 0
        assert split.seller_totals == {"s1": 4200}

    def test_full_rate_drops_zero_seller_amounts(self) -> None:
        split = split_order([_item("i1", "s1", 4200)], 10000)
        assert split.total_commission == 4200
        assert split.seller_totals == {}

    def test_rate_is_recorded(self) -> None:
        assert split_order([], 750).rate_bps == 750


class TestApportionCommission:
    def test_proportional_floor(self) -> None:
        assert apportion_commission(1000, 3333, 10000) == 333

    def test_single_line_gets_all(self) -> None:
        assert apportion_commission(250, 2500, 2500) == 250

    def test_zero_order_total(self) -> None:
        assert apportion_commission(100, 0, 0) == 0
