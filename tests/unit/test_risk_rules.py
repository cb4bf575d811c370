import pytest

from src.mp_common.errors import (
    ActiveDisputeError,
    AppError,
    DuplicateItemError,
    EmptyOrderError,
    InsufficientBalanceError,
    InvalidPayoutDestinationError,
    InvalidQuantityError,
    ItemNotPurchasableError,
    PayoutDestinationNotFoundError,
    SelfPurchaseError,
    SellerNotEligibleError,
    SellerNotFoundError,
    WithdrawalAmountOutOfBoundsError,
    WithdrawalInFlightError,
)
from src.mp_order.domain.models import PurchasableItem
from src.mp_risk.rules.order_items import (
    check_items_present,
    check_not_self_purchase,
    check_purchasable,
    check_unique_items,
    check_unit_quantity,
)
from src.mp_risk.rules.payout_destination import (
    check_destination_format,
    check_destination_owned,
    is_valid_email,
    is_valid_iban,
)
from src.mp_risk.rules.seller_standing import check_account_standing, check_no_active_disputes
from src.mp_risk.rules.withdrawal_limits import (
    check_no_in_flight,
    check_sufficient_balance,
    check_within_bounds,
)
from src.mp_settings.domain.models import WithdrawalBounds
from src.mp_withdrawal.domain.models import SellerProfile, Withdrawal


def _listing(item_id: str, seller_id: str = "seller-1", status: str = "APPROVED") -> PurchasableItem:
    return PurchasableItem(id=item_id, seller_id=seller_id, title=f"Item {item_id}", price=1000, status=status)


class TestOrderItemRules:
    def test_empty_order(self) -> None:
        with pytest.raises(EmptyOrderError):
            check_items_present([])

    def test_duplicates_reported(self) -> None:
        with pytest.raises(DuplicateItemError) as exc_info:
            check_unique_items(["a", "b", "a"])
        assert "a" in exc_info.value.message

    def test_unique_items_ok(self) -> None:
        check_unique_items(["a", "b"])

    @pytest.mark.parametrize("quantity", [0, 2, -1])
    def test_quantity_must_be_one(self, quantity: int) -> None:
        with pytest.raises(InvalidQuantityError):
            check_unit_quantity("a", quantity)

    def test_missing_and_unapproved_items_reported_together(self) -> None:
        found = [_listing("a"), _listing("b", status="SOLD")]
        with pytest.raises(ItemNotPurchasableError) as exc_info:
            check_purchasable(["a", "b", "c"], found)
        assert "b" in exc_info.value.message
        assert "c" in exc_info.value.message

    def test_all_approved(self) -> None:
        check_purchasable(["a"], [_listing("a")])

    def test_self_purchase(self) -> None:
        with pytest.raises(SelfPurchaseError):
            check_not_self_purchase("buyer-1", [_listing("a"), _listing("b", seller_id="buyer-1")])

    def test_other_seller_ok(self) -> None:
        check_not_self_purchase("buyer-1", [_listing("a")])


class TestSellerStanding:
    def test_missing_seller(self) -> None:
        with pytest.raises(SellerNotFoundError):
            check_account_standing("s1", None)

    def test_unverified_email(self) -> None:
        profile = SellerProfile(id="s1", email="s@x.io", email_verified=False, banned=False)
        with pytest.raises(SellerNotEligibleError) as exc_info:
            check_account_standing("s1", profile)
        assert "verified" in exc_info.value.message

    def test_banned(self) -> None:
        profile = SellerProfile(id="s1", email="s@x.io", email_verified=True, banned=True)
        with pytest.raises(SellerNotEligibleError) as exc_info:
            check_account_standing("s1", profile)
        assert "banned" in exc_info.value.message

    def test_good_standing(self) -> None:
        profile = SellerProfile(id="s1", email="s@x.io", email_verified=True, banned=False)
        assert check_account_standing("s1", profile) is profile

    def test_active_disputes(self) -> None:
        check_no_active_disputes(0)
        with pytest.raises(ActiveDisputeError):
            check_no_active_disputes(1)


class TestWithdrawalLimits:
    def test_insufficient_balance(self) -> None:
        with pytest.raises(InsufficientBalanceError):
            check_sufficient_balance(available=4999, amount=5000)

    def test_exact_balance_ok(self) -> None:
        check_sufficient_balance(available=5000, amount=5000)

    def test_below_minimum(self) -> None:
        with pytest.raises(WithdrawalAmountOutOfBoundsError):
            check_within_bounds(999, WithdrawalBounds(minimum=1000, maximum=0))

    def test_above_maximum(self) -> None:
        with pytest.raises(WithdrawalAmountOutOfBoundsError):
            check_within_bounds(50001, WithdrawalBounds(minimum=1000, maximum=50000))

    def test_zero_maximum_is_unbounded(self) -> None:
        check_within_bounds(10**9, WithdrawalBounds(minimum=1000, maximum=0))

    def test_inclusive_bounds(self) -> None:
        bounds = WithdrawalBounds(minimum=1000, maximum=50000)
        check_within_bounds(1000, bounds)
        check_within_bounds(50000, bounds)

    def test_in_flight(self) -> None:
        check_no_in_flight(None)
        existing = Withdrawal(id="w1", user_id="s1", payout_account="s@x.io", amount=100, status="PROCESSING")
        with pytest.raises(WithdrawalInFlightError) as exc_info:
            check_no_in_flight(existing)
        assert "w1" in exc_info.value.message


class TestPayoutDestination:
    def test_not_owned(self) -> None:
        with pytest.raises(PayoutDestinationNotFoundError):
            check_destination_owned(False)
        check_destination_owned(True)

    @pytest.mark.parametrize("value", ["seller@example.com", "a.b+c@mail.co.uk"])
    def test_valid_emails(self, value: str) -> None:
        assert is_valid_email(value)

    @pytest.mark.parametrize(
        "value",
        [
            "seller@example",
            "no at sign",
            "a b@c.de",
            "@x.io",
            "seller@example..com",
            "seller@-example.com",
            "seller@exa_mple.com",
        ],
    )
    def test_invalid_emails(self, value: str) -> None:
        assert not is_valid_email(value)

    @pytest.mark.parametrize(
        "value", ["seller@example..com", "seller@-example.com", "seller@exa_mple.com"]
    )
    def test_paypal_channel_rejects_malformed_domain(self, value: str) -> None:
        with pytest.raises(InvalidPayoutDestinationError):
            check_destination_format(value, "paypal")

    @pytest.mark.parametrize("value", ["GB82WEST12345698765432", "gb82 west 1234 5698 7654 32", "DE89370400440532013000"])
    def test_valid_ibans(self, value: str) -> None:
        assert is_valid_iban(value)

    @pytest.mark.parametrize("value", ["GB83WEST12345698765432", "GB82", "seller@example.com"])
    def test_invalid_ibans(self, value: str) -> None:
        assert not is_valid_iban(value)

    def test_channel_format(self) -> None:
        check_destination_format("seller@example.com", "paypal")
        check_destination_format("GB82WEST12345698765432", "bank")
        with pytest.raises(InvalidPayoutDestinationError):
            check_destination_format("GB82WEST12345698765432", "paypal")
        with pytest.raises(InvalidPayoutDestinationError):
            check_destination_format("seller@example.com", "bank")

    def test_unknown_channel(self) -> None:
        with pytest.raises(ValueError):
            check_destination_format("seller@example.com", "carrier-pigeon")


def test_every_rule_error_is_app_error() -> None:
    assert issubclass(WithdrawalInFlightError, AppError)
