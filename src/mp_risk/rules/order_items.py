from collections import Counter
from collections.abc import Sequence

from src.mp_common.errors import (
    DuplicateItemError,
    EmptyOrderError,
    InvalidQuantityError,
    ItemNotPurchasableError,
    SelfPurchaseError,
)
from src.mp_order.domain.models import PurchasableItem

UNIQUE_ITEM_QUANTITY = 1


def check_items_present(item_ids: Sequence[str]) -> None:
    if not item_ids:
        raise EmptyOrderError()


def check_unique_items(item_ids: Sequence[str]) -> None:
    duplicates = [item_id for item_id, n in Counter(item_ids).items() if n > 1]
    if duplicates:
        raise DuplicateItemError(duplicates)


def check_unit_quantity(item_id: str, quantity: int) -> None:
    """Every listing is a one-of-a-kind item."""
    if quantity != UNIQUE_ITEM_QUANTITY:
        raise InvalidQuantityError(item_id, quantity)


def check_purchasable(requested_ids: Sequence[str], found: Sequence[PurchasableItem]) -> None:
    """Missing items and items not APPROVED are reported together."""
    available = {item.id for item in found if item.is_purchasable}
    rejected = [item_id for item_id in requested_ids if item_id not in available]
    if rejected:
        raise ItemNotPurchasableError(rejected)


def check_not_self_purchase(buyer_id: str, items: Sequence[PurchasableItem]) -> None:
    own = [item.title for item in items if item.seller_id == buyer_id]
    if own:
        raise SelfPurchaseError(own)
