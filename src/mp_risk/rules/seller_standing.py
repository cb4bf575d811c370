from src.mp_common.errors import ActiveDisputeError, SellerNotEligibleError, SellerNotFoundError
from src.mp_withdrawal.domain.models import SellerProfile


def check_account_standing(seller_id: str, profile: SellerProfile | None) -> SellerProfile:
    if profile is None:
        raise SellerNotFoundError(seller_id)
    if not profile.email_verified:
        raise SellerNotEligibleError("email address is not verified")
    if profile.banned:
        raise SellerNotEligibleError("account is banned")
    return profile


def check_no_active_disputes(active_disputes: int) -> None:
    if active_disputes > 0:
        raise ActiveDisputeError(active_disputes)
