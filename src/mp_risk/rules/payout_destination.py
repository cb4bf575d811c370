import re

from pydantic import EmailStr, TypeAdapter, ValidationError

from src.mp_common.enums import PayoutChannel
from src.mp_common.errors import InvalidPayoutDestinationError, PayoutDestinationNotFoundError

_EMAIL_ADAPTER: TypeAdapter[str] = TypeAdapter(EmailStr)
_IBAN_RE = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]{11,30}$")


def is_valid_email(value: str) -> bool:
    try:
        _EMAIL_ADAPTER.validate_python(value)
    except ValidationError:
        return False
    return True


def is_valid_iban(value: str) -> bool:
    """ISO 13616 shape plus the mod-97 checksum."""
    iban = value.replace(" ", "").upper()
    if not _IBAN_RE.match(iban):
        return False
    rearranged = iban[4:] + iban[:4]
    digits = "".join(str(int(ch, 36)) for ch in rearranged)
    return int(digits) % 97 == 1


_VALIDATORS = {
    PayoutChannel.PAYPAL.value: is_valid_email,
    PayoutChannel.BANK.value: is_valid_iban,
}


def check_destination_owned(owned: bool) -> None:
    """The payout account must be one the seller registered on a listing."""
    if not owned:
        raise PayoutDestinationNotFoundError()


def check_destination_format(destination: str, channel: str) -> None:
    validator = _VALIDATORS.get(channel)
    if validator is None:
        raise ValueError(f"Unknown payout channel: {channel}")
    if not validator(destination.strip()):
        raise InvalidPayoutDestinationError(channel)
