"""Provider-facing order reference tokens.

Canonical form: TX-{order_id}-{epoch_millis}. Providers with a length ceiling
get a shortened form TX-{order_id prefix}-{last 8 suffix digits}; the stored
transaction metadata maps it back to the order.

Every checkout initialization gets a new reference: providers reject a
reference they have already seen.
"""

from collections.abc import Collection

from src.mp_common.datetime_utils import epoch_millis

REFERENCE_PREFIX = "TX-"
SHORT_SUFFIX_LENGTH = 8


def build_reference(order_id: str, millis: int | None = None) -> str:
    return f"{REFERENCE_PREFIX}{order_id}-{millis if millis is not None else epoch_millis()}"


def parse_reference(reference: str) -> tuple[str, str] | None:
    """Split a reference into (order_id, suffix). None if it is not ours."""
    if not reference.startswith(REFERENCE_PREFIX):
        return None
    body = reference[len(REFERENCE_PREFIX):]
    order_id, sep, suffix = body.rpartition("-")
    if not sep or not order_id or not suffix:
        return None
    return order_id, suffix


def fit_reference(reference: str, max_length: int | None) -> str:
    """Deterministically shorten `reference` to at most `max_length` characters."""
    if max_length is None or len(reference) <= max_length:
        return reference
    parsed = parse_reference(reference)
    if parsed is None:
        return reference[:max_length]
    order_id, suffix = parsed
    short_suffix = suffix[-SHORT_SUFFIX_LENGTH:]
    room = max_length - len(REFERENCE_PREFIX) - 1 - len(short_suffix)
    if room < 1:
        raise ValueError(f"max_length {max_length} too small for a reference")
    return f"{REFERENCE_PREFIX}{order_id[:room]}-{short_suffix}"


def fresh_reference(
    order_id: str, used: Collection[str], max_length: int | None
) -> tuple[str, str]:
    """(canonical, provider-facing) references, neither of which is in `used`.

    Two initializations inside the same millisecond step the suffix forward.
    """
    millis = epoch_millis()
    while True:
        canonical = build_reference(order_id, millis)
        fitted = fit_reference(canonical, max_length)
        if canonical not in used and fitted not in used:
            return canonical, fitted
        millis += 1
