from src.mp_common.pagination import cursor_decode, cursor_encode


def test_cursor_round_trip() -> None:
    assert cursor_decode(cursor_encode("7212345678901234")) == "7212345678901234"


def test_none_cursor() -> None:
    assert cursor_decode(None) is None


def test_garbage_cursor_is_ignored() -> None:
    assert cursor_decode("not-base64!!") is None
