import pytest

from src.mp_common.id_generator import SnowflakeIdGenerator, generate_id


def test_ids_are_decimal_strings() -> None:
    value = generate_id()
    assert isinstance(value, str)
    assert value.isdigit()


def test_ids_are_unique_and_increasing() -> None:
    gen = SnowflakeIdGenerator(worker_id=3)
    ids = [int(gen.next_id()) for _ in range(5000)]
    assert len(set(ids)) == len(ids)
    assert ids == sorted(ids)


def test_invalid_worker_id() -> None:
    with pytest.raises(ValueError):
        SnowflakeIdGenerator(worker_id=1024)
