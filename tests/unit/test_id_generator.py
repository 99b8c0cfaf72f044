"""Tests for cn_common.id_generator and cn_common.datetime_utils."""

from datetime import UTC, datetime

import pytest

from src.cn_common.datetime_utils import to_iso, utc_now
from src.cn_common.id_generator import SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        prev = int(gen.next_id())
        for _ in range(100):
            current = int(gen.next_id())
            assert current > prev
            prev = current

    def test_machine_id_range(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=1024)


class TestGenerateId:
    def test_prefixed(self) -> None:
        rid = generate_id("RES")
        assert rid.startswith("RES-")
        assert rid[4:].isdigit()

    def test_unprefixed(self) -> None:
        assert generate_id().isdigit()


class TestDatetimeUtils:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo == UTC

    def test_to_iso(self) -> None:
        assert to_iso(datetime(2026, 1, 2, tzinfo=UTC)) == "2026-01-02T00:00:00+00:00"
        assert to_iso(None) is None
