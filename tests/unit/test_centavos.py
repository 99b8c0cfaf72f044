"""Tests for cn_common.centavos."""

import pytest

from src.cn_common.centavos import centavos_to_display, line_total


@pytest.mark.parametrize(
    ("centavos", "expected"),
    [
        (0, "₱0.00"),
        (5, "₱0.05"),
        (5000, "₱50.00"),
        (10050, "₱100.50"),
        (123456789, "₱1,234,567.89"),
        (-1200, "-₱12.00"),
    ],
)
def test_display(centavos: int, expected: str) -> None:
    assert centavos_to_display(centavos) == expected


def test_line_total() -> None:
    assert line_total(5000, 2) == 10000
