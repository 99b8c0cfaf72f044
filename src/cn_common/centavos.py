"""Integer money utilities for the canteen wallet.

All prices, totals and balances use int (centavos). No float, no Decimal.
"""


def centavos_to_display(centavos: int) -> str:
    """Convert centavos to display string: 10050 -> '₱100.50', -1200 -> '-₱12.00'."""
    if centavos < 0:
        abs_centavos = -centavos
        return f"-₱{abs_centavos // 100:,}.{abs_centavos % 100:02d}"
    return f"₱{centavos // 100:,}.{centavos % 100:02d}"


def line_total(unit_price: int, qty: int) -> int:
    """Price of one reservation line."""
    return unit_price * qty
