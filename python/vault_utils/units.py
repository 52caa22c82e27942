from decimal import Decimal, ROUND_DOWN, localcontext

# Enough digits for any uint256 at any scale used here
PRECISION = 160


def parse_units(amount, decimals: int) -> int:
    """Whole-token amount (e.g. "100" or "0.5") to base units.

    Precision finer than `decimals` is rejected rather than truncated.
    """
    with localcontext() as ctx:
        ctx.prec = PRECISION
        scaled = Decimal(str(amount)).scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"{amount} has more than {decimals} decimal places")
        return int(scaled)


def format_units(amount: int, decimals: int, places: int = 6) -> str:
    """Base units to a human readable string with `places` decimals, truncated."""
    with localcontext() as ctx:
        ctx.prec = PRECISION
        value = Decimal(amount).scaleb(-decimals)
        quantum = Decimal(1).scaleb(-places)
        return f"{value.quantize(quantum, rounding=ROUND_DOWN):f}"
