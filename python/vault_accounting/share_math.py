from enum import Enum

MAX_UINT256 = 2**256 - 1
VIRTUAL_ASSETS = 1


class Rounding(Enum):
    DOWN = "down"
    UP = "up"


def mul_div_down(x: int, y: int, d: int) -> int:
    return (x * y) // d


def mul_div_up(x: int, y: int, d: int) -> int:
    return (x * y + (d - 1)) // d


def mul_div(x: int, y: int, d: int, rounding: Rounding) -> int:
    """x * y / d with explicit rounding direction."""
    if rounding is Rounding.UP:
        return mul_div_up(x, y, d)
    return mul_div_down(x, y, d)


def virtual_shares(decimals_offset: int) -> int:
    return 10 ** decimals_offset


def to_shares(assets: int, total_assets: int, total_supply: int,
              rounding: Rounding, decimals_offset: int = 0) -> int:
    """Shares worth `assets` at the current rate.

    The virtual share/asset pair keeps the empty vault at a
    10**decimals_offset : 1 rate and bounds the effect of donations.
    """
    return mul_div(
        assets,
        total_supply + virtual_shares(decimals_offset),
        total_assets + VIRTUAL_ASSETS,
        rounding,
    )


def to_assets(shares: int, total_assets: int, total_supply: int,
              rounding: Rounding, decimals_offset: int = 0) -> int:
    """Assets worth `shares` at the current rate."""
    return mul_div(
        shares,
        total_assets + VIRTUAL_ASSETS,
        total_supply + virtual_shares(decimals_offset),
        rounding,
    )


def is_uint256(value: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_UINT256
