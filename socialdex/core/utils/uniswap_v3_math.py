"""Tick ladder and fixed-point price helpers.

Pure math used by the launch path (tick validation, tick -> sqrtPriceX96 for
pool initialization, liquidity for a one-sided position) and by clients that
plan a launch from a target market capitalization.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, getcontext

getcontext().prec = 64

Q96 = Decimal(2) ** 96
Q32 = 1 << 32
TICK_BASE = 1.0001
MIN_TICK = -887272
MAX_TICK = 887272


@dataclass(frozen=True)
class TickQuote:
    requested_market_cap: float
    exact_tick: float
    valid_tick: int
    price: float
    price_reference: float
    market_cap: float

    @property
    def sqrt_price_x96(self) -> int:
        return sqrt_price_x96_from_tick(self.valid_tick)

    def as_dict(self) -> dict[str, float | int]:
        return {
            "requested_market_cap": self.requested_market_cap,
            "exact_tick": self.exact_tick,
            "valid_tick": self.valid_tick,
            "price": self.price,
            "price_reference": self.price_reference,
            "market_cap": self.market_cap,
            "sqrt_price_x96": self.sqrt_price_x96,
        }


def sqrt_price_x96_to_price(sqrtpx96: int, decimals0: int, decimals1: int) -> float:
    if sqrtpx96 <= 0:
        return 0.0
    p = (sqrtpx96 / (1 << 96)) ** 2
    scale = 10 ** (decimals1 - decimals0)
    return p / scale


def tick_to_price(tick: int) -> float:
    return TICK_BASE**tick


def price_to_exact_tick(price: float) -> float:
    if price <= 0:
        raise ValueError("price must be positive")
    return math.log(price) / math.log(TICK_BASE)


def is_valid_tick(tick: int, spacing: int) -> bool:
    return spacing > 0 and tick % spacing == 0


def min_usable_tick(spacing: int) -> int:
    return -(MAX_TICK // spacing) * spacing


def max_usable_tick(spacing: int) -> int:
    return (MAX_TICK // spacing) * spacing


def round_tick_half_away(tick: float, spacing: int) -> int:
    """Nearest multiple of ``spacing``; ties go away from zero."""
    if spacing <= 0:
        raise ValueError("tick spacing must be positive")
    quotient = Decimal(tick) / Decimal(spacing)
    return int(quotient.quantize(Decimal(1), rounding=ROUND_HALF_UP)) * spacing


def tick_for_market_cap(
    market_cap: float,
    reference_price: float,
    supply: float,
    tick_spacing: int,
) -> TickQuote:
    """Pick the launchable tick whose price lands closest to ``market_cap``.

    Closeness is measured in ticks, i.e. on a log scale: the exact tick is
    rounded half away from zero to a multiple of ``tick_spacing``. On a
    linear scale the lower neighbour can be marginally closer.

    ``reference_price`` is the price of the paired reserve asset in the
    market-cap currency and ``supply`` the whole-token supply committed to
    the market. The launched asset is token0, so the pool price is reserve
    per asset. The quote reports the realized values at the rounded tick.
    """
    if market_cap <= 0 or reference_price <= 0 or supply <= 0:
        raise ValueError("market cap, reference price and supply must be positive")

    price_reference = market_cap / supply
    exact_tick = price_to_exact_tick(price_reference / reference_price)
    valid_tick = round_tick_half_away(exact_tick, tick_spacing)
    # The position spans [tick, max usable], so the top usable tick is not launchable.
    valid_tick = max(
        min_usable_tick(tick_spacing),
        min(valid_tick, max_usable_tick(tick_spacing) - tick_spacing),
    )

    realized_price = tick_to_price(valid_tick)
    realized_reference = realized_price * reference_price
    return TickQuote(
        requested_market_cap=float(market_cap),
        exact_tick=exact_tick,
        valid_tick=valid_tick,
        price=realized_price,
        price_reference=realized_reference,
        market_cap=realized_reference * supply,
    )


def amt0_for_liq(sqrt_a: int, sqrt_b: int, liquidity: int) -> int:
    a, b = _sorted_bounds(sqrt_a, sqrt_b)
    L = Decimal(liquidity)
    out = (L * (b - a) * Q96) / (a * b)
    return int(out)


def amt1_for_liq(sqrt_a: int, sqrt_b: int, liquidity: int) -> int:
    a, b = _sorted_bounds(sqrt_a, sqrt_b)
    L = Decimal(liquidity)
    out = (L * (b - a)) / Q96
    return int(out)


def liq_for_amt0(sqrt_a: int, sqrt_b: int, amount0: int) -> int:
    a, b = _sorted_bounds(sqrt_a, sqrt_b)
    x = Decimal(amount0)
    L = (x * a * b) / (Q96 * (b - a))
    return int(L)


def liq_for_amt1(sqrt_a: int, sqrt_b: int, amount1: int) -> int:
    a, b = _sorted_bounds(sqrt_a, sqrt_b)
    y = Decimal(amount1)
    L = (y * Q96) / (b - a)
    return int(L)


def liq_for_amounts(
    sqrt_p: int, sqrt_a: int, sqrt_b: int, amount0: int, amount1: int
) -> int:
    a, b = _sorted_bounds(sqrt_a, sqrt_b)
    p = Decimal(sqrt_p)
    if p <= a:
        return liq_for_amt0(a, b, amount0)
    if p >= b:
        return liq_for_amt1(a, b, amount1)
    L0 = liq_for_amt0(p, b, amount0)
    L1 = liq_for_amt1(a, p, amount1)
    return min(L0, L1)


def amounts_for_liq_inrange(
    sqrt_p: int, sqrt_a: int, sqrt_b: int, liquidity: int
) -> tuple[int, int]:
    a, b = _sorted_bounds(sqrt_a, sqrt_b)
    p = Decimal(sqrt_p)
    if p <= a:
        amount0 = amt0_for_liq(a, b, liquidity)
        amount1 = 0
    elif p < b:
        amount0 = amt0_for_liq(p, b, liquidity)
        amount1 = amt1_for_liq(a, p, liquidity)
    else:
        amount0 = 0
        amount1 = amt1_for_liq(a, b, liquidity)
    return amount0, amount1


def sqrt_price_x96_from_tick(
    tick: int, *, min_tick: int = MIN_TICK, max_tick: int = MAX_TICK
) -> int:
    if tick < min_tick or tick > max_tick:
        raise ValueError(f"tick {tick} out of range [{min_tick}, {max_tick}]")

    abs_tick = tick if tick >= 0 else -tick
    ratio = 0x100000000000000000000000000000000

    if abs_tick & 0x1:
        ratio = (ratio * 0xFFFCB933BD6FAD37AA2D162D1A594001) >> 128
    if abs_tick & 0x2:
        ratio = (ratio * 0xFFF97272373D413259A46990580E213A) >> 128
    if abs_tick & 0x4:
        ratio = (ratio * 0xFFF2E50F5F656932EF12357CF3C7FDCC) >> 128
    if abs_tick & 0x8:
        ratio = (ratio * 0xFFE5CACA7E10E4E61C3624EAA0941CD0) >> 128
    if abs_tick & 0x10:
        ratio = (ratio * 0xFFCB9843D60F6159C9DB58835C926644) >> 128
    if abs_tick & 0x20:
        ratio = (ratio * 0xFF973B41FA98C081472E6896DFB254C0) >> 128
    if abs_tick & 0x40:
        ratio = (ratio * 0xFF2EA16466C96A3843EC78B326B52861) >> 128
    if abs_tick & 0x80:
        ratio = (ratio * 0xFE5DEE046A99A2A811C461F1969C3053) >> 128
    if abs_tick & 0x100:
        ratio = (ratio * 0xFCBE86C7900A88AEDCFFC83B479AA3A4) >> 128
    if abs_tick & 0x200:
        ratio = (ratio * 0xF987A7253AC413176F2B074CF7815E54) >> 128
    if abs_tick & 0x400:
        ratio = (ratio * 0xF3392B0822B70005940C7A398E4B70F3) >> 128
    if abs_tick & 0x800:
        ratio = (ratio * 0xE7159475A2C29B7443B29C7FA6E889D9) >> 128
    if abs_tick & 0x1000:
        ratio = (ratio * 0xD097F3BDFD2022B8845AD8F792AA5825) >> 128
    if abs_tick & 0x2000:
        ratio = (ratio * 0xA9F746462D870FDF8A65DC1F90E061E5) >> 128
    if abs_tick & 0x4000:
        ratio = (ratio * 0x70D869A156D2A1B890BB3DF62BAF32F7) >> 128
    if abs_tick & 0x8000:
        ratio = (ratio * 0x31BE135F97D08FD981231505542FCFA6) >> 128
    if abs_tick & 0x10000:
        ratio = (ratio * 0x9AA508B5B7A84E1C677DE54F3E99BC9) >> 128
    if abs_tick & 0x20000:
        ratio = (ratio * 0x5D6AF8DEDB81196699C329225EE604) >> 128
    if abs_tick & 0x40000:
        ratio = (ratio * 0x2216E584F5FA1EA926041BEDFE98) >> 128
    if abs_tick & 0x80000:
        ratio = (ratio * 0x48A170391F7DC42444E8FA2) >> 128

    if tick > 0:
        ratio = (1 << 256) // ratio

    sqrt_price_x96 = ratio >> 32
    if ratio & (Q32 - 1):
        sqrt_price_x96 += 1
    return int(sqrt_price_x96)


def _sorted_bounds(sqrt_a: int, sqrt_b: int) -> tuple[Decimal, Decimal]:
    a, b = sorted((Decimal(sqrt_a), Decimal(sqrt_b)))
    return a, b
