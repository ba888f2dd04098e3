from __future__ import annotations

import math

import pytest

from socialdex.core.utils.uniswap_v3_math import (
    MAX_TICK,
    MIN_TICK,
    amounts_for_liq_inrange,
    is_valid_tick,
    liq_for_amounts,
    max_usable_tick,
    min_usable_tick,
    price_to_exact_tick,
    round_tick_half_away,
    sqrt_price_x96_from_tick,
    sqrt_price_x96_to_price,
    tick_for_market_cap,
    tick_to_price,
)


def test_sqrt_price_at_tick_zero_is_q96():
    assert sqrt_price_x96_from_tick(0) == 2**96


def test_sqrt_price_matches_tickmath_bounds():
    assert sqrt_price_x96_from_tick(MIN_TICK) == 4295128739
    assert (
        sqrt_price_x96_from_tick(MAX_TICK)
        == 1461446703485210103287273052203988822378723970342
    )


def test_sqrt_price_out_of_range_raises():
    with pytest.raises(ValueError):
        sqrt_price_x96_from_tick(MAX_TICK + 1)
    with pytest.raises(ValueError):
        sqrt_price_x96_from_tick(MIN_TICK - 1)


def test_sqrt_price_is_monotonic():
    ticks = [-207000, -200, -1, 0, 1, 200, 207000]
    prices = [sqrt_price_x96_from_tick(t) for t in ticks]
    assert prices == sorted(prices)
    assert len(set(prices)) == len(prices)


def test_sqrt_price_to_price_agrees_with_tick_price():
    tick = -69000
    price = sqrt_price_x96_to_price(sqrt_price_x96_from_tick(tick), 18, 18)
    assert price == pytest.approx(tick_to_price(tick), rel=1e-9)


@pytest.mark.parametrize(
    "spacing,expected",
    [(1, 887272), (10, 887270), (60, 887220), (200, 887200)],
)
def test_usable_tick_bounds(spacing, expected):
    assert max_usable_tick(spacing) == expected
    assert min_usable_tick(spacing) == -expected
    assert is_valid_tick(max_usable_tick(spacing), spacing)


def test_is_valid_tick():
    assert is_valid_tick(-207000, 200)
    assert not is_valid_tick(-207001, 200)
    assert not is_valid_tick(0, 0)


@pytest.mark.parametrize(
    "exact,expected",
    [
        (100.0, 200),
        (-100.0, -200),
        (99.9, 0),
        (-99.9, 0),
        (-207001.0, -207000),
        (-207100.0, -207200),
    ],
)
def test_round_tick_half_away_from_zero(exact, expected):
    assert round_tick_half_away(exact, 200) == expected


def test_round_tick_rejects_bad_spacing():
    with pytest.raises(ValueError):
        round_tick_half_away(10.0, 0)


def test_price_to_exact_tick_inverts_tick_price():
    assert price_to_exact_tick(tick_to_price(-12345)) == pytest.approx(-12345, abs=1e-6)
    with pytest.raises(ValueError):
        price_to_exact_tick(0)


def test_tick_for_market_cap_lands_within_half_a_spacing():
    spacing = 200
    quote = tick_for_market_cap(100_000, 2_500, 1_000_000, spacing)

    assert quote.valid_tick % spacing == 0
    assert quote.valid_tick < 0
    assert abs(quote.exact_tick - quote.valid_tick) <= spacing / 2
    # Half a spacing in log space bounds the market-cap error.
    assert abs(math.log(quote.market_cap / 100_000)) <= (spacing / 2) * math.log(
        1.0001
    ) + 1e-12
    assert quote.price_reference == pytest.approx(quote.market_cap / 1_000_000)


def test_tick_for_market_cap_quote_is_serializable():
    quote = tick_for_market_cap(50_000, 3_000, 1_000_000_000, 60)
    data = quote.as_dict()
    assert data["valid_tick"] == quote.valid_tick
    assert data["sqrt_price_x96"] == sqrt_price_x96_from_tick(quote.valid_tick)
    assert data["requested_market_cap"] == 50_000


def test_tick_for_market_cap_clamps_to_launchable_range():
    high = tick_for_market_cap(1e60, 1.0, 1.0, 200)
    assert high.valid_tick == max_usable_tick(200) - 200
    assert high.valid_tick < max_usable_tick(200)

    low = tick_for_market_cap(1e-60, 1.0, 1.0, 200)
    assert low.valid_tick == min_usable_tick(200)


@pytest.mark.parametrize(
    "market_cap,reference_price,supply",
    [(0, 2_500, 1_000), (100, 0, 1_000), (100, 2_500, 0), (-1, 2_500, 1_000)],
)
def test_tick_for_market_cap_rejects_non_positive_inputs(
    market_cap, reference_price, supply
):
    with pytest.raises(ValueError):
        tick_for_market_cap(market_cap, reference_price, supply, 200)


def test_one_sided_liquidity_uses_only_token0():
    lower = -207000
    upper = max_usable_tick(200)
    sqrt_p = sqrt_price_x96_from_tick(lower)
    sqrt_a = sqrt_p
    sqrt_b = sqrt_price_x96_from_tick(upper)
    desired = 990_000 * 10**18

    liquidity = liq_for_amounts(sqrt_p, sqrt_a, sqrt_b, desired, 0)
    amount0, amount1 = amounts_for_liq_inrange(sqrt_p, sqrt_a, sqrt_b, liquidity)

    assert liquidity > 0
    assert amount1 == 0
    assert 0 < amount0 <= desired
    assert desired - amount0 <= desired // 10**12


@pytest.mark.parametrize(
    "market_cap,reference_price,supply,spacing",
    [
        (100_000, 2_500, 1_000_000, 200),
        (7_500_000, 3_100, 1_000_000_000, 60),
        (42_000, 1_800, 21_000_000, 10),
        (1_000, 2_500, 1_000_000, 1),
    ],
)
def test_no_neighbouring_tick_lands_closer_in_log_space(
    market_cap, reference_price, supply, spacing
):
    """Distance is |ln(implied / requested)|, the scale ticks are spaced on."""
    quote = tick_for_market_cap(market_cap, reference_price, supply, spacing)

    def distance(tick: int) -> float:
        implied = tick_to_price(tick) * reference_price * supply
        return abs(math.log(implied / market_cap))

    chosen = distance(quote.valid_tick)
    assert chosen <= distance(quote.valid_tick - spacing) + 1e-12
    assert chosen <= distance(quote.valid_tick + spacing) + 1e-12
