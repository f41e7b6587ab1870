"""Exact integer Uniswap v4 math for full-range liquidity.

TickMath sqrt ratios, LiquidityAmounts-style liquidity sizing and SqrtPriceMath
amount deltas, all in arbitrary precision ints so results match on-chain values.
"""

from __future__ import annotations

import time
from decimal import Decimal, ROUND_FLOOR, localcontext

from uniflow.core.constants.base import (
    BPS_DENOMINATOR,
    DEFAULT_DEADLINE_SECONDS,
    MAX_TICK,
    MAX_UINT256,
    MIN_TICK,
)

Q96 = 1 << 96
Q32 = 1 << 32
MIN_SQRT_PRICE = 4295128739
MAX_SQRT_PRICE = 1461446703485210103287273052203988822378723970342


def full_range_ticks(tick_spacing: int) -> tuple[int, int]:
    """Widest usable ticks for a spacing: ceil(MIN/s)*s and floor(MAX/s)*s."""
    s = int(tick_spacing)
    if s <= 0 or s > MAX_TICK:
        raise ValueError(f"tick spacing out of range (0, {MAX_TICK}]: {tick_spacing}")
    tick_lower = -(-MIN_TICK // s) * s
    tick_upper = (MAX_TICK // s) * s
    return tick_lower, tick_upper


def sqrt_price_x96_from_tick(tick: int) -> int:
    if tick < MIN_TICK or tick > MAX_TICK:
        raise ValueError(f"tick {tick} out of range [{MIN_TICK}, {MAX_TICK}]")

    abs_tick = tick if tick >= 0 else -tick
    ratio = (
        0xFFFCB933BD6FAD37AA2D162D1A594001
        if abs_tick & 0x1
        else 0x100000000000000000000000000000000
    )

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
        ratio = MAX_UINT256 // ratio

    sqrt_price_x96 = ratio >> 32
    if ratio % Q32:
        sqrt_price_x96 += 1
    return int(sqrt_price_x96)


def _ordered(sqrt_a: int, sqrt_b: int) -> tuple[int, int]:
    return (sqrt_a, sqrt_b) if sqrt_a <= sqrt_b else (sqrt_b, sqrt_a)


def _div_round_up(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def liquidity_for_amount0(sqrt_a: int, sqrt_b: int, amount0: int) -> int:
    a, b = _ordered(int(sqrt_a), int(sqrt_b))
    if a == b:
        return 0
    return (int(amount0) * a * b) // (Q96 * (b - a))


def liquidity_for_amount1(sqrt_a: int, sqrt_b: int, amount1: int) -> int:
    a, b = _ordered(int(sqrt_a), int(sqrt_b))
    if a == b:
        return 0
    return (int(amount1) * Q96) // (b - a)


def max_liquidity_for_amounts(
    sqrt_price_x96: int,
    sqrt_a: int,
    sqrt_b: int,
    amount0: int,
    amount1: int,
) -> int:
    """Largest liquidity mintable from both budgets at the given price."""
    a, b = _ordered(int(sqrt_a), int(sqrt_b))
    p = int(sqrt_price_x96)
    if p <= a:
        return liquidity_for_amount0(a, b, amount0)
    if p < b:
        return min(
            liquidity_for_amount0(p, b, amount0),
            liquidity_for_amount1(a, p, amount1),
        )
    return liquidity_for_amount1(a, b, amount1)


def amount0_delta(sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool) -> int:
    a, b = _ordered(int(sqrt_a), int(sqrt_b))
    if a <= 0:
        raise ValueError("sqrt price must be positive")
    numerator1 = int(liquidity) << 96
    numerator2 = b - a
    if round_up:
        return _div_round_up(_div_round_up(numerator1 * numerator2, b), a)
    return (numerator1 * numerator2 // b) // a


def amount1_delta(sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool) -> int:
    a, b = _ordered(int(sqrt_a), int(sqrt_b))
    product = int(liquidity) * (b - a)
    if round_up:
        return _div_round_up(product, Q96)
    return product // Q96


def amounts_for_liquidity(
    sqrt_price_x96: int, sqrt_a: int, sqrt_b: int, liquidity: int
) -> tuple[int, int]:
    """Token amounts (rounded up) a mint of `liquidity` pulls at the given price."""
    a, b = _ordered(int(sqrt_a), int(sqrt_b))
    p = int(sqrt_price_x96)
    if p <= a:
        return amount0_delta(a, b, liquidity, True), 0
    if p < b:
        return (
            amount0_delta(p, b, liquidity, True),
            amount1_delta(a, p, liquidity, True),
        )
    return 0, amount1_delta(a, b, liquidity, True)


def slippage_bps(slippage_pct: float | str | Decimal) -> int:
    pct = Decimal(str(slippage_pct))
    if pct < 0:
        raise ValueError("slippage must be non-negative")
    return int((pct * 100).to_integral_value(rounding=ROUND_FLOOR))


def slippage_max(amount: int, bps: int) -> int:
    return _div_round_up(int(amount) * (BPS_DENOMINATOR + int(bps)), BPS_DENOMINATOR)


def deadline(seconds: int = DEFAULT_DEADLINE_SECONDS) -> int:
    return int(time.time()) + seconds


def sqrt_price_x96_to_price(
    sqrt_price_x96: int, decimals0: int, decimals1: int
) -> Decimal:
    """Human price of currency0 quoted in currency1."""
    if sqrt_price_x96 <= 0:
        return Decimal(0)
    with localcontext() as ctx:
        ctx.prec = 80
        ratio = Decimal(int(sqrt_price_x96)) / Decimal(Q96)
        return ratio * ratio * (Decimal(10) ** (int(decimals0) - int(decimals1)))
