from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from uniflow.adapters.uniswap_v4_adapter.discovery import PoolState
from uniflow.core.constants import ZERO_ADDRESS
from uniflow.core.constants.base import DEFAULT_SLIPPAGE_PCT, MAX_UINT128
from uniflow.core.errors import ValidationError
from uniflow.core.utils.uniswap_v4_calldata import (
    PoolKey,
    build_mint_unlock_data,
    encode_modify_liquidities,
)
from uniflow.core.utils.uniswap_v4_math import (
    amounts_for_liquidity,
    deadline as default_deadline,
    full_range_ticks,
    max_liquidity_for_amounts,
    slippage_bps,
    slippage_max,
    sqrt_price_x96_from_tick,
)


@dataclass(frozen=True)
class PositionIntent:
    pool_key: PoolKey
    tick_lower: int
    tick_upper: int
    liquidity: int
    amount0: int
    amount1: int
    amount0_max: int
    amount1_max: int
    calldata: str
    native_value: int
    deadline: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "poolKey": self.pool_key.to_dict(),
            "tickLower": self.tick_lower,
            "tickUpper": self.tick_upper,
            "liquidity": str(self.liquidity),
            "amount0": str(self.amount0),
            "amount1": str(self.amount1),
            "amount0Max": str(self.amount0_max),
            "amount1Max": str(self.amount1_max),
            "value": str(self.native_value),
            "deadline": self.deadline,
        }


def remap_amounts(amount_a: int, amount_b: int, swapped: bool) -> tuple[int, int]:
    """Reorder caller amounts (token_a, token_b) into (currency0, currency1)."""
    return (amount_b, amount_a) if swapped else (amount_a, amount_b)


class PositionAssembler:
    def __init__(self):
        self.logger = logger.bind(component="PositionAssembler")

    def assemble(
        self,
        pool: PoolState,
        amount0_desired: int,
        amount1_desired: int,
        recipient: str,
        slippage_pct: float | str | Decimal = DEFAULT_SLIPPAGE_PCT,
        deadline: int | None = None,
    ) -> PositionIntent:
        if amount0_desired < 0 or amount1_desired < 0:
            raise ValidationError("Amounts must be non-negative")
        if pool.sqrt_price_x96 <= 0:
            raise ValidationError(f"Pool {pool.pool_id} is not initialized")
        try:
            bps = slippage_bps(slippage_pct)
        except ValueError as exc:
            raise ValidationError(
                str(exc), {"slippageTolerance": str(slippage_pct)}
            ) from exc

        key = pool.key
        tick_lower, tick_upper = full_range_ticks(key.tick_spacing)
        sqrt_lower = sqrt_price_x96_from_tick(tick_lower)
        sqrt_upper = sqrt_price_x96_from_tick(tick_upper)

        liquidity = max_liquidity_for_amounts(
            pool.sqrt_price_x96, sqrt_lower, sqrt_upper, amount0_desired, amount1_desired
        )
        if liquidity <= 0:
            raise ValidationError(
                "Amounts are too small to mint any liquidity at the current price",
                {"amount0": str(amount0_desired), "amount1": str(amount1_desired)},
            )

        amount0, amount1 = amounts_for_liquidity(
            pool.sqrt_price_x96, sqrt_lower, sqrt_upper, liquidity
        )
        amount0_max = slippage_max(amount0, bps)
        amount1_max = slippage_max(amount1, bps)
        if amount0_max > MAX_UINT128 or amount1_max > MAX_UINT128:
            raise ValidationError("Amounts exceed uint128")

        expires = int(deadline) if deadline is not None else default_deadline()
        unlock_data = build_mint_unlock_data(
            key=key,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            liquidity=liquidity,
            amount0_max=amount0_max,
            amount1_max=amount1_max,
            recipient=to_checksum_address(recipient),
        )
        native_value = amount0_max if key.currency0 == ZERO_ADDRESS else 0

        self.logger.debug(
            f"Assembled full-range mint on {pool.pool_id}: ticks=[{tick_lower}, "
            f"{tick_upper}] liquidity={liquidity} amount0={amount0} amount1={amount1}"
        )
        return PositionIntent(
            pool_key=key,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            liquidity=liquidity,
            amount0=amount0,
            amount1=amount1,
            amount0_max=amount0_max,
            amount1_max=amount1_max,
            calldata=encode_modify_liquidities(unlock_data, expires),
            native_value=native_value,
            deadline=expires,
        )
