from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from eth_utils import is_address, to_checksum_address
from loguru import logger
from web3 import AsyncWeb3

from uniflow.core.chain_registry import ChainRegistry
from uniflow.core.config import get_placeholder_pool_params
from uniflow.core.constants.base import (
    FALLBACK_TICK_SPACING,
    FEE_TIER_PROBE_ORDER,
    FEE_TO_TICK_SPACING,
    MAX_LP_FEE,
    MAX_TICK_SPACING,
    MIN_TICK_SPACING,
)
from uniflow.core.constants.uniswap_v4_abi import STATE_VIEW_ABI
from uniflow.core.errors import ValidationError, classify_read_error
from uniflow.core.utils.token_metadata import TokenInfo, TokenMetadataCache
from uniflow.core.utils.uniswap_v4_calldata import PoolKey
from uniflow.core.utils.uniswap_v4_math import sqrt_price_x96_to_price
from uniflow.core.utils.web3 import web3_from_chain_id


@dataclass(frozen=True)
class PoolState:
    key: PoolKey
    pool_id: str
    sqrt_price_x96: int
    tick: int
    liquidity: int


@dataclass(frozen=True)
class DiscoveryResult:
    exists: bool
    pool_id: str
    pool_key: PoolKey
    token0: TokenInfo
    token1: TokenInfo
    state: PoolState | None = None

    @property
    def current_tick(self) -> int | None:
        return self.state.tick if self.state else None

    @property
    def sqrt_price_x96(self) -> int | None:
        return self.state.sqrt_price_x96 if self.state else None

    @property
    def liquidity(self) -> int | None:
        return self.state.liquidity if self.state else None

    @property
    def price(self) -> Decimal | None:
        if self.state is None:
            return None
        return sqrt_price_x96_to_price(
            self.state.sqrt_price_x96, self.token0.decimals, self.token1.decimals
        )

    def to_dict(self) -> dict[str, Any]:
        price = self.price
        return {
            "exists": self.exists,
            "poolId": self.pool_id,
            "poolKey": self.pool_key.to_dict(),
            "currentTick": self.current_tick,
            "sqrtPriceX96": str(self.sqrt_price_x96) if self.state else None,
            "price": str(price) if price is not None else None,
            "liquidity": str(self.liquidity) if self.state else None,
            "token0Symbol": self.token0.symbol,
            "token1Symbol": self.token1.symbol,
            "token0Decimals": self.token0.decimals,
            "token1Decimals": self.token1.decimals,
        }


def tick_spacing_for_fee(fee: int) -> int:
    return FEE_TO_TICK_SPACING.get(int(fee), FALLBACK_TICK_SPACING)


class PoolStateReader:
    def __init__(self, registry: ChainRegistry):
        self.registry = registry
        self.logger = logger.bind(component="PoolStateReader")

    async def read_state(
        self, pool_key: PoolKey, chain_id: int, *, web3: AsyncWeb3 | None = None
    ) -> PoolState | None:
        """Live slot0 + liquidity for a key, or None if the pool is uninitialized."""
        chain = self.registry.get(chain_id)
        pid = pool_key.pool_id

        async def _read(w3: AsyncWeb3) -> tuple[Any, Any]:
            state_view = w3.eth.contract(address=chain.state_view, abi=STATE_VIEW_ABI)
            pid_bytes = bytes.fromhex(pid[2:])
            return await asyncio.gather(
                state_view.functions.getSlot0(pid_bytes).call(block_identifier="latest"),
                state_view.functions.getLiquidity(pid_bytes).call(
                    block_identifier="latest"
                ),
            )

        try:
            if web3 is None:
                async with web3_from_chain_id(chain_id, chain.rpc_url) as w3:
                    slot0, liquidity = await _read(w3)
            else:
                slot0, liquidity = await _read(web3)
        except Exception as exc:
            raise classify_read_error(exc, f"pool state {pid}") from exc

        sqrt_price_x96, tick = int(slot0[0]), int(slot0[1])
        self.logger.debug(
            f"Pool {pid} fee={pool_key.fee} sqrtPriceX96={sqrt_price_x96} tick={tick}"
        )
        if sqrt_price_x96 == 0:
            return None
        return PoolState(
            key=pool_key,
            pool_id=pid,
            sqrt_price_x96=sqrt_price_x96,
            tick=tick,
            liquidity=int(liquidity),
        )


class PoolDiscoveryEngine:
    def __init__(
        self,
        registry: ChainRegistry,
        metadata: TokenMetadataCache,
        reader: PoolStateReader | None = None,
    ):
        self.registry = registry
        self.metadata = metadata
        self.reader = reader or PoolStateReader(registry)
        self.logger = logger.bind(component="PoolDiscoveryEngine")

    @staticmethod
    def _validate_tokens(token_a: str, token_b: str) -> None:
        for label, token in (("token0", token_a), ("token1", token_b)):
            if not isinstance(token, str) or not is_address(token):
                raise ValidationError(
                    f"Invalid {label} address: {token}", {"field": label}
                )
        if token_a.lower() == token_b.lower():
            raise ValidationError(
                "token0 and token1 must be different tokens", {"token": token_a}
            )

    @staticmethod
    def fee_candidates(
        fee: int | None, tick_spacing: int | None
    ) -> list[tuple[int, int]]:
        if fee is None:
            if tick_spacing is not None:
                raise ValidationError(
                    "tickSpacing requires fee to be specified",
                    {"tickSpacing": tick_spacing},
                )
            return list(FEE_TIER_PROBE_ORDER)
        fee = int(fee)
        if fee < 0 or fee > MAX_LP_FEE:
            raise ValidationError(f"Invalid fee: {fee}", {"fee": fee})
        spacing = (
            int(tick_spacing) if tick_spacing is not None else tick_spacing_for_fee(fee)
        )
        if not MIN_TICK_SPACING <= spacing <= MAX_TICK_SPACING:
            raise ValidationError(
                f"Invalid tickSpacing: {spacing}", {"tickSpacing": spacing}
            )
        return [(fee, spacing)]

    async def discover_pool(
        self,
        token_a: str,
        token_b: str,
        chain_id: int,
        fee: int | None = None,
        tick_spacing: int | None = None,
    ) -> DiscoveryResult:
        self._validate_tokens(token_a, token_b)
        candidates = self.fee_candidates(fee, tick_spacing)
        chain = self.registry.get(chain_id)

        canonical = PoolKey.from_tokens(token_a, token_b, *candidates[0])
        c0, c1 = canonical.currency0, canonical.currency1

        async with web3_from_chain_id(chain_id, chain.rpc_url) as web3:
            token0, token1 = await asyncio.gather(
                self.metadata.get(chain_id, c0, web3=web3),
                self.metadata.get(chain_id, c1, web3=web3),
            )

            for probe_fee, probe_spacing in candidates:
                key = PoolKey(c0, c1, probe_fee, probe_spacing)
                state = await self.reader.read_state(key, chain_id, web3=web3)
                if state is not None:
                    self.logger.info(
                        f"Found {token0.symbol}/{token1.symbol} pool on chain {chain_id} "
                        f"fee={probe_fee} tickSpacing={probe_spacing}"
                    )
                    return DiscoveryResult(
                        exists=True,
                        pool_id=state.pool_id,
                        pool_key=key,
                        token0=token0,
                        token1=token1,
                        state=state,
                    )

        if fee is not None:
            default_fee, default_spacing = candidates[0]
        else:
            default_fee, default_spacing = get_placeholder_pool_params()
        key = PoolKey(c0, c1, default_fee, default_spacing)
        self.logger.info(
            f"No {token0.symbol}/{token1.symbol} pool on chain {chain_id} "
            f"across {len(candidates)} fee tier(s)"
        )
        return DiscoveryResult(
            exists=False,
            pool_id=key.pool_id,
            pool_key=key,
            token0=token0,
            token1=token1,
        )


def is_swapped(token_a: str, pool_key: PoolKey) -> bool:
    """True when the caller's first token is the pool's currency1."""
    return to_checksum_address(token_a) != pool_key.currency0
