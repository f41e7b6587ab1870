from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from web3 import AsyncWeb3

from uniflow.core.chain_registry import ChainConfig, ChainRegistry
from uniflow.core.clients.SubgraphClient import SubgraphClient
from uniflow.core.constants.uniswap_v4_abi import POSITION_MANAGER_ABI
from uniflow.core.errors import SubgraphNotConfiguredError, UniflowError
from uniflow.core.utils.uniswap_v4_calldata import PoolKey
from uniflow.core.utils.web3 import web3_from_chain_id

_TICK_MASK = 0xFFFFFF
_TICK_SIGN_BIT = 0x800000


def _sign_extend_24(raw: int) -> int:
    return raw - (1 << 24) if raw & _TICK_SIGN_BIT else raw


def decode_position_info(info: int) -> tuple[int, int, bool]:
    """Unpack PositionInfo: poolId(200) | tickUpper(24) | tickLower(24) | hasSubscriber(8)."""
    info = int(info)
    tick_lower = _sign_extend_24((info >> 8) & _TICK_MASK)
    tick_upper = _sign_extend_24((info >> 32) & _TICK_MASK)
    has_subscriber = bool(info & 0xFF)
    return tick_lower, tick_upper, has_subscriber


@dataclass(frozen=True)
class V4Position:
    token_id: int
    chain_id: int
    chain_name: str
    pool_key: PoolKey
    tick_lower: int
    tick_upper: int
    liquidity: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "tokenId": str(self.token_id),
            "chainId": self.chain_id,
            "chainName": self.chain_name,
            "poolKey": self.pool_key.to_dict(),
            "tickLower": self.tick_lower,
            "tickUpper": self.tick_upper,
            "liquidity": str(self.liquidity),
        }


@dataclass
class PositionsResult:
    positions: list[V4Position] = field(default_factory=list)
    chain_errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "positions": [p.to_dict() for p in self.positions],
            "chainErrors": list(self.chain_errors),
        }


class PositionReader:
    def __init__(self, registry: ChainRegistry, subgraph: SubgraphClient):
        self.registry = registry
        self.subgraph = subgraph
        self.logger = logger.bind(component="PositionReader")

    async def _read_position(
        self, w3: AsyncWeb3, chain: ChainConfig, token_id: int
    ) -> V4Position:
        posm = w3.eth.contract(address=chain.position_manager, abi=POSITION_MANAGER_ABI)
        (raw_key, info), liquidity = await asyncio.gather(
            posm.functions.getPoolAndPositionInfo(token_id).call(
                block_identifier="latest"
            ),
            posm.functions.getPositionLiquidity(token_id).call(
                block_identifier="latest"
            ),
        )
        tick_lower, tick_upper, _ = decode_position_info(info)
        currency0, currency1, fee, tick_spacing, hooks = raw_key
        return V4Position(
            token_id=token_id,
            chain_id=chain.chain_id,
            chain_name=chain.name,
            pool_key=PoolKey(currency0, currency1, fee, tick_spacing, hooks),
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            liquidity=int(liquidity),
        )

    async def get_chain_positions(
        self, wallet_address: str, chain_id: int
    ) -> list[V4Position]:
        chain = self.registry.get(chain_id)
        if not chain.subgraph_url:
            raise SubgraphNotConfiguredError(
                f"No subgraph configured for {chain.name}; set subgraph.api_key",
                {"chainId": chain_id},
            )

        owned = await self.subgraph.get_positions(chain.subgraph_url, wallet_address)
        token_ids = [int(p["tokenId"]) for p in owned]
        self.logger.debug(
            f"Found {len(token_ids)} position(s) for {wallet_address} on {chain.name}"
        )
        if not token_ids:
            return []

        positions: list[V4Position] = []
        async with web3_from_chain_id(chain_id, chain.rpc_url) as w3:
            for token_id in token_ids:
                try:
                    positions.append(await self._read_position(w3, chain, token_id))
                except Exception as exc:
                    self.logger.warning(
                        f"Failed to read position {token_id} on {chain.name}: {exc}"
                    )
        return positions

    async def get_positions(
        self, wallet_address: str, chain_id: int | None = None
    ) -> PositionsResult:
        chain_ids = (
            [self.registry.get(chain_id).chain_id]
            if chain_id is not None
            else self.registry.chain_ids()
        )
        results = await asyncio.gather(
            *(self.get_chain_positions(wallet_address, cid) for cid in chain_ids),
            return_exceptions=True,
        )

        out = PositionsResult()
        for cid, result in zip(chain_ids, results, strict=True):
            if isinstance(result, Exception):
                self.logger.warning(f"Chain {cid} position listing failed: {result}")
                entry = {"chainId": cid, "error": str(result)}
                if isinstance(result, UniflowError):
                    entry["code"] = result.code
                out.chain_errors.append(entry)
            else:
                out.positions.extend(result)
        self.logger.info(
            f"Found {len(out.positions)} position(s) for {wallet_address} "
            f"across {len(chain_ids)} chain(s)"
        )
        return out
