from __future__ import annotations

from dataclasses import dataclass

from aiocache import Cache
from eth_utils import to_checksum_address
from loguru import logger
from web3 import AsyncWeb3

from uniflow.core.chain_registry import ChainRegistry
from uniflow.core.constants import ZERO_ADDRESS
from uniflow.core.constants.base import NATIVE_DECIMALS
from uniflow.core.errors import classify_read_error
from uniflow.core.utils.tokens import get_erc20_symbol_and_decimals, is_native_token
from uniflow.core.utils.web3 import web3_from_chain_id


@dataclass(frozen=True)
class TokenInfo:
    address: str
    symbol: str
    decimals: int

    @property
    def is_native(self) -> bool:
        return is_native_token(self.address)


class TokenMetadataCache:
    """Symbol/decimals per (chain, token), cached for the life of the process.

    ERC-20 metadata is immutable in practice, so entries never expire.
    """

    def __init__(self, registry: ChainRegistry):
        self.registry = registry
        self._cache = Cache(Cache.MEMORY)
        self.logger = logger.bind(component="TokenMetadataCache")

    @staticmethod
    def _key(chain_id: int, address: str) -> str:
        return f"{int(chain_id)}:{address.lower()}"

    async def get(
        self, chain_id: int, address: str, *, web3: AsyncWeb3 | None = None
    ) -> TokenInfo:
        chain = self.registry.get(chain_id)
        if is_native_token(address):
            return TokenInfo(
                address=ZERO_ADDRESS,
                symbol=chain.native_symbol,
                decimals=NATIVE_DECIMALS,
            )

        key = self._key(chain_id, address)
        if cached := await self._cache.get(key):
            return cached

        self.logger.debug(f"Fetching token metadata for {address} on chain {chain_id}")
        try:
            if web3 is None:
                async with web3_from_chain_id(chain_id, chain.rpc_url) as w3:
                    symbol, decimals = await get_erc20_symbol_and_decimals(w3, address)
            else:
                symbol, decimals = await get_erc20_symbol_and_decimals(web3, address)
        except Exception as exc:
            raise classify_read_error(exc, f"token metadata {address}") from exc

        info = TokenInfo(
            address=to_checksum_address(address), symbol=symbol, decimals=decimals
        )
        await self._cache.set(key, info)
        return info

    async def clear(self) -> None:
        await self._cache.clear()
