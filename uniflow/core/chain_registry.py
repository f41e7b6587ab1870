from __future__ import annotations

from dataclasses import dataclass

from eth_utils import to_checksum_address

from uniflow.core.config import get_rpc_url, get_subgraph_api_key
from uniflow.core.constants.chains import (
    CHAIN_EXPLORER_URLS,
    CHAIN_NAMES,
    NATIVE_SYMBOLS,
    SUBGRAPH_GATEWAY_URL,
    SUBGRAPH_IDS,
    SUPPORTED_CHAINS,
)
from uniflow.core.constants.contracts import (
    PERMIT2,
    UNISWAP_V4_POOL_MANAGER,
    UNISWAP_V4_POSITION_MANAGER,
    UNISWAP_V4_STATE_VIEW,
)
from uniflow.core.errors import UnsupportedChainError


@dataclass(frozen=True)
class ChainConfig:
    chain_id: int
    name: str
    pool_manager: str
    position_manager: str
    state_view: str
    permit2: str
    rpc_url: str
    explorer_url: str
    native_symbol: str
    subgraph_url: str | None = None

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url}/tx/{tx_hash}"

    def contract_addresses(self) -> list[str]:
        return [self.pool_manager, self.position_manager, self.state_view]


def _subgraph_url(chain_id: int, api_key: str | None) -> str | None:
    subgraph_id = SUBGRAPH_IDS.get(chain_id)
    if not subgraph_id or not api_key:
        return None
    return f"{SUBGRAPH_GATEWAY_URL}/{api_key}/subgraphs/id/{subgraph_id}"


class ChainRegistry:
    """Immutable lookup of per-chain Uniswap v4 deployments.

    Built once at startup from constants plus config (RPC URLs, subgraph key).
    """

    def __init__(self, chains: dict[int, ChainConfig]):
        self._chains = dict(chains)

    @classmethod
    def from_config(cls) -> ChainRegistry:
        api_key = get_subgraph_api_key()
        chains = {}
        for chain_id in SUPPORTED_CHAINS:
            chains[chain_id] = ChainConfig(
                chain_id=chain_id,
                name=CHAIN_NAMES[chain_id],
                pool_manager=to_checksum_address(UNISWAP_V4_POOL_MANAGER[chain_id]),
                position_manager=to_checksum_address(
                    UNISWAP_V4_POSITION_MANAGER[chain_id]
                ),
                state_view=to_checksum_address(UNISWAP_V4_STATE_VIEW[chain_id]),
                permit2=to_checksum_address(PERMIT2),
                rpc_url=get_rpc_url(chain_id),
                explorer_url=CHAIN_EXPLORER_URLS[chain_id],
                native_symbol=NATIVE_SYMBOLS[chain_id],
                subgraph_url=_subgraph_url(chain_id, api_key),
            )
        return cls(chains)

    def is_supported(self, chain_id: int) -> bool:
        return chain_id in self._chains

    def get(self, chain_id: int) -> ChainConfig:
        try:
            return self._chains[int(chain_id)]
        except (KeyError, TypeError, ValueError):
            raise UnsupportedChainError(chain_id) from None

    def chain_ids(self) -> list[int]:
        return list(self._chains)

    def all(self) -> list[ChainConfig]:
        return list(self._chains.values())
