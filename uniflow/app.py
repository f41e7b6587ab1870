from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from uniflow.adapters.uniswap_v4_adapter.adapter import UniswapV4Adapter
from uniflow.adapters.uniswap_v4_adapter.positions import PositionReader
from uniflow.core.chain_registry import ChainRegistry
from uniflow.core.clients.PrivyClient import PrivyClient
from uniflow.core.clients.SubgraphClient import SubgraphClient
from uniflow.core.utils.token_metadata import TokenMetadataCache
from uniflow.core.wallet_sessions import WalletSessions
from uniflow.policies.engine import PolicyEngine


@dataclass
class UniflowApp:
    registry: ChainRegistry
    privy: PrivyClient
    subgraph: SubgraphClient
    policy: PolicyEngine
    sessions: WalletSessions
    adapter: UniswapV4Adapter

    @classmethod
    def build(
        cls,
        *,
        privy: PrivyClient | None = None,
        subgraph: SubgraphClient | None = None,
    ) -> UniflowApp:
        registry = ChainRegistry.from_config()
        privy = privy or PrivyClient()
        subgraph = subgraph or SubgraphClient()
        policy = PolicyEngine(privy, registry)
        sessions = WalletSessions(privy, policy)
        adapter = UniswapV4Adapter(
            registry,
            policy,
            sessions,
            metadata=TokenMetadataCache(registry),
            positions=PositionReader(registry, subgraph),
        )
        return cls(
            registry=registry,
            privy=privy,
            subgraph=subgraph,
            policy=policy,
            sessions=sessions,
            adapter=adapter,
        )

    async def start(self) -> list[str]:
        """Initialize the policy gate; raises (and stays closed) on any failure."""
        policy_ids = await self.policy.initialize()
        logger.info(
            f"UniFlow ready on {len(self.registry.chain_ids())} chain(s) "
            f"with policy {', '.join(policy_ids)}"
        )
        return policy_ids

    async def close(self) -> None:
        self.sessions.clear_all_sessions()
        await self.adapter.metadata.clear()
        await self.privy.close()
        await self.subgraph.close()


async def create_app() -> UniflowApp:
    app = UniflowApp.build()
    try:
        await app.start()
    except Exception:
        await app.close()
        raise
    return app
