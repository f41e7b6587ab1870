from __future__ import annotations

from decimal import Decimal
from typing import Any

from uniflow.adapters.uniswap_v4_adapter.assembler import (
    PositionAssembler,
    remap_amounts,
)
from uniflow.adapters.uniswap_v4_adapter.discovery import (
    DiscoveryResult,
    PoolDiscoveryEngine,
    is_swapped,
)
from uniflow.adapters.uniswap_v4_adapter.positions import (
    PositionReader,
    PositionsResult,
)
from uniflow.adapters.uniswap_v4_adapter.preflight import PreflightValidator
from uniflow.core.adapters.BaseAdapter import BaseAdapter
from uniflow.core.adapters.models import APPROVE, MINT
from uniflow.core.chain_registry import ChainRegistry
from uniflow.core.constants.base import (
    DEFAULT_SLIPPAGE_PCT,
    MAX_UINT256,
    UNLIMITED_APPROVAL,
)
from uniflow.core.errors import PoolNotFoundError, ValidationError
from uniflow.core.utils.token_metadata import TokenMetadataCache
from uniflow.core.utils.tokens import build_approve_transaction, is_native_token
from uniflow.core.utils.units import to_erc20_raw
from uniflow.core.wallet_sessions import WalletSessions
from uniflow.policies.engine import PolicyEngine


def parse_amount(amount: str | int | float | Decimal, decimals: int, label: str) -> int:
    try:
        return to_erc20_raw(amount, decimals)
    except ValueError as exc:
        raise ValidationError(f"Invalid {label}: {exc}", {"field": label}) from exc


class UniswapV4Adapter(BaseAdapter):
    """Policy-gated full-range minting on Uniswap v4 for custodial wallets.

    Mint flow: discover pool -> check both balances -> assemble the position ->
    check allowances for the assembled amounts -> submit through Privy.
    """

    adapter_type = "UNISWAP_V4"

    def __init__(
        self,
        registry: ChainRegistry,
        policy: PolicyEngine,
        sessions: WalletSessions,
        *,
        metadata: TokenMetadataCache | None = None,
        positions: PositionReader | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        super().__init__("uniswap_v4_adapter", registry, config)
        self.policy = policy
        self.sessions = sessions
        self.metadata = metadata or TokenMetadataCache(registry)
        self.discovery = PoolDiscoveryEngine(registry, self.metadata)
        self.preflight = PreflightValidator(registry)
        self.assembler = PositionAssembler()
        self.positions = positions

    async def discover_pool(
        self,
        token_a: str,
        token_b: str,
        chain_id: int,
        fee: int | None = None,
        tick_spacing: int | None = None,
    ) -> DiscoveryResult:
        return await self.discovery.discover_pool(
            token_a, token_b, chain_id, fee=fee, tick_spacing=tick_spacing
        )

    async def mint_position(
        self,
        user_id: str,
        token_a: str,
        token_b: str,
        amount_a: str | int | float | Decimal,
        amount_b: str | int | float | Decimal,
        chain_id: int,
        *,
        fee: int | None = None,
        tick_spacing: int | None = None,
        slippage_pct: float | str | Decimal = DEFAULT_SLIPPAGE_PCT,
        deadline: int | None = None,
    ) -> MINT:
        chain = self.chain(chain_id)
        self.policy.require_active()
        session = self.sessions.require_session(user_id)
        wallet = session.wallet_address

        pool = await self.discovery.discover_pool(
            token_a, token_b, chain_id, fee=fee, tick_spacing=tick_spacing
        )
        if not pool.exists or pool.state is None:
            raise PoolNotFoundError(
                f"No Uniswap v4 pool for {pool.token0.symbol}/{pool.token1.symbol} "
                f"on {chain.name}",
                {"poolKey": pool.pool_key.to_dict(), "chainId": chain_id},
            )

        human0, human1 = remap_amounts(
            amount_a, amount_b, is_swapped(token_a, pool.pool_key)
        )
        amount0 = parse_amount(human0, pool.token0.decimals, "amount0")
        amount1 = parse_amount(human1, pool.token1.decimals, "amount1")
        if amount0 == 0 and amount1 == 0:
            raise ValidationError("At least one amount must be greater than zero")

        await self.preflight.ensure_balances(
            wallet, [(pool.token0, amount0), (pool.token1, amount1)], chain_id
        )

        intent = self.assembler.assemble(
            pool.state,
            amount0,
            amount1,
            recipient=wallet,
            slippage_pct=slippage_pct,
            deadline=deadline,
        )

        await self.preflight.ensure_allowances(
            wallet,
            [(pool.token0, intent.amount0), (pool.token1, intent.amount1)],
            chain.position_manager,
            chain_id,
        )

        self.logger.info(
            f"Minting {pool.token0.symbol}/{pool.token1.symbol} full-range position "
            f"on {chain.name} liquidity={intent.liquidity}"
        )
        tx_hash = await self.sessions.transact(
            user_id,
            to=chain.position_manager,
            value=intent.native_value,
            data=intent.calldata,
            chain_id=chain_id,
        )
        return MINT(
            adapter=self.adapter_type,
            transaction_hash=tx_hash,
            transaction_chain_id=chain_id,
            explorer_url=chain.tx_url(tx_hash),
            pool_id=pool.pool_id,
            pool_key=pool.pool_key.to_dict(),
            token0_symbol=pool.token0.symbol,
            token1_symbol=pool.token1.symbol,
            expected_position=intent.to_dict(),
        )

    async def approve_token(
        self,
        user_id: str,
        token: str,
        amount: str | int | float | Decimal,
        chain_id: int,
        *,
        spender: str | None = None,
    ) -> APPROVE:
        chain = self.chain(chain_id)
        self.policy.require_active()
        session = self.sessions.require_session(user_id)
        if is_native_token(token):
            raise ValidationError(
                "Native tokens do not require approval", {"token": str(token)}
            )

        info = await self.metadata.get(chain_id, token)
        unlimited = (
            isinstance(amount, str) and amount.strip().lower() == UNLIMITED_APPROVAL
        )
        raw_amount = (
            MAX_UINT256 if unlimited else parse_amount(amount, info.decimals, "amount")
        )
        target_spender = spender or chain.position_manager

        tx = build_approve_transaction(chain_id, info.address, target_spender, raw_amount)
        self.logger.info(
            f"Approving {info.symbol} for {target_spender} on {chain.name} "
            f"amount={'unlimited' if unlimited else raw_amount}"
        )
        tx_hash = await self.sessions.transact(
            user_id,
            to=tx["to"],
            value=tx["value"],
            data=tx["data"],
            chain_id=chain_id,
        )
        return APPROVE(
            adapter=self.adapter_type,
            transaction_hash=tx_hash,
            transaction_chain_id=chain_id,
            explorer_url=chain.tx_url(tx_hash),
            token_address=info.address,
            token_symbol=info.symbol,
            spender=target_spender,
            amount=str(raw_amount),
            unlimited=unlimited,
        )

    async def get_positions(
        self, wallet_address: str, chain_id: int | None = None
    ) -> PositionsResult:
        if self.positions is None:
            raise ValidationError("Position listing is not configured")
        return await self.positions.get_positions(wallet_address, chain_id)
