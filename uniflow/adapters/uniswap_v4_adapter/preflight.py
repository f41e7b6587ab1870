from __future__ import annotations

import asyncio
from dataclasses import dataclass

from loguru import logger
from web3 import AsyncWeb3

from uniflow.core.chain_registry import ChainRegistry
from uniflow.core.constants.base import MAX_UINT256
from uniflow.core.errors import (
    InsufficientBalanceError,
    NotApprovedError,
    classify_read_error,
)
from uniflow.core.utils.token_metadata import TokenInfo
from uniflow.core.utils.tokens import (
    get_token_allowance,
    get_token_balance,
    is_native_token,
)
from uniflow.core.utils.web3 import web3_from_chain_id


@dataclass(frozen=True)
class BalanceCheck:
    sufficient: bool
    balance: int
    required: int


class PreflightValidator:
    def __init__(self, registry: ChainRegistry):
        self.registry = registry
        self.logger = logger.bind(component="PreflightValidator")

    async def check_balance(
        self,
        wallet: str,
        token: str,
        required: int,
        chain_id: int,
        *,
        web3: AsyncWeb3 | None = None,
    ) -> BalanceCheck:
        chain = self.registry.get(chain_id)
        try:
            if web3 is None:
                async with web3_from_chain_id(chain_id, chain.rpc_url) as w3:
                    balance = await get_token_balance(token, chain_id, wallet, web3=w3)
            else:
                balance = await get_token_balance(token, chain_id, wallet, web3=web3)
        except Exception as exc:
            raise classify_read_error(exc, f"balance of {token}") from exc
        return BalanceCheck(
            sufficient=balance >= int(required), balance=balance, required=int(required)
        )

    async def check_allowance(
        self,
        wallet: str,
        token: str,
        spender: str,
        chain_id: int,
        *,
        web3: AsyncWeb3 | None = None,
    ) -> int:
        if is_native_token(token):
            return MAX_UINT256
        chain = self.registry.get(chain_id)
        try:
            if web3 is None:
                async with web3_from_chain_id(chain_id, chain.rpc_url) as w3:
                    return await get_token_allowance(
                        token, chain_id, wallet, spender, web3=w3
                    )
            return await get_token_allowance(token, chain_id, wallet, spender, web3=web3)
        except Exception as exc:
            raise classify_read_error(exc, f"allowance of {token}") from exc

    async def ensure_balances(
        self,
        wallet: str,
        legs: list[tuple[TokenInfo, int]],
        chain_id: int,
    ) -> list[BalanceCheck]:
        """Check every leg concurrently; raise for the first short leg in order."""
        chain = self.registry.get(chain_id)
        async with web3_from_chain_id(chain_id, chain.rpc_url) as web3:
            checks = await asyncio.gather(
                *(
                    self.check_balance(wallet, token.address, required, chain_id, web3=web3)
                    for token, required in legs
                )
            )
        for leg, ((token, _), check) in enumerate(zip(legs, checks, strict=True)):
            if not check.sufficient:
                self.logger.info(
                    f"Insufficient {token.symbol}: required={check.required} "
                    f"balance={check.balance}"
                )
                raise InsufficientBalanceError(
                    token.symbol, check.required, check.balance, leg
                )
        return list(checks)

    async def ensure_allowances(
        self,
        wallet: str,
        legs: list[tuple[TokenInfo, int]],
        spender: str,
        chain_id: int,
    ) -> None:
        erc20_legs = [
            (leg, token, required)
            for leg, (token, required) in enumerate(legs)
            if not token.is_native
        ]
        if not erc20_legs:
            return
        chain = self.registry.get(chain_id)
        async with web3_from_chain_id(chain_id, chain.rpc_url) as web3:
            allowances = await asyncio.gather(
                *(
                    self.check_allowance(wallet, token.address, spender, chain_id, web3=web3)
                    for _, token, _ in erc20_legs
                )
            )
        for (leg, token, required), allowance in zip(erc20_legs, allowances, strict=True):
            if allowance < int(required):
                self.logger.info(
                    f"{token.symbol} allowance {allowance} below required {required}"
                )
                raise NotApprovedError(token.symbol, token.address, spender, leg)
