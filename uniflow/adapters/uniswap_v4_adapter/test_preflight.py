from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from eth_utils import to_checksum_address

from uniflow.adapters.uniswap_v4_adapter.preflight import PreflightValidator
from uniflow.core.constants import ZERO_ADDRESS
from uniflow.core.constants.base import MAX_UINT256
from uniflow.core.errors import (
    InsufficientBalanceError,
    NotApprovedError,
    TransientError,
)
from uniflow.core.utils.token_metadata import TokenInfo

WALLET = to_checksum_address("0x" + "ab" * 20)
SPENDER = to_checksum_address("0x" + "cd" * 20)
TOKEN0 = TokenInfo(to_checksum_address("0x" + "11" * 20), "USDC", 6)
TOKEN1 = TokenInfo(to_checksum_address("0x" + "22" * 20), "WETH", 18)
NATIVE = TokenInfo(ZERO_ADDRESS, "ETH", 18)

_PREFLIGHT = "uniflow.adapters.uniswap_v4_adapter.preflight"


class _Web3Ctx:
    def __init__(self, web3):
        self._web3 = web3

    async def __aenter__(self):
        return self._web3

    async def __aexit__(self, exc_type, exc, tb):
        return False


def _patched_web3():
    return patch(
        f"{_PREFLIGHT}.web3_from_chain_id", lambda *_a, **_k: _Web3Ctx(MagicMock())
    )


def _balances(mapping: dict[str, int]) -> AsyncMock:
    async def _balance(token, chain_id, wallet, *, web3=None, block_identifier="latest"):
        return mapping[token]

    return AsyncMock(side_effect=_balance)


def _allowances(mapping: dict[str, int]) -> AsyncMock:
    async def _allowance(token, chain_id, owner, spender, *, web3=None):
        return mapping[token]

    return AsyncMock(side_effect=_allowance)


class TestBalances:
    @pytest.mark.asyncio
    async def test_sufficient_balances(self, registry):
        balances = _balances({TOKEN0.address: 100, TOKEN1.address: 50})
        with _patched_web3(), patch(f"{_PREFLIGHT}.get_token_balance", balances):
            checks = await PreflightValidator(registry).ensure_balances(
                WALLET, [(TOKEN0, 100), (TOKEN1, 10)], 8453
            )
        assert [c.sufficient for c in checks] == [True, True]
        assert checks[1].balance == 50

    @pytest.mark.asyncio
    async def test_both_short_reports_token0_first(self, registry):
        balances = _balances({TOKEN0.address: 1, TOKEN1.address: 2})
        with _patched_web3(), patch(f"{_PREFLIGHT}.get_token_balance", balances):
            with pytest.raises(InsufficientBalanceError) as exc_info:
                await PreflightValidator(registry).ensure_balances(
                    WALLET, [(TOKEN0, 100), (TOKEN1, 100)], 8453
                )
        err = exc_info.value
        assert err.symbol == "USDC"
        assert err.leg == 0
        assert err.required == 100
        assert err.available == 1

    @pytest.mark.asyncio
    async def test_token1_short(self, registry):
        balances = _balances({TOKEN0.address: 100, TOKEN1.address: 2})
        with _patched_web3(), patch(f"{_PREFLIGHT}.get_token_balance", balances):
            with pytest.raises(InsufficientBalanceError) as exc_info:
                await PreflightValidator(registry).ensure_balances(
                    WALLET, [(TOKEN0, 100), (TOKEN1, 100)], 8453
                )
        assert exc_info.value.symbol == "WETH"
        assert exc_info.value.leg == 1

    @pytest.mark.asyncio
    async def test_rpc_failure_is_transient(self, registry):
        balances = AsyncMock(side_effect=ConnectionError("reset"))
        with _patched_web3(), patch(f"{_PREFLIGHT}.get_token_balance", balances):
            with pytest.raises(TransientError):
                await PreflightValidator(registry).ensure_balances(
                    WALLET, [(TOKEN0, 1), (TOKEN1, 1)], 8453
                )


class TestAllowances:
    @pytest.mark.asyncio
    async def test_native_allowance_needs_no_network(self, registry):
        web3_factory = MagicMock()
        allowance = AsyncMock()
        with (
            patch(f"{_PREFLIGHT}.web3_from_chain_id", web3_factory),
            patch(f"{_PREFLIGHT}.get_token_allowance", allowance),
        ):
            value = await PreflightValidator(registry).check_allowance(
                WALLET, ZERO_ADDRESS, SPENDER, 1
            )
        assert value == MAX_UINT256
        web3_factory.assert_not_called()
        allowance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_only_native_legs_skip_reads(self, registry):
        web3_factory = MagicMock()
        validator = PreflightValidator(registry)
        with patch(f"{_PREFLIGHT}.web3_from_chain_id", web3_factory):
            await validator.ensure_allowances(WALLET, [(NATIVE, 10**18)], SPENDER, 1)
        web3_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_allowance_names_first_leg(self, registry):
        allowances = _allowances({TOKEN0.address: 0, TOKEN1.address: 0})
        with _patched_web3(), patch(f"{_PREFLIGHT}.get_token_allowance", allowances):
            with pytest.raises(NotApprovedError) as exc_info:
                await PreflightValidator(registry).ensure_allowances(
                    WALLET, [(TOKEN0, 5), (TOKEN1, 5)], SPENDER, 8453
                )
        err = exc_info.value
        assert err.symbol == "USDC"
        assert err.spender == SPENDER
        assert err.leg == 0

    @pytest.mark.asyncio
    async def test_native_leg_skipped_erc20_checked(self, registry):
        allowances = _allowances({TOKEN1.address: 4})
        with _patched_web3(), patch(f"{_PREFLIGHT}.get_token_allowance", allowances):
            with pytest.raises(NotApprovedError) as exc_info:
                await PreflightValidator(registry).ensure_allowances(
                    WALLET, [(NATIVE, 10**18), (TOKEN1, 5)], SPENDER, 8453
                )
        assert exc_info.value.symbol == "WETH"
        assert exc_info.value.leg == 1
        allowances.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_exact_allowance_is_enough(self, registry):
        allowances = _allowances({TOKEN0.address: 5, TOKEN1.address: 7})
        with _patched_web3(), patch(f"{_PREFLIGHT}.get_token_allowance", allowances):
            await PreflightValidator(registry).ensure_allowances(
                WALLET, [(TOKEN0, 5), (TOKEN1, 7)], SPENDER, 8453
            )
        assert allowances.await_count == 2
