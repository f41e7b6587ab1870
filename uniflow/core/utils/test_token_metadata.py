from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from web3.exceptions import ContractLogicError

from uniflow.core.constants import ZERO_ADDRESS
from uniflow.core.errors import ContractError, TransientError
from uniflow.core.utils.token_metadata import TokenMetadataCache

USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


class _Web3Ctx:
    def __init__(self, web3):
        self._web3 = web3

    async def __aenter__(self):
        return self._web3

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.mark.asyncio
async def test_native_token_needs_no_read(registry):
    cache = TokenMetadataCache(registry)
    web3_factory = MagicMock()
    with patch("uniflow.core.utils.token_metadata.web3_from_chain_id", web3_factory):
        info = await cache.get(56, "native")

    assert info.address == ZERO_ADDRESS
    assert info.symbol == "BNB"
    assert info.decimals == 18
    assert info.is_native
    web3_factory.assert_not_called()


@pytest.mark.asyncio
async def test_erc20_metadata_cached_case_insensitive(registry):
    cache = TokenMetadataCache(registry)
    await cache.clear()
    reader = AsyncMock(return_value=("USDC", 6))
    with (
        patch(
            "uniflow.core.utils.token_metadata.web3_from_chain_id",
            lambda *_a, **_k: _Web3Ctx(MagicMock()),
        ),
        patch(
            "uniflow.core.utils.token_metadata.get_erc20_symbol_and_decimals",
            reader,
        ),
    ):
        first = await cache.get(8453, USDC_BASE.lower())
        second = await cache.get(8453, USDC_BASE)

    assert first == second
    assert first.address == USDC_BASE
    assert first.symbol == "USDC"
    assert first.decimals == 6
    reader.assert_awaited_once()


@pytest.mark.asyncio
async def test_uses_supplied_web3(registry):
    cache = TokenMetadataCache(registry)
    await cache.clear()
    web3 = MagicMock()
    reader = AsyncMock(return_value=("USDC", 6))
    web3_factory = MagicMock()
    with (
        patch("uniflow.core.utils.token_metadata.web3_from_chain_id", web3_factory),
        patch(
            "uniflow.core.utils.token_metadata.get_erc20_symbol_and_decimals",
            reader,
        ),
    ):
        await cache.get(8453, USDC_BASE, web3=web3)

    reader.assert_awaited_once_with(web3, USDC_BASE)
    web3_factory.assert_not_called()


@pytest.mark.asyncio
async def test_read_errors_are_classified(registry):
    cache = TokenMetadataCache(registry)
    await cache.clear()
    web3 = MagicMock()
    with patch(
        "uniflow.core.utils.token_metadata.get_erc20_symbol_and_decimals",
        AsyncMock(side_effect=ContractLogicError("execution reverted")),
    ):
        with pytest.raises(ContractError):
            await cache.get(8453, USDC_BASE, web3=web3)

    with patch(
        "uniflow.core.utils.token_metadata.get_erc20_symbol_and_decimals",
        AsyncMock(side_effect=ConnectionError("reset")),
    ):
        with pytest.raises(TransientError):
            await cache.get(8453, USDC_BASE, web3=web3)
