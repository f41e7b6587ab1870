from __future__ import annotations

import pytest
from eth_abi import decode as abi_decode
from eth_utils import to_checksum_address

from uniflow.core.constants import ZERO_ADDRESS
from uniflow.core.constants.base import MAX_UINT256
from uniflow.core.utils.uniswap_v4_calldata import (
    ACTION_MINT_POSITION,
    ACTION_SETTLE_PAIR,
    ACTION_SWEEP,
    MODIFY_LIQUIDITIES_SELECTOR,
    PoolKey,
    build_mint_unlock_data,
    encode_erc20_approve,
    encode_modify_liquidities,
    pool_id,
)

TOKEN_LOW = to_checksum_address("0x" + "11" * 20)
TOKEN_HIGH = to_checksum_address("0x" + "22" * 20)
RECIPIENT = to_checksum_address("0x" + "ab" * 20)

MINT_PARAM_TYPES = [
    "(address,address,uint24,int24,address)",
    "int24",
    "int24",
    "uint256",
    "uint128",
    "uint128",
    "address",
    "bytes",
]


class TestPoolKey:
    def test_from_tokens_sorts(self):
        key = PoolKey.from_tokens(TOKEN_HIGH, TOKEN_LOW, 3000, 60)
        assert key.currency0 == TOKEN_LOW
        assert key.currency1 == TOKEN_HIGH

    def test_native_always_currency0(self):
        key = PoolKey.from_tokens(TOKEN_LOW, ZERO_ADDRESS, 500, 10)
        assert key.currency0 == ZERO_ADDRESS

    def test_unsorted_constructor_rejected(self):
        with pytest.raises(ValueError, match="sort strictly before"):
            PoolKey(TOKEN_HIGH, TOKEN_LOW, 3000, 60)

    def test_identical_currencies_rejected(self):
        with pytest.raises(ValueError):
            PoolKey(TOKEN_LOW, TOKEN_LOW, 3000, 60)

    def test_addresses_checksummed(self):
        key = PoolKey(TOKEN_LOW.lower(), TOKEN_HIGH.lower(), 3000, 60)
        assert key.currency0 == TOKEN_LOW
        assert key.hooks == ZERO_ADDRESS

    def test_to_dict(self):
        key = PoolKey.from_tokens(TOKEN_LOW, TOKEN_HIGH, 3000, 60)
        assert key.to_dict() == {
            "currency0": TOKEN_LOW,
            "currency1": TOKEN_HIGH,
            "fee": 3000,
            "tickSpacing": 60,
            "hooks": ZERO_ADDRESS,
        }


class TestPoolId:
    def test_independent_of_input_order(self):
        a = PoolKey.from_tokens(TOKEN_LOW, TOKEN_HIGH, 3000, 60)
        b = PoolKey.from_tokens(TOKEN_HIGH, TOKEN_LOW, 3000, 60)
        assert a.pool_id == b.pool_id

    def test_changes_with_fee(self):
        a = PoolKey.from_tokens(TOKEN_LOW, TOKEN_HIGH, 3000, 60)
        b = PoolKey.from_tokens(TOKEN_LOW, TOKEN_HIGH, 500, 10)
        assert a.pool_id != b.pool_id

    def test_format(self):
        key = PoolKey.from_tokens(TOKEN_LOW, TOKEN_HIGH, 3000, 60)
        pid = key.pool_id
        assert pid.startswith("0x")
        assert len(pid) == 66
        assert pid == pool_id(key.as_tuple())


class TestMintCalldata:
    def _unlock(self, key: PoolKey) -> tuple[bytes, list[bytes]]:
        unlock = build_mint_unlock_data(
            key=key,
            tick_lower=-887220,
            tick_upper=887220,
            liquidity=12345,
            amount0_max=1005,
            amount1_max=2010,
            recipient=RECIPIENT,
        )
        actions, params = abi_decode(["bytes", "bytes[]"], unlock)
        return actions, list(params)

    def test_erc20_pair_mints_and_settles(self):
        key = PoolKey.from_tokens(TOKEN_LOW, TOKEN_HIGH, 3000, 60)
        actions, params = self._unlock(key)

        assert list(actions) == [ACTION_MINT_POSITION, ACTION_SETTLE_PAIR]
        assert len(params) == 2

        decoded = abi_decode(MINT_PARAM_TYPES, params[0])
        assert decoded[0][2] == 3000
        assert decoded[1] == -887220
        assert decoded[2] == 887220
        assert decoded[3] == 12345
        assert decoded[4] == 1005
        assert decoded[5] == 2010
        assert to_checksum_address(decoded[6]) == RECIPIENT

        c0, c1 = abi_decode(["address", "address"], params[1])
        assert to_checksum_address(c0) == TOKEN_LOW
        assert to_checksum_address(c1) == TOKEN_HIGH

    def test_native_pair_sweeps_leftover(self):
        key = PoolKey.from_tokens(ZERO_ADDRESS, TOKEN_HIGH, 500, 10)
        actions, params = self._unlock(key)

        assert list(actions) == [
            ACTION_MINT_POSITION,
            ACTION_SETTLE_PAIR,
            ACTION_SWEEP,
        ]
        currency, to = abi_decode(["address", "address"], params[2])
        assert to_checksum_address(currency) == ZERO_ADDRESS
        assert to_checksum_address(to) == RECIPIENT

    def test_modify_liquidities_wraps_unlock_data(self):
        key = PoolKey.from_tokens(TOKEN_LOW, TOKEN_HIGH, 3000, 60)
        unlock = build_mint_unlock_data(
            key=key,
            tick_lower=-887220,
            tick_upper=887220,
            liquidity=1,
            amount0_max=1,
            amount1_max=1,
            recipient=RECIPIENT,
        )
        data = encode_modify_liquidities(unlock, 1_700_000_000)

        raw = bytes.fromhex(data[2:])
        assert raw[:4] == MODIFY_LIQUIDITIES_SELECTOR
        inner, deadline = abi_decode(["bytes", "uint256"], raw[4:])
        assert inner == unlock
        assert deadline == 1_700_000_000


def test_erc20_approve_encoding():
    data = encode_erc20_approve(RECIPIENT, MAX_UINT256)
    assert data.startswith("0x095ea7b3")
    assert data.endswith("f" * 64)
    spender, amount = abi_decode(["address", "uint256"], bytes.fromhex(data[10:]))
    assert to_checksum_address(spender) == RECIPIENT
    assert amount == MAX_UINT256
