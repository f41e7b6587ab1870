from __future__ import annotations

from dataclasses import dataclass

from eth_abi import encode as abi_encode
from eth_utils import (
    function_signature_to_4byte_selector,
    is_address,
    keccak,
    to_checksum_address,
)

from uniflow.core.constants import ZERO_ADDRESS

PoolKeyTuple = tuple[str, str, int, int, str]

# Uniswap v4-periphery Actions constants (v4-periphery/src/libraries/Actions.sol)
ACTION_MINT_POSITION = 0x02
ACTION_SETTLE_PAIR = 0x0D
ACTION_SWEEP = 0x14

MODIFY_LIQUIDITIES_SELECTOR = function_signature_to_4byte_selector(
    "modifyLiquidities(bytes,uint256)"
)
ERC20_APPROVE_SELECTOR = function_signature_to_4byte_selector(
    "approve(address,uint256)"
)


def sort_currencies(currency_a: str, currency_b: str) -> tuple[str, str]:
    a = to_checksum_address(currency_a)
    b = to_checksum_address(currency_b)
    return (a, b) if int(a, 16) < int(b, 16) else (b, a)


@dataclass(frozen=True)
class PoolKey:
    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: str = ZERO_ADDRESS

    def __post_init__(self) -> None:
        for field_name in ("currency0", "currency1", "hooks"):
            value = getattr(self, field_name)
            if not is_address(value):
                raise ValueError(f"{field_name} is not a valid address: {value}")
            object.__setattr__(self, field_name, to_checksum_address(value))
        if int(self.currency0, 16) >= int(self.currency1, 16):
            raise ValueError(
                "currency0 must sort strictly before currency1; "
                "use PoolKey.from_tokens to build a canonical key"
            )
        object.__setattr__(self, "fee", int(self.fee))
        object.__setattr__(self, "tick_spacing", int(self.tick_spacing))

    @classmethod
    def from_tokens(
        cls,
        token_a: str,
        token_b: str,
        fee: int,
        tick_spacing: int,
        hooks: str = ZERO_ADDRESS,
    ) -> PoolKey:
        c0, c1 = sort_currencies(token_a, token_b)
        return cls(c0, c1, fee, tick_spacing, hooks)

    def as_tuple(self) -> PoolKeyTuple:
        return (self.currency0, self.currency1, self.fee, self.tick_spacing, self.hooks)

    @property
    def pool_id(self) -> str:
        return pool_id(self.as_tuple())

    def to_dict(self) -> dict[str, object]:
        return {
            "currency0": self.currency0,
            "currency1": self.currency1,
            "fee": self.fee,
            "tickSpacing": self.tick_spacing,
            "hooks": self.hooks,
        }


def pool_id(key: PoolKeyTuple) -> str:
    c0, c1, fee, tick_spacing, hooks = key
    encoded = abi_encode(
        ["address", "address", "uint24", "int24", "address"],
        [
            to_checksum_address(c0),
            to_checksum_address(c1),
            int(fee),
            int(tick_spacing),
            to_checksum_address(hooks),
        ],
    )
    return "0x" + keccak(encoded).hex()


def encode_actions_router_params(*, actions: bytes, params: list[bytes]) -> bytes:
    """Encode `unlockData` expected by PositionManager.modifyLiquidities.

    Equivalent to Solidity: `abi.encode(actions, params)`.
    """
    return abi_encode(["bytes", "bytes[]"], [bytes(actions), list(params)])


def encode_mint_position_params(
    *,
    key: PoolKey,
    tick_lower: int,
    tick_upper: int,
    liquidity: int,
    amount0_max: int,
    amount1_max: int,
    recipient: str,
    hook_data: bytes = b"",
) -> bytes:
    return abi_encode(
        [
            "(address,address,uint24,int24,address)",
            "int24",
            "int24",
            "uint256",
            "uint128",
            "uint128",
            "address",
            "bytes",
        ],
        [
            key.as_tuple(),
            int(tick_lower),
            int(tick_upper),
            int(liquidity),
            int(amount0_max),
            int(amount1_max),
            to_checksum_address(recipient),
            bytes(hook_data),
        ],
    )


def encode_settle_pair_params(*, currency0: str, currency1: str) -> bytes:
    return abi_encode(
        ["address", "address"],
        [to_checksum_address(currency0), to_checksum_address(currency1)],
    )


def encode_sweep_params(*, currency: str, to: str) -> bytes:
    return abi_encode(
        ["address", "address"],
        [to_checksum_address(currency), to_checksum_address(to)],
    )


def build_mint_unlock_data(
    *,
    key: PoolKey,
    tick_lower: int,
    tick_upper: int,
    liquidity: int,
    amount0_max: int,
    amount1_max: int,
    recipient: str,
    hook_data: bytes = b"",
) -> bytes:
    """MINT_POSITION + SETTLE_PAIR, plus SWEEP of leftover native currency0."""
    mint_params = encode_mint_position_params(
        key=key,
        tick_lower=tick_lower,
        tick_upper=tick_upper,
        liquidity=liquidity,
        amount0_max=amount0_max,
        amount1_max=amount1_max,
        recipient=recipient,
        hook_data=hook_data,
    )
    settle_params = encode_settle_pair_params(
        currency0=key.currency0, currency1=key.currency1
    )
    actions = [ACTION_MINT_POSITION, ACTION_SETTLE_PAIR]
    params = [mint_params, settle_params]
    if key.currency0 == ZERO_ADDRESS:
        actions.append(ACTION_SWEEP)
        params.append(encode_sweep_params(currency=key.currency0, to=recipient))
    return encode_actions_router_params(actions=bytes(actions), params=params)


def encode_modify_liquidities(unlock_data: bytes, deadline: int) -> str:
    args = abi_encode(["bytes", "uint256"], [bytes(unlock_data), int(deadline)])
    return "0x" + (MODIFY_LIQUIDITIES_SELECTOR + args).hex()


def encode_erc20_approve(spender: str, amount: int) -> str:
    args = abi_encode(["address", "uint256"], [to_checksum_address(spender), int(amount)])
    return "0x" + (ERC20_APPROVE_SELECTOR + args).hex()
