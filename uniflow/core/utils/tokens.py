import asyncio
from typing import Any

from web3 import AsyncWeb3
from web3.exceptions import BadFunctionCallOutput

from uniflow.core.constants import ZERO_ADDRESS
from uniflow.core.constants.erc20_abi import ERC20_ABI
from uniflow.core.utils.uniswap_v4_calldata import encode_erc20_approve
from uniflow.core.utils.web3 import web3_from_chain_id


def is_native_token(token_address: str | None) -> bool:
    if token_address is None:
        return True
    normalized = str(token_address).strip().lower()
    if normalized in ("", "native"):
        return True
    return normalized == ZERO_ADDRESS


def _coerce_bytes32_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).rstrip(b"\x00").decode("utf-8", errors="ignore")
    return str(value)


async def _erc20_string(
    web3: AsyncWeb3,
    token_address: str,
    field: str,
    *,
    block_identifier: str = "latest",
) -> str:
    checksum_token = web3.to_checksum_address(token_address)
    contract = web3.eth.contract(address=checksum_token, abi=ERC20_ABI)
    fn = getattr(contract.functions, field)
    try:
        value = await fn().call(block_identifier=block_identifier)
        return _coerce_bytes32_str(value)
    except (BadFunctionCallOutput, ValueError):
        # Some ERC20s use bytes32 for name/symbol (non-standard).
        bytes32_abi = [
            {
                "constant": True,
                "inputs": [],
                "name": field,
                "outputs": [{"name": "", "type": "bytes32"}],
                "type": "function",
            }
        ]
        contract32 = web3.eth.contract(address=checksum_token, abi=bytes32_abi)
        fn32 = getattr(contract32.functions, field)
        value = await fn32().call(block_identifier=block_identifier)
        return _coerce_bytes32_str(value)


async def get_erc20_symbol_and_decimals(
    web3: AsyncWeb3, token_address: str, *, block_identifier: str = "latest"
) -> tuple[str, int]:
    checksum_token = web3.to_checksum_address(token_address)
    contract = web3.eth.contract(address=checksum_token, abi=ERC20_ABI)
    symbol, decimals = await asyncio.gather(
        _erc20_string(web3, checksum_token, "symbol", block_identifier=block_identifier),
        contract.functions.decimals().call(block_identifier=block_identifier),
    )
    return str(symbol), int(decimals)


async def get_token_balance(
    token_address: str | None,
    chain_id: int,
    wallet_address: str,
    *,
    web3: AsyncWeb3 | None = None,
    block_identifier: str | int = "latest",
) -> int:
    async def _read_with_web3(w3: AsyncWeb3) -> int:
        checksum_wallet = w3.to_checksum_address(wallet_address)

        if is_native_token(token_address):
            balance = await w3.eth.get_balance(
                checksum_wallet,
                block_identifier=block_identifier,
            )
            return int(balance)

        checksum_token = w3.to_checksum_address(str(token_address))
        contract = w3.eth.contract(address=checksum_token, abi=ERC20_ABI)
        balance = await contract.functions.balanceOf(checksum_wallet).call(
            block_identifier=block_identifier
        )
        return int(balance)

    if web3 is None:
        async with web3_from_chain_id(chain_id) as w3:
            return await _read_with_web3(w3)
    return await _read_with_web3(web3)


async def get_token_allowance(
    token_address: str,
    chain_id: int,
    owner_address: str,
    spender_address: str,
    *,
    web3: AsyncWeb3 | None = None,
) -> int:
    async def _read_with_web3(w3: AsyncWeb3) -> int:
        contract = w3.eth.contract(
            address=w3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        allowance = await contract.functions.allowance(
            w3.to_checksum_address(owner_address),
            w3.to_checksum_address(spender_address),
        ).call(block_identifier="latest")
        return int(allowance)

    if web3 is None:
        async with web3_from_chain_id(chain_id) as w3:
            return await _read_with_web3(w3)
    return await _read_with_web3(web3)


def build_approve_transaction(
    chain_id: int,
    token_address: str,
    spender_address: str,
    amount: int,
) -> dict:
    return {
        "to": AsyncWeb3.to_checksum_address(token_address),
        "data": encode_erc20_approve(spender_address, amount),
        "value": 0,
        "chainId": int(chain_id),
    }
