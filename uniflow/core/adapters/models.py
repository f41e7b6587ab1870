from typing import Any, Literal

from pydantic import BaseModel


class OperationBase(BaseModel):
    adapter: str = "unknown"
    transaction_hash: str
    transaction_chain_id: int
    explorer_url: str


class MINT(OperationBase):
    type: Literal["MINT"] = "MINT"
    pool_id: str
    pool_key: dict[str, Any]
    token0_symbol: str
    token1_symbol: str
    expected_position: dict[str, Any]


class APPROVE(OperationBase):
    type: Literal["APPROVE"] = "APPROVE"
    token_address: str
    token_symbol: str
    spender: str
    amount: str
    unlimited: bool = False
