from __future__ import annotations

from typing import Any

from web3.exceptions import BadFunctionCallOutput, ContractLogicError, InvalidAddress


class UniflowError(RuntimeError):
    code: str = "UNIFLOW_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(UniflowError):
    code = "VALIDATION_ERROR"


class NotFoundError(UniflowError):
    code = "NOT_FOUND"


class UnsupportedChainError(NotFoundError):
    code = "UNSUPPORTED_CHAIN"

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(
            f"Chain {chain_id} is not supported", {"chain_id": chain_id}
        )


class PoolNotFoundError(NotFoundError):
    code = "POOL_NOT_FOUND"


class InsufficientBalanceError(UniflowError):
    code = "INSUFFICIENT_BALANCE"

    def __init__(self, symbol: str, required: int, available: int, leg: int):
        self.symbol = symbol
        self.required = required
        self.available = available
        self.leg = leg
        super().__init__(
            f"Insufficient {symbol} balance: required {required}, available {available}",
            {
                "symbol": symbol,
                "required": str(required),
                "available": str(available),
                "leg": leg,
            },
        )


class NotApprovedError(UniflowError):
    code = "NOT_APPROVED"

    def __init__(self, symbol: str, token: str, spender: str, leg: int):
        self.symbol = symbol
        self.token = token
        self.spender = spender
        self.leg = leg
        super().__init__(
            f"{symbol} is not approved for {spender}; approve the token first",
            {"symbol": symbol, "token": token, "spender": spender, "leg": leg},
        )


class ContractError(UniflowError):
    code = "CONTRACT_ERROR"


class TransientError(UniflowError):
    code = "TRANSIENT_ERROR"


class PolicyIntegrityError(UniflowError):
    code = "POLICY_INTEGRITY_ERROR"


class PolicyInitializationError(UniflowError):
    code = "POLICY_INITIALIZATION_ERROR"


class PolicyNotActiveError(UniflowError):
    code = "POLICY_NOT_ACTIVE"


class TransactionFailedError(UniflowError):
    code = "TRANSACTION_FAILED"


class SessionNotFoundError(NotFoundError):
    code = "SESSION_NOT_FOUND"


class SubgraphNotConfiguredError(NotFoundError):
    code = "SUBGRAPH_NOT_CONFIGURED"


_CONTRACT_ERROR_TYPES = (ContractLogicError, BadFunctionCallOutput, InvalidAddress)


def classify_read_error(exc: Exception, context: str) -> UniflowError:
    """Map a failed on-chain read to ContractError (revert) or TransientError."""
    if isinstance(exc, UniflowError):
        return exc
    details = {"context": context, "cause": type(exc).__name__}
    if isinstance(exc, _CONTRACT_ERROR_TYPES):
        return ContractError(f"{context}: contract call failed: {exc}", details)
    return TransientError(f"{context}: {exc}", details)
