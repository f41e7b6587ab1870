"""Uniswap v4 Adapter - pool discovery, preflight checks and full-range mints."""

from .adapter import UniswapV4Adapter
from .assembler import PositionAssembler, PositionIntent, remap_amounts
from .discovery import (
    DiscoveryResult,
    PoolDiscoveryEngine,
    PoolState,
    PoolStateReader,
)
from .positions import PositionReader, PositionsResult, V4Position
from .preflight import BalanceCheck, PreflightValidator

__all__ = [
    "UniswapV4Adapter",
    "BalanceCheck",
    "DiscoveryResult",
    "PoolDiscoveryEngine",
    "PoolState",
    "PoolStateReader",
    "PositionAssembler",
    "PositionIntent",
    "PositionReader",
    "PositionsResult",
    "PreflightValidator",
    "V4Position",
    "remap_amounts",
]
