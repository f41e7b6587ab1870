from __future__ import annotations

from abc import ABC
from typing import Any

from loguru import logger

from uniflow.core.chain_registry import ChainConfig, ChainRegistry


class BaseAdapter(ABC):
    adapter_type: str | None = None

    def __init__(
        self,
        name: str,
        registry: ChainRegistry,
        config: dict[str, Any] | None = None,
    ):
        self.name = name
        self.registry = registry
        self.config = config or {}
        self.logger = logger.bind(adapter=self.__class__.__name__)

    def chain(self, chain_id: int) -> ChainConfig:
        """Resolve a supported chain or raise UnsupportedChainError."""
        return self.registry.get(chain_id)

    async def close(self) -> None:
        pass
