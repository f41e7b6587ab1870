from uniflow.core.adapters.BaseAdapter import BaseAdapter
from uniflow.core.chain_registry import ChainConfig, ChainRegistry
from uniflow.core.errors import UniflowError

__all__ = [
    "BaseAdapter",
    "ChainConfig",
    "ChainRegistry",
    "UniflowError",
]
