__version__ = "0.1.0"

from uniflow.adapters.uniswap_v4_adapter.adapter import UniswapV4Adapter
from uniflow.app import UniflowApp, create_app
from uniflow.core import BaseAdapter, ChainRegistry, UniflowError

__all__ = [
    "__version__",
    "BaseAdapter",
    "ChainRegistry",
    "UniflowApp",
    "UniflowError",
    "UniswapV4Adapter",
    "create_app",
]
