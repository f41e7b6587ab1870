from uniflow.core.clients.PrivyClient import PrivyClient
from uniflow.core.clients.SubgraphClient import SubgraphClient

__all__ = [
    "PrivyClient",
    "SubgraphClient",
]
