from contextlib import asynccontextmanager

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import ExtraDataToPOAMiddleware

from uniflow.core.config import get_rpc_url
from uniflow.core.constants.chains import POA_MIDDLEWARE_CHAIN_IDS


def _get_web3(rpc: str, chain_id: int) -> AsyncWeb3:
    provider = AsyncHTTPProvider(
        rpc, request_kwargs={"headers": AsyncHTTPProvider.get_request_headers()}
    )
    web3 = AsyncWeb3(provider)
    if chain_id in POA_MIDDLEWARE_CHAIN_IDS:
        web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return web3


def get_web3_from_chain_id(chain_id: int, rpc_url: str | None = None) -> AsyncWeb3:
    return _get_web3(rpc_url or get_rpc_url(chain_id), int(chain_id))


@asynccontextmanager
async def web3_from_chain_id(chain_id: int, rpc_url: str | None = None):
    web3 = get_web3_from_chain_id(chain_id, rpc_url)
    try:
        yield web3
    finally:
        await web3.provider.disconnect()
