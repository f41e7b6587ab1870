from __future__ import annotations

import time
from typing import Any, Required, TypedDict

import httpx
from loguru import logger

from uniflow.core.constants.base import DEFAULT_HTTP_TIMEOUT

GET_POSITIONS_QUERY = """
query GetPositions($owner: String!) {
  positions(where: { owner: $owner }) {
    tokenId
    owner
    id
  }
}
"""


class SubgraphPosition(TypedDict):
    id: Required[str]
    tokenId: Required[str]
    owner: Required[str]


class SubgraphError(RuntimeError):
    pass


class SubgraphClient:
    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None):
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(DEFAULT_HTTP_TIMEOUT), transport=transport
        )
        self.headers = {"Content-Type": "application/json"}

    async def close(self) -> None:
        await self.client.aclose()

    async def query(
        self, url: str, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        logger.debug(f"Making subgraph query to {url.split('/api/')[0]}")
        start_time = time.time()
        resp = await self.client.post(
            url,
            json={"query": query, "variables": variables or {}},
            headers=self.headers,
        )
        elapsed = time.time() - start_time
        if resp.status_code >= 400:
            logger.warning(
                f"HTTP {resp.status_code} response from subgraph after {elapsed:.2f}s"
            )
        resp.raise_for_status()

        payload = resp.json()
        if payload.get("errors"):
            messages = "; ".join(
                str(err.get("message", err)) for err in payload["errors"]
            )
            raise SubgraphError(f"Subgraph query failed: {messages}")
        return payload.get("data") or {}

    async def get_positions(self, url: str, owner: str) -> list[SubgraphPosition]:
        data = await self.query(url, GET_POSITIONS_QUERY, {"owner": owner.lower()})
        return list(data.get("positions") or [])
