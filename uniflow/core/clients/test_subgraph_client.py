from __future__ import annotations

import json

import httpx
import pytest

from uniflow.core.clients.SubgraphClient import SubgraphClient, SubgraphError

URL = "https://gateway.thegraph.com/api/key/subgraphs/id/abc"


@pytest.mark.asyncio
async def test_get_positions_lowercases_owner():
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        position = {"id": "1", "tokenId": "7", "owner": "0xab"}
        return httpx.Response(200, json={"data": {"positions": [position]}})

    client = SubgraphClient(transport=httpx.MockTransport(handler))
    try:
        positions = await client.get_positions(URL, "0xAB")
    finally:
        await client.close()

    assert positions == [{"id": "1", "tokenId": "7", "owner": "0xab"}]
    assert bodies[0]["variables"] == {"owner": "0xab"}
    assert "positions(where: { owner: $owner })" in bodies[0]["query"]


@pytest.mark.asyncio
async def test_graphql_errors_raise():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"errors": [{"message": "bad indexer"}]})

    client = SubgraphClient(transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(SubgraphError, match="bad indexer"):
            await client.get_positions(URL, "0xab")
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_http_errors_raise():
    client = SubgraphClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(502))
    )
    try:
        with pytest.raises(httpx.HTTPStatusError):
            await client.get_positions(URL, "0xab")
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_empty_result():
    client = SubgraphClient(
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"data": {"positions": []}})
        )
    )
    try:
        assert await client.get_positions(URL, "0xab") == []
    finally:
        await client.close()
