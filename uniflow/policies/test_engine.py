from __future__ import annotations

import copy
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from uniflow.core.errors import (
    PolicyInitializationError,
    PolicyIntegrityError,
    PolicyNotActiveError,
)
from uniflow.policies.engine import (
    PolicyEngine,
    PolicyState,
    troubleshooting_for_status,
)
from uniflow.policies.uniswap_v4 import policy_definition

SIGNER = "signer-1"


def _remote(registry, policy_id: str = "pol-1", owner: str = SIGNER) -> dict:
    payload = policy_definition(owner, registry).to_payload()
    payload["id"] = policy_id
    payload["created_at"] = 1_700_000_000
    payload["rules"][0]["id"] = "rule-1"
    return payload


def _client(get=None, create=None) -> MagicMock:
    client = MagicMock()
    client.get_policy = AsyncMock(return_value=get)
    client.create_policy = AsyncMock(return_value=create)
    return client


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.privy.io/v1/policies/pol-1")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


class TestInitialize:
    @pytest.mark.asyncio
    async def test_creates_when_nothing_pinned(self, registry):
        client = _client(create=_remote(registry, "pol-new"))
        engine = PolicyEngine(client, registry, signer_id=SIGNER)

        assert await engine.initialize() == ["pol-new"]
        assert engine.state is PolicyState.ACTIVE
        assert engine.policy_ids == ["pol-new"]
        sent = client.create_policy.await_args.args[0]
        assert sent == policy_definition(SIGNER, registry).to_payload()
        client.get_policy.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_verifies_pinned_policy(self, registry):
        client = _client(get=_remote(registry, "pol-pinned"))
        engine = PolicyEngine(client, registry, signer_id=SIGNER, policy_id="pol-pinned")

        assert await engine.initialize() == ["pol-pinned"]
        client.get_policy.assert_awaited_once_with("pol-pinned")
        client.create_policy.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rerun_reverifies_instead_of_creating(self, registry):
        remote = _remote(registry, "pol-new")
        client = _client(get=remote, create=remote)
        engine = PolicyEngine(client, registry, signer_id=SIGNER)

        await engine.initialize()
        await engine.initialize()

        client.create_policy.assert_awaited_once()
        client.get_policy.assert_awaited_once_with("pol-new")
        assert engine.state is PolicyState.ACTIVE

    @pytest.mark.asyncio
    async def test_rerun_keeps_gate_open_while_reverifying(self, registry):
        remote = _remote(registry, "pol-new")
        client = _client(create=remote)
        engine = PolicyEngine(client, registry, signer_id=SIGNER)
        await engine.initialize()

        async def _get_policy(policy_id):
            engine.require_active()
            assert engine.state is PolicyState.ACTIVE
            return remote

        client.get_policy = AsyncMock(side_effect=_get_policy)
        assert await engine.initialize() == ["pol-new"]
        client.get_policy.assert_awaited_once_with("pol-new")

    @pytest.mark.asyncio
    async def test_rerun_mismatch_closes_gate(self, registry):
        remote = _remote(registry, "pol-new")
        tampered = _remote(registry, "pol-new", owner="intruder")
        client = _client(get=tampered, create=remote)
        engine = PolicyEngine(client, registry, signer_id=SIGNER)
        await engine.initialize()

        with pytest.raises(PolicyIntegrityError):
            await engine.initialize()
        assert engine.state is PolicyState.FAILED
        with pytest.raises(PolicyNotActiveError):
            engine.require_active()

    @pytest.mark.asyncio
    async def test_owner_mismatch_is_terminal(self, registry):
        client = _client(get=_remote(registry, owner="someone-else"))
        engine = PolicyEngine(client, registry, signer_id=SIGNER, policy_id="pol-1")

        with pytest.raises(PolicyIntegrityError, match="owner mismatch"):
            await engine.initialize()
        assert engine.state is PolicyState.FAILED
        with pytest.raises(PolicyNotActiveError):
            engine.require_active()
        with pytest.raises(PolicyNotActiveError):
            _ = engine.policy_ids
        with pytest.raises(PolicyInitializationError, match="restart required"):
            await engine.initialize()

    @pytest.mark.asyncio
    async def test_missing_signer(self, registry):
        engine = PolicyEngine(_client(), registry)
        with pytest.raises(PolicyInitializationError, match="PRIVY_SIGNER_ID"):
            await engine.initialize()
        assert engine.state is PolicyState.FAILED

    @pytest.mark.asyncio
    async def test_auth_failure_carries_troubleshooting(self, registry):
        client = _client()
        client.get_policy = AsyncMock(side_effect=_status_error(401))
        engine = PolicyEngine(client, registry, signer_id=SIGNER, policy_id="pol-1")

        with pytest.raises(PolicyInitializationError) as exc_info:
            await engine.initialize()
        err = exc_info.value
        assert "authentication" in err.message
        assert err.details["status"] == 401
        assert any("app_secret" in step for step in err.details["troubleshooting"])
        assert engine.state is PolicyState.FAILED

    @pytest.mark.asyncio
    async def test_network_failure(self, registry):
        client = _client()
        client.create_policy = AsyncMock(side_effect=httpx.ConnectError("refused"))
        engine = PolicyEngine(client, registry, signer_id=SIGNER)

        with pytest.raises(PolicyInitializationError, match="refused"):
            await engine.initialize()
        assert engine.state is PolicyState.FAILED


class TestValidate:
    def test_rule_count_mismatch(self, registry):
        remote = _remote(registry)
        remote["rules"].append(copy.deepcopy(remote["rules"][0]))
        engine = PolicyEngine(_client(), registry, signer_id=SIGNER)
        with pytest.raises(PolicyIntegrityError, match="rule count"):
            engine.validate(remote)

    def test_condition_count_mismatch(self, registry):
        remote = _remote(registry)
        remote["rules"][0]["conditions"].pop()
        engine = PolicyEngine(_client(), registry, signer_id=SIGNER)
        with pytest.raises(PolicyIntegrityError, match="condition count"):
            engine.validate(remote)

    def test_malformed_response(self, registry):
        engine = PolicyEngine(_client(), registry, signer_id=SIGNER)
        with pytest.raises(PolicyIntegrityError, match="malformed"):
            engine.validate({"id": "pol-1"})


def test_require_active_before_initialize(registry):
    engine = PolicyEngine(_client(), registry, signer_id=SIGNER)
    assert engine.state is PolicyState.UNINITIALIZED
    with pytest.raises(PolicyNotActiveError):
        engine.require_active()


def test_troubleshooting_messages():
    assert troubleshooting_for_status(403)[0] == "Privy API authentication failed"
    assert "rate limit" in troubleshooting_for_status(429)[0]
    assert "500" in troubleshooting_for_status(500)[0]
