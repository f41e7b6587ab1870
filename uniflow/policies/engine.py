from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from uniflow.core.chain_registry import ChainRegistry
from uniflow.core.clients.PrivyClient import PrivyClient
from uniflow.core.config import get_privy_policy_id, get_privy_signer_id
from uniflow.core.errors import (
    PolicyInitializationError,
    PolicyIntegrityError,
    PolicyNotActiveError,
)
from uniflow.policies.models import Policy, PolicyDefinition
from uniflow.policies.uniswap_v4 import policy_definition


class PolicyState(StrEnum):
    UNINITIALIZED = "UNINITIALIZED"
    VERIFYING = "VERIFYING"
    CREATING = "CREATING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"


def troubleshooting_for_status(status: int | None) -> tuple[str, list[str]]:
    if status in (401, 403):
        return "Privy API authentication failed", [
            "Verify privy.app_id and privy.app_secret are correct",
            "Check that the credentials have policy permissions",
            "Ensure the Privy app is active (not suspended)",
        ]
    if status == 429:
        return "Privy API rate limit exceeded", [
            "Wait a few minutes before restarting",
            "Check for other services making excessive API calls",
        ]
    return f"Privy API error ({status or 'unknown'})", [
        "Check the Privy status page for outages",
        "Review the error details",
    ]


class PolicyEngine:
    """Startup gate that binds every custodial wallet to the transaction policy.

    Either verifies a pinned remote policy or creates one from the fixed
    composition, then exposes its id. Any integrity or remote failure is
    terminal: the process must not create wallets or sign transactions.
    """

    def __init__(
        self,
        client: PrivyClient,
        registry: ChainRegistry,
        *,
        signer_id: str | None = None,
        policy_id: str | None = None,
        ceiling_wei: int | None = None,
        extra_contracts: list[str] | None = None,
    ):
        self.client = client
        self.registry = registry
        self.signer_id = signer_id or get_privy_signer_id()
        self.pinned_policy_id = policy_id or get_privy_policy_id()
        self.ceiling_wei = ceiling_wei
        self.extra_contracts = extra_contracts
        self.state = PolicyState.UNINITIALIZED
        self._policy_ids: list[str] = []
        self._lock = asyncio.Lock()
        self.logger = logger.bind(component="PolicyEngine")

    def expected_definition(self) -> PolicyDefinition:
        if not self.signer_id:
            raise PolicyInitializationError(
                "PRIVY_SIGNER_ID not configured; set privy.signer_id to the "
                "authorization key id"
            )
        return policy_definition(
            self.signer_id,
            self.registry,
            ceiling_wei=self.ceiling_wei,
            extra_contracts=self.extra_contracts,
        )

    @property
    def policy_ids(self) -> list[str]:
        self.require_active()
        return list(self._policy_ids)

    def require_active(self) -> None:
        if self.state is not PolicyState.ACTIVE:
            raise PolicyNotActiveError(
                f"Policy engine is {self.state}; refusing policy-gated operation",
                {"state": str(self.state)},
            )

    def validate(self, remote: dict[str, Any]) -> Policy:
        try:
            policy = Policy.model_validate(remote)
        except PydanticValidationError as exc:
            raise PolicyIntegrityError(
                f"Policy response is malformed: {exc.error_count()} error(s)",
                {"errors": exc.errors(include_url=False)},
            ) from exc

        expected = self.expected_definition()
        if policy.owner_id != expected.owner_id:
            raise PolicyIntegrityError(
                f"Policy owner mismatch: expected '{expected.owner_id}', but policy "
                f"is owned by '{policy.owner_id}'",
                {"policyId": policy.id},
            )
        if len(policy.rules) != len(expected.rules):
            raise PolicyIntegrityError(
                f"Policy rule count mismatch: expected {len(expected.rules)} rule(s), "
                f"but policy has {len(policy.rules)}",
                {"policyId": policy.id},
            )
        for idx, (actual_rule, expected_rule) in enumerate(
            zip(policy.rules, expected.rules, strict=True)
        ):
            if len(actual_rule.conditions) != len(expected_rule.conditions):
                raise PolicyIntegrityError(
                    f"Policy condition count mismatch in rule {idx}: expected "
                    f"{len(expected_rule.conditions)} condition(s), but policy has "
                    f"{len(actual_rule.conditions)}",
                    {"policyId": policy.id, "rule": idx},
                )
        return policy

    async def initialize(self) -> list[str]:
        async with self._lock:
            if self.state is PolicyState.FAILED:
                raise PolicyInitializationError(
                    "Policy initialization previously failed; restart required"
                )
            try:
                policy = await self._resolve()
            except (PolicyIntegrityError, PolicyInitializationError) as exc:
                self._fail(str(exc))
                raise
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                message, steps = troubleshooting_for_status(status)
                self._fail(message, steps)
                raise PolicyInitializationError(
                    message, {"status": status, "troubleshooting": steps}
                ) from exc
            except httpx.HTTPError as exc:
                message, steps = troubleshooting_for_status(None)
                self._fail(f"{message}: {exc}", steps)
                raise PolicyInitializationError(
                    f"{message}: {exc}", {"troubleshooting": steps}
                ) from exc

            self._policy_ids = [policy.id]
            self.state = PolicyState.ACTIVE
            self.logger.info(f"Policy {policy.id} active")
            return list(self._policy_ids)

    async def _resolve(self) -> Policy:
        # Re-runs re-verify the known policy and never create a second one.
        known_id = self._policy_ids[0] if self._policy_ids else self.pinned_policy_id
        self.expected_definition()

        if known_id:
            # An active gate stays open while its policy is re-verified.
            if self.state is not PolicyState.ACTIVE:
                self.state = PolicyState.VERIFYING
            self.logger.info(f"Verifying existing policy {known_id}")
            remote = await self.client.get_policy(known_id)
            return self.validate(remote)

        self.state = PolicyState.CREATING
        self.logger.info("Creating new security policy")
        remote = await self.client.create_policy(self.expected_definition().to_payload())
        policy = self.validate(remote)
        self.logger.info(
            f"Created policy {policy.id}; set privy.policy_id={policy.id} "
            "to skip creation on restart"
        )
        return policy

    def _fail(self, message: str, steps: list[str] | None = None) -> None:
        self.state = PolicyState.FAILED
        self._policy_ids = []
        self.logger.error(f"Policy initialization failed: {message}")
        for step in steps or []:
            self.logger.error(f"  - {step}")
