from eth_utils import to_checksum_address

from uniflow.core.chain_registry import ChainRegistry
from uniflow.core.config import (
    get_policy_extra_allowed_contracts,
    get_policy_value_ceiling_wei,
)
from uniflow.core.constants.contracts import PERMIT2
from uniflow.policies.models import PolicyCondition, PolicyDefinition, PolicyRule
from uniflow.policies.util import composite_rule, tx_condition

POLICY_VERSION = "1.0"
POLICY_NAME = "UniFlow Conservative Security Policy"
COMPOSITE_RULE_NAME = "UniFlow Composite Security Rule"


def chain_allowlist(registry: ChainRegistry) -> PolicyCondition:
    # Privy compares chain ids as strings
    return tx_condition("chain_id", "in", [str(cid) for cid in registry.chain_ids()])


def contract_allowlist(
    registry: ChainRegistry, extra_contracts: list[str] | None = None
) -> PolicyCondition:
    # EIP-55 checksummed, matched case-sensitively
    allowed: list[str] = []
    for chain in registry.all():
        allowed.extend(to_checksum_address(a) for a in chain.contract_addresses())
    allowed.append(to_checksum_address(PERMIT2))
    extras = (
        extra_contracts
        if extra_contracts is not None
        else get_policy_extra_allowed_contracts()
    )
    allowed.extend(to_checksum_address(a) for a in extras)
    return tx_condition("to", "in", list(dict.fromkeys(allowed)))


def value_ceiling(ceiling_wei: int | None = None) -> PolicyCondition:
    ceiling = ceiling_wei if ceiling_wei is not None else get_policy_value_ceiling_wei()
    return tx_condition("value", "lte", str(int(ceiling)))


def uniflow_composite_rule(
    registry: ChainRegistry,
    *,
    ceiling_wei: int | None = None,
    extra_contracts: list[str] | None = None,
) -> PolicyRule:
    return composite_rule(
        rule_name=COMPOSITE_RULE_NAME,
        conditions=[
            chain_allowlist(registry),
            contract_allowlist(registry, extra_contracts),
            value_ceiling(ceiling_wei),
        ],
    )


def policy_definition(
    owner_id: str,
    registry: ChainRegistry,
    *,
    ceiling_wei: int | None = None,
    extra_contracts: list[str] | None = None,
) -> PolicyDefinition:
    return PolicyDefinition(
        version=POLICY_VERSION,
        name=POLICY_NAME,
        chain_type="ethereum",
        owner_id=owner_id,
        rules=[
            uniflow_composite_rule(
                registry, ceiling_wei=ceiling_wei, extra_contracts=extra_contracts
            )
        ],
    )
