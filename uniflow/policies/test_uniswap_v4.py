from eth_utils import to_checksum_address

import uniflow.core.config as uniflow_config
from uniflow.core.constants.contracts import PERMIT2
from uniflow.policies.uniswap_v4 import (
    COMPOSITE_RULE_NAME,
    POLICY_NAME,
    contract_allowlist,
    policy_definition,
)

EXTRA_TOKEN = "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"


def test_single_composite_rule(registry):
    definition = policy_definition("signer-1", registry)

    assert definition.name == POLICY_NAME
    assert definition.owner_id == "signer-1"
    assert definition.chain_type == "ethereum"
    assert len(definition.rules) == 1

    rule = definition.rules[0]
    assert rule.name == COMPOSITE_RULE_NAME
    assert rule.method == "eth_sendTransaction"
    assert rule.action == "ALLOW"
    assert [c.field for c in rule.conditions] == ["chain_id", "to", "value"]


def test_chain_ids_are_strings(registry):
    chain_condition = policy_definition("s", registry).rules[0].conditions[0]
    assert chain_condition.operator == "in"
    assert chain_condition.value == ["1", "56", "8453", "42161", "130"]


def test_contract_allowlist_checksummed(registry):
    condition = contract_allowlist(registry, [])
    assert condition.operator == "in"
    assert to_checksum_address(PERMIT2) in condition.value
    assert registry.get(8453).position_manager in condition.value
    assert len(condition.value) == 3 * len(registry.chain_ids()) + 1
    assert all(addr == to_checksum_address(addr) for addr in condition.value)


def test_extra_contracts_from_config(registry):
    extras = [EXTRA_TOKEN, to_checksum_address(EXTRA_TOKEN)]
    uniflow_config.set_config({"policy": {"extra_allowed_contracts": extras}})
    condition = contract_allowlist(registry)
    assert condition.value.count(to_checksum_address(EXTRA_TOKEN)) == 1


def test_value_ceiling_default_and_override(registry):
    default = policy_definition("s", registry).rules[0].conditions[2]
    assert default.operator == "lte"
    assert default.value == "100000000000000000"

    custom = policy_definition("s", registry, ceiling_wei=5).rules[0].conditions[2]
    assert custom.value == "5"


def test_payload_is_json_ready(registry):
    payload = policy_definition("signer-1", registry).to_payload()
    assert payload["owner_id"] == "signer-1"
    assert payload["rules"][0]["conditions"][0]["field_source"] == (
        "ethereum_transaction"
    )
