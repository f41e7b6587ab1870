from uniflow.policies.engine import PolicyEngine, PolicyState
from uniflow.policies.models import (
    Policy,
    PolicyCondition,
    PolicyDefinition,
    PolicyRule,
)
from uniflow.policies.uniswap_v4 import policy_definition

__all__ = [
    "Policy",
    "PolicyCondition",
    "PolicyDefinition",
    "PolicyEngine",
    "PolicyRule",
    "PolicyState",
    "policy_definition",
]
