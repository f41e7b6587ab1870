from uniflow.policies.models import (
    ConditionOperator,
    PolicyCondition,
    PolicyRule,
    RuleAction,
)


def tx_condition(
    field: str, operator: ConditionOperator, value: str | list[str]
) -> PolicyCondition:
    return PolicyCondition(
        field_source="ethereum_transaction",
        field=field,
        operator=operator,
        value=value,
    )


def composite_rule(
    *,
    rule_name: str,
    conditions: list[PolicyCondition],
    method: str = "eth_sendTransaction",
    action: RuleAction = "ALLOW",
) -> PolicyRule:
    """One rule whose conditions must all hold (Privy ANDs a rule's conditions)."""
    return PolicyRule(
        name=rule_name, method=method, conditions=list(conditions), action=action
    )
