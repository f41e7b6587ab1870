from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

ConditionOperator = Literal["eq", "in", "lte", "gte", "gt", "lt"]
RuleAction = Literal["ALLOW", "DENY"]


class PolicyCondition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    field_source: str = "ethereum_transaction"
    field: str
    operator: ConditionOperator
    value: str | list[str]


class PolicyRule(BaseModel):
    # Remote copies carry ids/timestamps we don't compare on.
    model_config = ConfigDict(extra="ignore")

    name: str
    method: str
    conditions: list[PolicyCondition]
    action: RuleAction


class PolicyDefinition(BaseModel):
    version: str = "1.0"
    name: str
    chain_type: Literal["ethereum"] = "ethereum"
    owner_id: str | None = None
    rules: list[PolicyRule]

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Policy(PolicyDefinition):
    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: int | None = None
