"""AssignmentRule entity — one row of the priority-ordered decision table.

The action attached to a rule is a closed sum type: exactly one of
``AssignToUser``, ``AssignToTerritory``, ``AssignBySpecialty`` or
``LoadBalance``. The engine dispatches on it with ``isinstance`` and ends
with ``assert_never`` so a new action kind fails type checking until it is
handled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union

from territory_engine.domain.value_objects.enums import (
    ActionType,
    AssignmentMethod,
    LogicalOperator,
    RuleField,
    RuleOperator,
)


@dataclass(frozen=True)
class RuleCondition:
    field: RuleField
    operator: RuleOperator
    value: str | tuple[str, ...]
    case_sensitive: bool = True
    id: str | None = None

    def candidates(self) -> tuple[str, ...]:
        if isinstance(self.value, str):
            return (self.value,)
        return tuple(self.value)


@dataclass(frozen=True, kw_only=True)
class _ActionBase:
    # Stored for the notification subsystem; the engine does not deliver anything.
    notify_assignee: bool = False
    notification_message: str | None = None


@dataclass(frozen=True)
class AssignToUser(_ActionBase):
    user_id: str


@dataclass(frozen=True)
class AssignToTerritory(_ActionBase):
    territory_id: str


@dataclass(frozen=True)
class AssignBySpecialty(_ActionBase):
    required_specialties: frozenset[str]


@dataclass(frozen=True)
class LoadBalance(_ActionBase):
    method: AssignmentMethod = AssignmentMethod.LOAD_BALANCE


AssignmentAction = Union[AssignToUser, AssignToTerritory, AssignBySpecialty, LoadBalance]


@dataclass
class AssignmentRule:
    id: str | None
    name: str
    action: AssignmentAction
    conditions: list[RuleCondition] = field(default_factory=list)
    logical_operator: LogicalOperator = LogicalOperator.AND
    priority: int = 0
    description: str = ""
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str = ""

    def validation_errors(self) -> list[str]:
        """Problems that make the rule unusable; empty when the rule can be saved."""
        errors: list[str] = []
        if not self.name or not self.name.strip():
            errors.append("Rule name must not be empty")
        for cond in self.conditions:
            if cond.operator == RuleOperator.RANGE:
                errors.append(
                    f"Operator 'range' is not supported (field '{cond.field.value}')"
                )
            if not cond.candidates():
                errors.append(f"Condition on '{cond.field.value}' has no value")
        if isinstance(self.action, AssignToUser) and not self.action.user_id:
            errors.append("Rule missing user assignment")
        if isinstance(self.action, AssignToTerritory) and not self.action.territory_id:
            errors.append("Rule missing territory assignment")
        return errors


# ─── Serialization (JSON columns / API payloads) ─────────────────────


def action_type(action: AssignmentAction) -> ActionType:
    if isinstance(action, AssignToUser):
        return ActionType.ASSIGN_TO_USER
    if isinstance(action, AssignToTerritory):
        return ActionType.ASSIGN_TO_TERRITORY
    if isinstance(action, AssignBySpecialty):
        return ActionType.ASSIGN_BY_SPECIALTY
    if isinstance(action, LoadBalance):
        return ActionType.LOAD_BALANCE
    raise TypeError(f"Unknown action: {action!r}")


def action_to_dict(action: AssignmentAction) -> dict:
    data: dict = {
        "type": action_type(action).value,
        "notify_assignee": action.notify_assignee,
        "notification_message": action.notification_message,
    }
    if isinstance(action, AssignToUser):
        data["user_id"] = action.user_id
    elif isinstance(action, AssignToTerritory):
        data["territory_id"] = action.territory_id
    elif isinstance(action, AssignBySpecialty):
        data["required_specialties"] = sorted(action.required_specialties)
    elif isinstance(action, LoadBalance):
        data["method"] = action.method.value
    return data


def action_from_dict(data: dict) -> AssignmentAction:
    kind = ActionType(data["type"])
    common = {
        "notify_assignee": bool(data.get("notify_assignee", False)),
        "notification_message": data.get("notification_message"),
    }
    if kind == ActionType.ASSIGN_TO_USER:
        return AssignToUser(user_id=data.get("user_id") or "", **common)
    if kind == ActionType.ASSIGN_TO_TERRITORY:
        return AssignToTerritory(territory_id=data.get("territory_id") or "", **common)
    if kind == ActionType.ASSIGN_BY_SPECIALTY:
        return AssignBySpecialty(
            required_specialties=frozenset(data.get("required_specialties") or []),
            **common,
        )
    return LoadBalance(
        method=AssignmentMethod(data.get("method") or AssignmentMethod.LOAD_BALANCE.value),
        **common,
    )


def condition_to_dict(cond: RuleCondition) -> dict:
    return {
        "id": cond.id,
        "field": cond.field.value,
        "operator": cond.operator.value,
        "value": cond.value if isinstance(cond.value, str) else list(cond.value),
        "case_sensitive": cond.case_sensitive,
    }


def condition_from_dict(data: dict) -> RuleCondition:
    raw = data["value"]
    value = raw if isinstance(raw, str) else tuple(raw)
    return RuleCondition(
        id=data.get("id"),
        field=RuleField(data["field"]),
        operator=RuleOperator(data["operator"]),
        value=value,
        # Unset means case-sensitive
        case_sensitive=data.get("case_sensitive", True) is not False,
    )
