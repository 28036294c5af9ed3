"""RuleMatchingPolicy — combine conditions and pick the first matching rule."""

from __future__ import annotations

from territory_engine.domain.entities.assignment import ClientAssignmentRequest
from territory_engine.domain.entities.rule import AssignmentRule
from territory_engine.domain.policies.condition_evaluator import matches
from territory_engine.domain.value_objects.enums import LogicalOperator


def rule_matches(rule: AssignmentRule, request: ClientAssignmentRequest) -> bool:
    """AND requires every condition, OR requires at least one.

    An AND rule with no conditions matches every request; an OR rule with
    no conditions matches nothing.
    """
    results = (matches(cond, request) for cond in rule.conditions)
    if rule.logical_operator == LogicalOperator.AND:
        return all(results)
    return any(results)


def order_by_priority(rules: list[AssignmentRule]) -> list[AssignmentRule]:
    """Active rules, highest priority first; equal priorities keep input order."""
    return sorted((r for r in rules if r.active), key=lambda r: -r.priority)


def select_rule(
    rules: list[AssignmentRule],
    request: ClientAssignmentRequest,
) -> AssignmentRule | None:
    """Return the highest-priority active rule whose conditions match."""
    for rule in order_by_priority(rules):
        if rule_matches(rule, request):
            return rule
    return None
