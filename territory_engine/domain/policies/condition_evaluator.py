"""ConditionEvaluator — does one rule condition match a client request?"""

from __future__ import annotations

import logging

from territory_engine.domain.entities.assignment import ClientAssignmentRequest
from territory_engine.domain.entities.rule import RuleCondition
from territory_engine.domain.value_objects.enums import RuleField, RuleOperator

logger = logging.getLogger(__name__)


def resolve_field(request: ClientAssignmentRequest, rule_field: RuleField) -> str | None:
    """Read the request attribute a condition refers to.

    ``location`` falls back to ``city`` then ``region`` (first non-empty wins).
    ``specialty`` is the comma-joined list of special requirements.
    ``custom`` has no backing attribute and never resolves.
    """
    if rule_field == RuleField.LOCATION:
        return request.location or request.city or request.region or None
    if rule_field == RuleField.PACKAGE_TYPE:
        return request.package_type or None
    if rule_field == RuleField.CLIENT_TYPE:
        return request.client_type.value if request.client_type else None
    if rule_field == RuleField.SPECIALTY:
        return ",".join(request.special_requirements) or None
    if rule_field == RuleField.LANGUAGE:
        return request.preferred_language or None
    return None


def matches(condition: RuleCondition, request: ClientAssignmentRequest) -> bool:
    """Pure function: evaluate a single condition against a request.

    Comparison is case-sensitive unless ``condition.case_sensitive`` is
    False, in which case both sides are lower-cased. Multiple candidate
    values are alternatives: the condition holds if any of them matches.
    """
    field_value = resolve_field(request, condition.field)
    if not field_value:
        return False

    if condition.case_sensitive:
        actual = field_value
        candidates = condition.candidates()
    else:
        actual = field_value.lower()
        candidates = tuple(c.lower() for c in condition.candidates())

    if condition.operator in (RuleOperator.EQUALS, RuleOperator.IN):
        return actual in candidates
    if condition.operator == RuleOperator.CONTAINS:
        return any(c in actual for c in candidates)
    if condition.operator == RuleOperator.STARTS_WITH:
        return any(actual.startswith(c) for c in candidates)
    if condition.operator == RuleOperator.RANGE:
        # Rejected at save time; a stored legacy rule must not match everything.
        logger.warning("Range operator is not supported; condition on %s ignored", condition.field.value)
        return False
    return False
