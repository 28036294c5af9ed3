"""ManageRulesUseCase — CRUD over assignment rules."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from territory_engine.application.ports.rule_repo import RuleRepository
from territory_engine.domain.entities.results import OperationResult
from territory_engine.domain.entities.rule import AssignmentRule
from territory_engine.domain.value_objects.identifiers import new_id, utcnow

logger = logging.getLogger(__name__)

_IMMUTABLE_RULE_FIELDS = frozenset({"id", "created_at", "updated_at", "created_by"})
_RULE_FIELDS = frozenset(f.name for f in dataclasses.fields(AssignmentRule))


class ManageRulesUseCase:
    """Create, read, update and delete rules.

    Rules are validated at save time; a rule the engine could not evaluate
    (e.g. one using the ``range`` operator) is rejected as INVALID.
    """

    def __init__(self, rule_repo: RuleRepository):
        self._rules = rule_repo

    async def get(self, rule_id: str) -> AssignmentRule | None:
        return await self._rules.get_by_id(rule_id)

    async def list_all(self) -> list[AssignmentRule]:
        return await self._rules.get_all()

    async def get_active(self) -> list[AssignmentRule]:
        return await self._rules.get_active()

    async def create(self, rule: AssignmentRule, created_by: str = "") -> OperationResult[AssignmentRule]:
        errors = rule.validation_errors()
        if errors:
            return OperationResult.invalid("; ".join(errors))

        now = utcnow()
        new_rule = dataclasses.replace(
            rule,
            id=new_id("rule"),
            created_at=now,
            updated_at=now,
            created_by=created_by or rule.created_by,
        )
        saved = await self._rules.save(new_rule)
        logger.info("Rule %s (%s, priority %d) created", saved.id, saved.name, saved.priority)
        return OperationResult.success(saved)

    async def update(self, rule_id: str, changes: dict[str, Any]) -> OperationResult[AssignmentRule]:
        existing = await self._rules.get_by_id(rule_id)
        if existing is None:
            logger.warning("Update of unknown rule %s", rule_id)
            return OperationResult.not_found(f"Rule with id {rule_id} not found")

        unknown = set(changes) - _RULE_FIELDS
        if unknown:
            return OperationResult.invalid(f"Unknown rule fields: {', '.join(sorted(unknown))}")
        fields = {k: v for k, v in changes.items() if k not in _IMMUTABLE_RULE_FIELDS}

        updated = dataclasses.replace(existing, **fields, updated_at=utcnow())
        errors = updated.validation_errors()
        if errors:
            return OperationResult.invalid("; ".join(errors))

        saved = await self._rules.update(updated)
        return OperationResult.success(saved)

    async def delete(self, rule_id: str) -> bool:
        deleted = await self._rules.delete(rule_id)
        if deleted:
            logger.info("Rule %s deleted", rule_id)
        else:
            logger.warning("Delete of unknown rule %s", rule_id)
        return deleted
