"""AssignClientUseCase — manual override → rule match → load-balance fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import assert_never

from territory_engine.application.ports.assignment_log_repo import AssignmentLogRepository
from territory_engine.application.ports.rule_repo import RuleRepository
from territory_engine.application.ports.territory_repo import TerritoryRepository
from territory_engine.domain.entities.assignment import (
    AssignmentConflict,
    AssignmentLog,
    AssignmentResult,
    AssignmentSnapshot,
    ClientAssignmentRequest,
)
from territory_engine.domain.entities.rule import (
    AssignBySpecialty,
    AssignmentRule,
    AssignToTerritory,
    AssignToUser,
    LoadBalance,
)
from territory_engine.domain.entities.territory import Territory
from territory_engine.domain.policies.load_balance import (
    Candidate,
    pick_least_loaded,
    pool_candidates,
    specialty_candidates,
    territory_candidates,
)
from territory_engine.domain.policies.rule_matching import select_rule
from territory_engine.domain.value_objects.enums import ConflictType
from territory_engine.domain.value_objects.identifiers import new_id, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """A chosen member, not yet committed."""

    candidate: Candidate
    reason: str
    principal: str
    rule: AssignmentRule | None = None


@dataclass(frozen=True)
class Rejection:
    """A terminal failure decided before any capacity was reserved."""

    conflict_type: ConflictType
    reason: str
    principal: str
    rule: AssignmentRule | None = None


Decision = Selection | Rejection


def _resolve_membership(territories: list[Territory], user_id: str) -> Candidate | None:
    """First active membership of ``user_id`` in an active territory."""
    for territory in territories:
        member = territory.find_member(user_id)
        if member is not None and member.active and territory.active:
            return Candidate(territory=territory, member=member)
    return None


class AssignClientUseCase:
    """Decides who owns a client and commits the decision.

    Decision order:
    1. Manual override (when a user id is supplied and the user exists).
    2. First active rule, by priority, whose conditions match.
    3. Global least-loaded member across active territories.

    The capacity increment is a compare-and-swap in the territory store. If
    a concurrent caller takes the last slot between selection and commit,
    the decision is re-made from fresh state, up to ``max_attempts`` times.
    Every call appends exactly one entry to the assignment log.
    """

    def __init__(
        self,
        territory_repo: TerritoryRepository,
        rule_repo: RuleRepository,
        log_repo: AssignmentLogRepository,
        system_principal: str = "system",
        max_attempts: int = 3,
    ):
        self._territories = territory_repo
        self._rules = rule_repo
        self._logs = log_repo
        self._system_principal = system_principal
        self._max_attempts = max(1, max_attempts)

    async def execute(
        self,
        request: ClientAssignmentRequest,
        manual_user_id: str | None = None,
        performed_by: str | None = None,
    ) -> AssignmentResult:
        decision: Decision | None = None
        for attempt in range(1, self._max_attempts + 1):
            decision = await self._decide(request, manual_user_id)
            if isinstance(decision, Rejection):
                return await self._reject(request, decision, performed_by)

            candidate = decision.candidate
            if await self._territories.reserve_capacity(
                candidate.territory.id, candidate.member.user_id
            ):
                return await self._commit(request, decision, performed_by)

            logger.warning(
                "Client %s: lost capacity race for %s in %s (attempt %d/%d)",
                request.client_id, candidate.member.user_id, candidate.territory.id,
                attempt, self._max_attempts,
            )

        member = decision.candidate.member
        return await self._reject(
            request,
            Rejection(
                conflict_type=ConflictType.CAPACITY_EXCEEDED,
                reason=f"Member {member.user_name} reached capacity before the assignment could be committed",
                principal=decision.principal,
                rule=decision.rule,
            ),
            performed_by,
        )

    # ─── Decision ───────────────────────────────────────────────────

    async def _decide(
        self,
        request: ClientAssignmentRequest,
        manual_user_id: str | None,
    ) -> Decision:
        if manual_user_id:
            manual = await self._manual_override(manual_user_id)
            if manual is not None:
                return manual
            logger.info(
                "Client %s: manual user %s not found in any territory, evaluating rules",
                request.client_id, manual_user_id,
            )

        rules = await self._rules.get_active()
        rule = select_rule(rules, request)
        if rule is None:
            return await self._load_balance()

        logger.info("Client %s: matched rule %s (%s)", request.client_id, rule.id, rule.name)
        return await self._apply_action(rule)

    async def _manual_override(self, user_id: str) -> Decision | None:
        """None means the user is unknown and rule evaluation should proceed."""
        territories = await self._territories.get_by_member(user_id)
        if not territories:
            return None

        candidate = _resolve_membership(territories, user_id)
        if candidate is None:
            return Rejection(
                conflict_type=ConflictType.NO_MATCH,
                reason=f"Member {user_id} is inactive or only belongs to inactive territories",
                principal=user_id,
            )
        member = candidate.member
        if not member.has_spare_capacity():
            return Rejection(
                conflict_type=ConflictType.CAPACITY_EXCEEDED,
                reason=f"Member {member.user_name} has reached maximum capacity",
                principal=user_id,
            )
        return Selection(candidate=candidate, reason="Manual assignment", principal=user_id)

    async def _apply_action(self, rule: AssignmentRule) -> Decision:
        action = rule.action
        principal = rule.created_by or self._system_principal

        if isinstance(action, AssignToUser):
            territories = await self._territories.get_by_member(action.user_id)
            candidate = _resolve_membership(territories, action.user_id)
            if candidate is None:
                logger.warning("Rule %s targets user %s who is not assignable", rule.id, action.user_id)
                return Rejection(
                    conflict_type=ConflictType.NO_MATCH,
                    reason="User not found in active territories",
                    principal=principal,
                    rule=rule,
                )
            member = candidate.member
            if not member.has_spare_capacity():
                return Rejection(
                    conflict_type=ConflictType.CAPACITY_EXCEEDED,
                    reason=f"User {member.user_name} is at capacity",
                    principal=principal,
                    rule=rule,
                )
            return Selection(
                candidate=candidate,
                reason=f"Matched rule: {rule.name}",
                principal=principal,
                rule=rule,
            )

        if isinstance(action, AssignToTerritory):
            territory = await self._territories.get_by_id(action.territory_id)
            if territory is None or not territory.active:
                logger.warning(
                    "Rule %s targets territory %s which is missing or inactive",
                    rule.id, action.territory_id,
                )
                return Rejection(
                    conflict_type=ConflictType.NO_MATCH,
                    reason="Territory not found" if territory is None else f"Territory {territory.name} is inactive",
                    principal=principal,
                    rule=rule,
                )
            candidate = pick_least_loaded(territory_candidates(territory))
            if candidate is None:
                return Rejection(
                    conflict_type=ConflictType.CAPACITY_EXCEEDED,
                    reason=f"No available members in territory {territory.name}",
                    principal=principal,
                    rule=rule,
                )
            return Selection(
                candidate=candidate,
                reason=f"Matched rule: {rule.name} (Territory: {territory.name})",
                principal=principal,
                rule=rule,
            )

        if isinstance(action, AssignBySpecialty):
            if not action.required_specialties:
                return await self._load_balance(rule)
            territories = await self._territories.get_all()
            candidate = pick_least_loaded(
                specialty_candidates(territories, action.required_specialties)
            )
            if candidate is None:
                return Rejection(
                    conflict_type=ConflictType.SPECIALTY_MISMATCH,
                    reason="No specialists available for required specialties",
                    principal=principal,
                    rule=rule,
                )
            specialties = ", ".join(sorted(action.required_specialties))
            return Selection(
                candidate=candidate,
                reason=f"Matched rule: {rule.name} (Specialty: {specialties})",
                principal=principal,
                rule=rule,
            )

        if isinstance(action, LoadBalance):
            return await self._load_balance(rule)

        assert_never(action)

    async def _load_balance(self, rule: AssignmentRule | None = None) -> Decision:
        principal = (rule.created_by if rule else "") or self._system_principal
        territories = [t for t in await self._territories.get_all() if t.active and t.team_members]
        if not territories:
            return Rejection(
                conflict_type=ConflictType.NO_MATCH,
                reason="No active territories available",
                principal=principal,
                rule=rule,
            )

        candidate = pick_least_loaded(pool_candidates(territories))
        if candidate is None:
            return Rejection(
                conflict_type=ConflictType.CAPACITY_EXCEEDED,
                reason="No team members with available capacity",
                principal=principal,
                rule=rule,
            )

        member = candidate.member
        reason = f"Load balanced to {member.user_name} ({member.current_client_count}/{member.max_capacity} clients)"
        if rule is not None:
            reason = f"Matched rule: {rule.name} ({reason})"
        return Selection(candidate=candidate, reason=reason, principal=principal, rule=rule)

    # ─── Commit ─────────────────────────────────────────────────────

    async def _commit(
        self,
        request: ClientAssignmentRequest,
        selection: Selection,
        performed_by: str | None,
    ) -> AssignmentResult:
        territory = selection.candidate.territory
        member = selection.candidate.member
        result = AssignmentResult(
            success=True,
            client_id=request.client_id,
            reason=selection.reason,
            timestamp=utcnow(),
            assigned_to_user_id=member.user_id,
            assigned_to_user_name=member.user_name,
            territory_id=territory.id,
            territory_name=territory.name,
            applied_rule_id=selection.rule.id if selection.rule else None,
        )
        await self._append_log(request, result, performed_by or selection.principal)
        logger.info(
            "Client %s → %s (territory: %s): %s",
            request.client_id, member.user_name, territory.name, selection.reason,
        )
        return result

    async def _reject(
        self,
        request: ClientAssignmentRequest,
        rejection: Rejection,
        performed_by: str | None,
    ) -> AssignmentResult:
        result = AssignmentResult(
            success=False,
            client_id=request.client_id,
            reason=rejection.reason,
            timestamp=utcnow(),
            applied_rule_id=rejection.rule.id if rejection.rule else None,
            conflict=AssignmentConflict.of(rejection.conflict_type, rejection.reason),
        )
        await self._append_log(request, result, performed_by or rejection.principal)
        logger.warning(
            "Client %s not assigned (%s): %s",
            request.client_id, rejection.conflict_type.value, rejection.reason,
        )
        return result

    async def _append_log(
        self,
        request: ClientAssignmentRequest,
        result: AssignmentResult,
        assigned_by: str,
    ) -> None:
        entry = AssignmentLog(
            id=new_id("log"),
            client_id=request.client_id,
            client_name=request.client_name,
            previous_assignment=request.previous_assignment,
            new_assignment=AssignmentSnapshot(
                user_id=result.assigned_to_user_id,
                user_name=result.assigned_to_user_name,
                territory_id=result.territory_id,
                territory_name=result.territory_name,
            ),
            reason=result.reason,
            applied_rule_id=result.applied_rule_id,
            assigned_by=assigned_by,
            timestamp=result.timestamp,
            success=result.success,
            error_message=None if result.success else result.reason,
        )
        await self._logs.append(entry)
