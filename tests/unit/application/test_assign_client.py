"""Tests for AssignClientUseCase with in-memory fakes."""

from __future__ import annotations

import asyncio

import pytest

from territory_engine.application.use_cases.assign_client import AssignClientUseCase
from territory_engine.domain.entities.assignment import AssignmentSnapshot, ClientAssignmentRequest
from territory_engine.domain.entities.rule import (
    AssignBySpecialty,
    AssignmentRule,
    AssignToTerritory,
    AssignToUser,
    LoadBalance,
    RuleCondition,
)
from territory_engine.domain.entities.territory import TeamMemberAssignment, Territory
from territory_engine.domain.value_objects.enums import ConflictType, RuleField, RuleOperator

_VISA = RuleCondition(field=RuleField.PACKAGE_TYPE, operator=RuleOperator.EQUALS, value="visa")


def _member(uid: str, count: int = 0, cap: int = 10, active: bool = True, specialties=()) -> TeamMemberAssignment:
    return TeamMemberAssignment(
        user_id=uid, user_name=f"User {uid}", current_client_count=count,
        max_capacity=cap, active=active, specialties=set(specialties),
    )


def _territory(tid: str, members, active: bool = True) -> Territory:
    return Territory(id=tid, name=f"Territory {tid}", team_members=list(members), active=active)


def _rule(rid: str, action, priority: int = 100, conditions=None, created_by: str = "") -> AssignmentRule:
    return AssignmentRule(
        id=rid, name=f"Rule {rid}", action=action,
        conditions=[_VISA] if conditions is None else conditions,
        priority=priority, created_by=created_by,
    )


def _request(**overrides) -> ClientAssignmentRequest:
    fields = dict(client_id="client-1", client_name="Maria Santos")
    fields.update(overrides)
    return ClientAssignmentRequest(**fields)


async def _count(repo, tid: str, uid: str) -> int:
    territory = await repo.get_by_id(tid)
    return territory.find_member(uid).current_client_count


@pytest.fixture
def engine(territory_repo, rule_repo, log_repo):
    return AssignClientUseCase(
        territory_repo=territory_repo,
        rule_repo=rule_repo,
        log_repo=log_repo,
        system_principal="system",
    )


# ─── Manual override ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_manual_override_success_increments_count(engine, territory_repo):
    await territory_repo.save(_territory("T", [_member("U", count=2, cap=5)]))

    result = await engine.execute(_request(), manual_user_id="U")

    assert result.success is True
    assert result.assigned_to_user_id == "U"
    assert result.territory_id == "T"
    assert result.reason == "Manual assignment"
    assert await _count(territory_repo, "T", "U") == 3


@pytest.mark.asyncio
async def test_manual_override_over_capacity_does_not_fall_through(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("U", count=5, cap=5), _member("V")]))
    await rule_repo.save(_rule("R", LoadBalance()))

    result = await engine.execute(_request(package_type="visa"), manual_user_id="U")

    assert result.success is False
    assert result.conflict.type == ConflictType.CAPACITY_EXCEEDED
    assert result.applied_rule_id is None
    assert await _count(territory_repo, "T", "U") == 5
    assert await _count(territory_repo, "T", "V") == 0


@pytest.mark.asyncio
async def test_manual_override_unknown_user_falls_through_to_rules(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("A")]))
    await rule_repo.save(_rule("R", AssignToUser(user_id="A")))

    result = await engine.execute(_request(package_type="visa"), manual_user_id="ghost")

    assert result.success is True
    assert result.assigned_to_user_id == "A"
    assert result.applied_rule_id == "R"


@pytest.mark.asyncio
async def test_manual_override_inactive_member_is_no_match(engine, territory_repo):
    await territory_repo.save(_territory("T", [_member("U", active=False), _member("V")]))

    result = await engine.execute(_request(), manual_user_id="U")

    assert result.success is False
    assert result.conflict.type == ConflictType.NO_MATCH


@pytest.mark.asyncio
async def test_manual_override_prefers_active_territory(engine, territory_repo):
    await territory_repo.save(_territory("T1", [_member("U")], active=False))
    await territory_repo.save(_territory("T2", [_member("U")]))

    result = await engine.execute(_request(), manual_user_id="U")

    assert result.success is True
    assert result.territory_id == "T2"


# ─── Rule evaluation ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_rule_with_territory_action_picks_least_loaded(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("A", count=3), _member("B", count=1)]))
    await rule_repo.save(_rule("R", AssignToTerritory(territory_id="T"), priority=100))

    result = await engine.execute(_request(package_type="visa"))

    assert result.success is True
    assert result.assigned_to_user_id == "B"
    assert result.applied_rule_id == "R"
    assert await _count(territory_repo, "T", "B") == 2


@pytest.mark.asyncio
async def test_highest_priority_rule_wins(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("A"), _member("B")]))
    await rule_repo.save(_rule("low", AssignToUser(user_id="A"), priority=5))
    await rule_repo.save(_rule("high", AssignToUser(user_id="B"), priority=20))

    result = await engine.execute(_request(package_type="visa"))

    assert result.assigned_to_user_id == "B"
    assert result.applied_rule_id == "high"


@pytest.mark.asyncio
async def test_catch_all_rule_overrides_load_balance_fallback(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("A", count=8), _member("B", count=0)]))
    await rule_repo.save(_rule("all", AssignToUser(user_id="A"), priority=1, conditions=[]))

    result = await engine.execute(_request(package_type="tour"))

    assert result.success is True
    assert result.assigned_to_user_id == "A"
    assert result.applied_rule_id == "all"


@pytest.mark.asyncio
async def test_first_matching_rule_failure_is_terminal(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("A", count=10, cap=10), _member("B")]))
    await rule_repo.save(_rule("first", AssignToUser(user_id="A"), priority=10))
    await rule_repo.save(_rule("second", AssignToUser(user_id="B"), priority=1))

    result = await engine.execute(_request(package_type="visa"))

    assert result.success is False
    assert result.conflict.type == ConflictType.CAPACITY_EXCEEDED
    assert result.applied_rule_id == "first"
    assert await _count(territory_repo, "T", "B") == 0


@pytest.mark.asyncio
async def test_assign_to_user_missing_user_is_no_match(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("A")]))
    await rule_repo.save(_rule("R", AssignToUser(user_id="nobody")))

    result = await engine.execute(_request(package_type="visa"))

    assert result.success is False
    assert result.conflict.type == ConflictType.NO_MATCH
    assert result.reason == "User not found in active territories"


@pytest.mark.asyncio
async def test_rule_referencing_deleted_territory_is_no_match(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("A")]))
    await rule_repo.save(_rule("R", AssignToTerritory(territory_id="T")))
    await territory_repo.delete("T")

    result = await engine.execute(_request(package_type="visa"))

    assert result.success is False
    assert result.conflict.type == ConflictType.NO_MATCH
    assert result.applied_rule_id == "R"


@pytest.mark.asyncio
async def test_assign_to_inactive_territory_is_no_match(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("A")], active=False))
    await rule_repo.save(_rule("R", AssignToTerritory(territory_id="T")))

    result = await engine.execute(_request(package_type="visa"))

    assert result.conflict.type == ConflictType.NO_MATCH


@pytest.mark.asyncio
async def test_assign_to_territory_without_capacity(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("A", count=2, cap=2), _member("B", active=False)]))
    await rule_repo.save(_rule("R", AssignToTerritory(territory_id="T")))

    result = await engine.execute(_request(package_type="visa"))

    assert result.conflict.type == ConflictType.CAPACITY_EXCEEDED


@pytest.mark.asyncio
async def test_specialty_action_searches_all_territories(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T1", [_member("A", count=0, specialties={"legal"})]))
    await territory_repo.save(_territory("T2", [
        _member("B", count=4, specialties={"visa"}),
        _member("C", count=2, specialties={"visa", "tour"}),
    ]))
    await rule_repo.save(_rule("R", AssignBySpecialty(required_specialties=frozenset({"visa"}))))

    result = await engine.execute(_request(package_type="visa"))

    assert result.success is True
    assert result.assigned_to_user_id == "C"
    assert result.territory_id == "T2"


@pytest.mark.asyncio
async def test_specialty_mismatch(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("A", specialties={"legal"})]))
    await rule_repo.save(_rule("R", AssignBySpecialty(required_specialties=frozenset({"visa"}))))

    result = await engine.execute(_request(package_type="visa"))

    assert result.success is False
    assert result.conflict.type == ConflictType.SPECIALTY_MISMATCH


@pytest.mark.asyncio
async def test_empty_specialty_set_load_balances(engine, territory_repo, rule_repo):
    await territory_repo.save(_territory("T", [_member("A", count=3), _member("B", count=1)]))
    await rule_repo.save(_rule("R", AssignBySpecialty(required_specialties=frozenset())))

    result = await engine.execute(_request(package_type="visa"))

    assert result.assigned_to_user_id == "B"
    assert result.applied_rule_id == "R"


@pytest.mark.asyncio
async def test_load_balance_action_records_rule(engine, territory_repo, rule_repo, log_repo):
    await territory_repo.save(_territory("T", [_member("A")]))
    await rule_repo.save(_rule("R", LoadBalance(), created_by="ops-admin"))

    result = await engine.execute(_request(package_type="visa"))

    assert result.success is True
    assert result.applied_rule_id == "R"
    assert result.reason.startswith("Matched rule: Rule R")
    assert log_repo.entries[0].assigned_by == "ops-admin"


# ─── Fallback load balancing ────────────────────────────────────────


@pytest.mark.asyncio
async def test_fallback_routes_to_least_loaded(engine, territory_repo):
    await territory_repo.save(_territory("T1", [_member("A", count=4)]))
    await territory_repo.save(_territory("T2", [_member("B", count=2)]))

    result = await engine.execute(_request(package_type="tour"))

    assert result.success is True
    assert result.assigned_to_user_id == "B"
    assert result.applied_rule_id is None
    assert result.reason == "Load balanced to User B (2/10 clients)"


@pytest.mark.asyncio
async def test_fallback_is_deterministic_on_ties(territory_repo, rule_repo, log_repo):
    await territory_repo.save(_territory("T1", [_member("A", count=1)]))
    await territory_repo.save(_territory("T2", [_member("B", count=1)]))

    chosen = []
    engine = AssignClientUseCase(territory_repo, rule_repo, log_repo)
    for _ in range(3):
        result = await engine.execute(_request())
        chosen.append(result.assigned_to_user_id)
        await territory_repo.update_member("T1", _member("A", count=1))
    assert chosen == ["A", "A", "A"]


@pytest.mark.asyncio
async def test_fallback_without_active_territories_is_no_match(engine, territory_repo):
    await territory_repo.save(_territory("T", [_member("A")], active=False))

    result = await engine.execute(_request())

    assert result.success is False
    assert result.conflict.type == ConflictType.NO_MATCH


@pytest.mark.asyncio
async def test_fallback_everyone_full_is_capacity_exceeded(engine, territory_repo):
    await territory_repo.save(_territory("T", [_member("A", count=1, cap=1)]))

    result = await engine.execute(_request())

    assert result.conflict.type == ConflictType.CAPACITY_EXCEEDED
    assert result.conflict.suggestions


# ─── Invariants ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_every_call_appends_exactly_one_log_entry(engine, territory_repo, log_repo):
    await territory_repo.save(_territory("T", [_member("A", count=0, cap=2)]))

    results = [await engine.execute(_request(client_id=f"c{i}")) for i in range(4)]

    assert len(log_repo.entries) == 4
    assert [e.success for e in log_repo.entries] == [r.success for r in results]
    assert [r.success for r in results] == [True, True, False, False]


@pytest.mark.asyncio
async def test_log_entry_contents(engine, territory_repo, log_repo):
    await territory_repo.save(_territory("T", [_member("A")]))
    previous = AssignmentSnapshot(user_id="old", user_name="Old Owner")

    await engine.execute(_request(previous_assignment=previous), performed_by="operator-7")

    entry = log_repo.entries[0]
    assert entry.client_id == "client-1"
    assert entry.previous_assignment == previous
    assert entry.new_assignment.user_id == "A"
    assert entry.new_assignment.territory_id == "T"
    assert entry.assigned_by == "operator-7"
    assert entry.error_message is None


@pytest.mark.asyncio
async def test_failed_log_entry_has_empty_assignment(engine, log_repo):
    result = await engine.execute(_request())

    entry = log_repo.entries[0]
    assert result.success is False
    assert entry.success is False
    assert entry.new_assignment.is_empty()
    assert entry.error_message == result.reason
    assert entry.assigned_by == "system"


@pytest.mark.asyncio
async def test_capacity_never_exceeded_on_repeated_calls(engine, territory_repo):
    await territory_repo.save(_territory("T", [_member("A", count=0, cap=3), _member("B", count=1, cap=2)]))

    for i in range(10):
        await engine.execute(_request(client_id=f"c{i}"))

    territory = await territory_repo.get_by_id("T")
    for m in territory.team_members:
        assert m.current_client_count <= m.max_capacity
    assert sum(m.current_client_count for m in territory.team_members) == 5


@pytest.mark.asyncio
async def test_concurrent_manual_assignments_respect_last_slot(engine, territory_repo):
    await territory_repo.save(_territory("T", [_member("U", count=4, cap=5)]))

    results = await asyncio.gather(
        engine.execute(_request(client_id="c1"), manual_user_id="U"),
        engine.execute(_request(client_id="c2"), manual_user_id="U"),
    )

    assert sorted(r.success for r in results) == [False, True]
    assert await _count(territory_repo, "T", "U") == 5
    loser = next(r for r in results if not r.success)
    assert loser.conflict.type == ConflictType.CAPACITY_EXCEEDED
    assert territory_repo.reserve_calls == 2


@pytest.mark.asyncio
async def test_lost_capacity_race_reselects(engine, territory_repo):
    await territory_repo.save(_territory("T", [_member("A", count=0, cap=1), _member("B", count=0, cap=1)]))

    results = await asyncio.gather(
        engine.execute(_request(client_id="c1")),
        engine.execute(_request(client_id="c2")),
    )

    assert all(r.success for r in results)
    assert {r.assigned_to_user_id for r in results} == {"A", "B"}
    # both picked A first; the loser retried and took B
    assert territory_repo.reserve_calls == 3


@pytest.mark.asyncio
async def test_race_lost_on_every_attempt_reports_capacity(territory_repo, rule_repo, log_repo):
    await territory_repo.save(_territory("T", [_member("U", count=0, cap=1)]))
    engine = AssignClientUseCase(territory_repo, rule_repo, log_repo, max_attempts=1)

    results = await asyncio.gather(
        engine.execute(_request(client_id="c1"), manual_user_id="U"),
        engine.execute(_request(client_id="c2"), manual_user_id="U"),
    )

    loser = next(r for r in results if not r.success)
    assert loser.conflict.type == ConflictType.CAPACITY_EXCEEDED
    assert "before the assignment could be committed" in loser.reason
    assert territory_repo.reserve_calls == 2
    assert await _count(territory_repo, "T", "U") == 1
    assert len(log_repo.entries) == 2
