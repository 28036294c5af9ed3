"""In-memory fakes of the application ports."""

from __future__ import annotations

import asyncio
import copy
import dataclasses

import pytest

from territory_engine.application.ports.assignment_log_repo import AssignmentLogRepository
from territory_engine.application.ports.client_directory_port import ClientDirectoryPort
from territory_engine.application.ports.rule_repo import RuleRepository
from territory_engine.application.ports.territory_repo import TerritoryRepository
from territory_engine.domain.policies.rule_matching import order_by_priority

# ─── In-memory fakes ────────────────────────────────────────────────


class FakeTerritoryRepo(TerritoryRepository):
    """Stores copies so callers never share state with the store.

    Reads take their snapshot and then yield to the event loop, so concurrent
    callers can decide on state another caller is about to change.
    """

    def __init__(self):
        self.territories: dict = {}
        self.reserve_calls = 0
        self._lock = asyncio.Lock()

    async def save(self, territory):
        self.territories[territory.id] = copy.deepcopy(territory)
        return territory

    async def get_by_id(self, territory_id):
        t = self.territories.get(territory_id)
        snapshot = copy.deepcopy(t) if t else None
        await asyncio.sleep(0)
        return snapshot

    async def get_all(self):
        snapshot = [copy.deepcopy(t) for t in self.territories.values()]
        await asyncio.sleep(0)
        return snapshot

    async def get_by_member(self, user_id):
        snapshot = [copy.deepcopy(t) for t in self.territories.values() if t.has_member(user_id)]
        await asyncio.sleep(0)
        return snapshot

    async def update(self, territory):
        stored = self.territories.get(territory.id)
        if stored is None:
            return None
        self.territories[territory.id] = dataclasses.replace(
            copy.deepcopy(territory), team_members=stored.team_members
        )
        return territory

    async def delete(self, territory_id):
        return self.territories.pop(territory_id, None) is not None

    async def add_member(self, territory_id, member):
        stored = self.territories.get(territory_id)
        if stored is None:
            return False
        stored.team_members.append(copy.deepcopy(member))
        return True

    async def update_member(self, territory_id, member):
        stored = self.territories.get(territory_id)
        if stored is None:
            return False
        for i, m in enumerate(stored.team_members):
            if m.user_id == member.user_id:
                stored.team_members[i] = copy.deepcopy(member)
                return True
        return False

    async def remove_member(self, territory_id, user_id):
        stored = self.territories.get(territory_id)
        if stored is None or not stored.has_member(user_id):
            return False
        stored.team_members = [m for m in stored.team_members if m.user_id != user_id]
        return True

    async def reserve_capacity(self, territory_id, user_id):
        self.reserve_calls += 1
        async with self._lock:
            stored = self.territories.get(territory_id)
            if stored is None or not stored.active:
                return False
            member = stored.find_member(user_id)
            if member is None or not member.is_available():
                return False
            member.current_client_count += 1
            return True


class FakeRuleRepo(RuleRepository):
    def __init__(self):
        self.rules: dict = {}

    async def save(self, rule):
        self.rules[rule.id] = copy.deepcopy(rule)
        return rule

    async def get_by_id(self, rule_id):
        r = self.rules.get(rule_id)
        return copy.deepcopy(r) if r else None

    async def get_all(self):
        return [copy.deepcopy(r) for r in self.rules.values()]

    async def get_active(self):
        return order_by_priority([copy.deepcopy(r) for r in self.rules.values()])

    async def update(self, rule):
        if rule.id not in self.rules:
            return None
        self.rules[rule.id] = copy.deepcopy(rule)
        return rule

    async def delete(self, rule_id):
        return self.rules.pop(rule_id, None) is not None


class FakeLogRepo(AssignmentLogRepository):
    def __init__(self):
        self.entries: list = []

    async def append(self, entry):
        self.entries.append(entry)
        return entry

    async def list_recent(self, limit):
        return list(reversed(self.entries))[:limit]

    async def last_assignment_time(self, territory_id):
        times = [e.timestamp for e in self.entries if e.new_assignment.territory_id == territory_id]
        return max(times) if times else None

    async def clear(self):
        removed = len(self.entries)
        self.entries.clear()
        return removed


class FakeClientDirectory(ClientDirectoryPort):
    def __init__(self, unassigned: int = 0):
        self.unassigned = unassigned

    async def count_unassigned(self, territory_id):
        return self.unassigned


@pytest.fixture
def territory_repo():
    return FakeTerritoryRepo()


@pytest.fixture
def rule_repo():
    return FakeRuleRepo()


@pytest.fixture
def log_repo():
    return FakeLogRepo()


@pytest.fixture
def client_directory():
    return FakeClientDirectory()
