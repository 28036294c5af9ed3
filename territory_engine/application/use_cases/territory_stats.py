"""TerritoryStatsUseCase — derived utilization and headcount figures."""

from __future__ import annotations

from territory_engine.application.ports.assignment_log_repo import AssignmentLogRepository
from territory_engine.application.ports.client_directory_port import ClientDirectoryPort
from territory_engine.application.ports.rule_repo import RuleRepository
from territory_engine.application.ports.territory_repo import TerritoryRepository
from territory_engine.domain.entities.stats import CapacityUtilization, TerritoryStats
from territory_engine.domain.entities.territory import Territory


def capacity_utilization(territory: Territory) -> float:
    """Percentage of active-member capacity in use; 0 when there is no capacity."""
    members = territory.active_members()
    total_capacity = sum(m.max_capacity for m in members)
    if total_capacity == 0:
        return 0.0
    return sum(m.current_client_count for m in members) / total_capacity * 100


class TerritoryStatsUseCase:
    """Read-only reporting over territories, rules and the assignment log."""

    def __init__(
        self,
        territory_repo: TerritoryRepository,
        rule_repo: RuleRepository,
        log_repo: AssignmentLogRepository,
        client_directory: ClientDirectoryPort,
    ):
        self._territories = territory_repo
        self._rules = rule_repo
        self._logs = log_repo
        self._clients = client_directory

    async def territory_stats(self, territory_id: str) -> TerritoryStats | None:
        """Stats for one territory, or None if it does not exist."""
        territory = await self._territories.get_by_id(territory_id)
        if territory is None:
            return None

        members = territory.active_members()
        total_clients = sum(m.current_client_count for m in members)
        total_capacity = sum(m.max_capacity for m in members)
        active_rules = await self._rules.get_active()

        return TerritoryStats(
            territory_id=territory.id,
            territory_name=territory.name,
            total_members=len(members),
            total_clients=total_clients,
            total_capacity=total_capacity,
            average_clients_per_member=total_clients / len(members) if members else 0.0,
            capacity_utilization=capacity_utilization(territory),
            active_rules=len(active_rules),
            unassigned_clients=await self._clients.count_unassigned(territory.id),
            last_assignment_time=await self._logs.last_assignment_time(territory.id),
        )

    async def capacity_ranking(self) -> list[CapacityUtilization]:
        """Active territories, most utilized first."""
        territories = [t for t in await self._territories.get_all() if t.active]
        ranking = [
            CapacityUtilization(
                territory_id=t.id,
                territory_name=t.name,
                utilization=capacity_utilization(t),
            )
            for t in territories
        ]
        return sorted(ranking, key=lambda r: r.utilization, reverse=True)
