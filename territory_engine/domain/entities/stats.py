"""Derived territory statistics — computed on demand, never stored."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TerritoryStats:
    territory_id: str
    territory_name: str
    total_members: int
    total_clients: int
    total_capacity: int
    average_clients_per_member: float
    capacity_utilization: float  # percentage
    active_rules: int
    unassigned_clients: int
    last_assignment_time: datetime | None = None


@dataclass(frozen=True)
class CapacityUtilization:
    territory_id: str
    territory_name: str
    utilization: float
