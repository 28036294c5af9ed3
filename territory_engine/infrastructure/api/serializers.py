"""Convert domain objects to API response dicts."""

from __future__ import annotations

from datetime import datetime

from territory_engine.domain.entities.assignment import (
    AssignmentLog,
    AssignmentResult,
    AssignmentSnapshot,
)
from territory_engine.domain.entities.rule import (
    AssignmentRule,
    action_to_dict,
    condition_to_dict,
)
from territory_engine.domain.entities.stats import CapacityUtilization, TerritoryStats
from territory_engine.domain.entities.territory import TeamMemberAssignment, Territory


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_member(m: TeamMemberAssignment) -> dict:
    return {
        "user_id": m.user_id,
        "user_name": m.user_name,
        "email": m.email,
        "role": m.role.value,
        "specialties": sorted(m.specialties),
        "current_client_count": m.current_client_count,
        "max_capacity": m.max_capacity,
        "active": m.active,
        "joined_at": _iso(m.joined_at),
    }


def serialize_territory(t: Territory) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "description": t.description,
        "type": t.type.value,
        "boundaries": t.boundaries.to_dict() if t.boundaries else None,
        "coordinates": [p.to_dict() for p in t.coordinates],
        "radius_km": t.radius_km,
        "team_members": [serialize_member(m) for m in t.team_members],
        "lead_id": t.lead_id,
        "max_clients_per_member": t.max_clients_per_member,
        "target_load_percentage": t.target_load_percentage,
        "active": t.active,
        "created_at": _iso(t.created_at),
        "updated_at": _iso(t.updated_at),
        "created_by": t.created_by,
        "last_modified_by": t.last_modified_by,
    }


def serialize_rule(r: AssignmentRule) -> dict:
    return {
        "id": r.id,
        "name": r.name,
        "description": r.description,
        "priority": r.priority,
        "conditions": [condition_to_dict(c) for c in r.conditions],
        "logical_operator": r.logical_operator.value,
        "action": action_to_dict(r.action),
        "active": r.active,
        "created_at": _iso(r.created_at),
        "updated_at": _iso(r.updated_at),
        "created_by": r.created_by,
    }


def serialize_result(r: AssignmentResult) -> dict:
    data = {
        "success": r.success,
        "client_id": r.client_id,
        "assigned_to_user_id": r.assigned_to_user_id,
        "assigned_to_user_name": r.assigned_to_user_name,
        "territory_id": r.territory_id,
        "territory_name": r.territory_name,
        "reason": r.reason,
        "applied_rule_id": r.applied_rule_id,
        "timestamp": _iso(r.timestamp),
        "conflict": None,
    }
    if r.conflict:
        data["conflict"] = {
            "type": r.conflict.type.value,
            "message": r.conflict.message,
            "suggestions": list(r.conflict.suggestions),
        }
    return data


def _snapshot(s: AssignmentSnapshot | None) -> dict | None:
    if s is None:
        return None
    return {
        "user_id": s.user_id,
        "user_name": s.user_name,
        "territory_id": s.territory_id,
        "territory_name": s.territory_name,
    }


def serialize_log(entry: AssignmentLog) -> dict:
    return {
        "id": entry.id,
        "client_id": entry.client_id,
        "client_name": entry.client_name,
        "previous_assignment": _snapshot(entry.previous_assignment),
        "new_assignment": _snapshot(entry.new_assignment),
        "reason": entry.reason,
        "applied_rule_id": entry.applied_rule_id,
        "assigned_by": entry.assigned_by,
        "timestamp": _iso(entry.timestamp),
        "success": entry.success,
        "error_message": entry.error_message,
    }


def serialize_stats(s: TerritoryStats) -> dict:
    return {
        "territory_id": s.territory_id,
        "territory_name": s.territory_name,
        "total_members": s.total_members,
        "total_clients": s.total_clients,
        "total_capacity": s.total_capacity,
        "average_clients_per_member": round(s.average_clients_per_member, 2),
        "capacity_utilization": round(s.capacity_utilization, 2),
        "active_rules": s.active_rules,
        "unassigned_clients": s.unassigned_clients,
        "last_assignment_time": _iso(s.last_assignment_time),
    }


def serialize_utilization(u: CapacityUtilization) -> dict:
    return {
        "territory_id": u.territory_id,
        "territory_name": u.territory_name,
        "utilization": round(u.utilization, 2),
    }
