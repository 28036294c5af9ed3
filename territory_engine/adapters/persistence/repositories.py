"""SQLAlchemy repository implementations."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from territory_engine.adapters.persistence.models import (
    AssignmentLogModel,
    AssignmentRuleModel,
    TeamMemberModel,
    TerritoryModel,
)
from territory_engine.application.ports.assignment_log_repo import AssignmentLogRepository
from territory_engine.application.ports.rule_repo import RuleRepository
from territory_engine.application.ports.territory_repo import TerritoryRepository
from territory_engine.domain.entities.assignment import AssignmentLog, AssignmentSnapshot
from territory_engine.domain.entities.rule import (
    AssignmentRule,
    action_from_dict,
    action_to_dict,
    condition_from_dict,
    condition_to_dict,
)
from territory_engine.domain.entities.territory import (
    TeamMemberAssignment,
    Territory,
    TerritoryBoundaries,
)
from territory_engine.domain.value_objects.enums import (
    LogicalOperator,
    MemberRole,
    TerritoryType,
)
from territory_engine.domain.value_objects.geo_point import GeoPoint

# ─── Mappers ─────────────────────────────────────────────────────────


def _aware(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; every stored timestamp is UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _member_to_domain(m: TeamMemberModel) -> TeamMemberAssignment:
    return TeamMemberAssignment(
        user_id=m.user_id,
        user_name=m.user_name,
        role=MemberRole(m.role),
        specialties=set(m.specialties or []),
        current_client_count=m.current_client_count,
        max_capacity=m.max_capacity,
        active=m.active,
        email=m.email,
        joined_at=_aware(m.joined_at),
    )


def _member_values(member: TeamMemberAssignment) -> dict:
    return {
        "user_id": member.user_id,
        "user_name": member.user_name,
        "email": member.email,
        "role": member.role.value,
        "specialties": sorted(member.specialties),
        "current_client_count": member.current_client_count,
        "max_capacity": member.max_capacity,
        "active": member.active,
        "joined_at": member.joined_at,
    }


def _territory_to_domain(m: TerritoryModel) -> Territory:
    return Territory(
        id=m.id,
        name=m.name,
        description=m.description,
        type=TerritoryType(m.type),
        boundaries=TerritoryBoundaries.from_dict(m.boundaries) if m.boundaries else None,
        coordinates=[GeoPoint.from_dict(c) for c in m.coordinates or []],
        radius_km=m.radius_km,
        team_members=[_member_to_domain(tm) for tm in m.members],
        lead_id=m.lead_id,
        max_clients_per_member=m.max_clients_per_member,
        target_load_percentage=m.target_load_percentage,
        active=m.active,
        created_at=_aware(m.created_at),
        updated_at=_aware(m.updated_at),
        created_by=m.created_by,
        last_modified_by=m.last_modified_by,
    )


def _territory_values(territory: Territory) -> dict:
    return {
        "name": territory.name,
        "description": territory.description,
        "type": territory.type.value,
        "boundaries": territory.boundaries.to_dict() if territory.boundaries else None,
        "coordinates": [p.to_dict() for p in territory.coordinates],
        "radius_km": territory.radius_km,
        "lead_id": territory.lead_id,
        "max_clients_per_member": territory.max_clients_per_member,
        "target_load_percentage": territory.target_load_percentage,
        "active": territory.active,
        "updated_at": territory.updated_at,
        "last_modified_by": territory.last_modified_by,
    }


def _rule_to_domain(m: AssignmentRuleModel) -> AssignmentRule:
    return AssignmentRule(
        id=m.id,
        name=m.name,
        description=m.description,
        priority=m.priority,
        conditions=[condition_from_dict(c) for c in m.conditions or []],
        logical_operator=LogicalOperator(m.logical_operator),
        action=action_from_dict(m.action),
        active=m.active,
        created_at=_aware(m.created_at),
        updated_at=_aware(m.updated_at),
        created_by=m.created_by,
    )


def _rule_values(rule: AssignmentRule) -> dict:
    return {
        "name": rule.name,
        "description": rule.description,
        "priority": rule.priority,
        "logical_operator": rule.logical_operator.value,
        "conditions": [condition_to_dict(c) for c in rule.conditions],
        "action": action_to_dict(rule.action),
        "active": rule.active,
        "updated_at": rule.updated_at,
    }


def _snapshot_to_dict(s: AssignmentSnapshot | None) -> dict | None:
    if s is None:
        return None
    return {
        "user_id": s.user_id,
        "user_name": s.user_name,
        "territory_id": s.territory_id,
        "territory_name": s.territory_name,
    }


def _log_to_domain(m: AssignmentLogModel) -> AssignmentLog:
    previous = AssignmentSnapshot(**m.previous_assignment) if m.previous_assignment else None
    return AssignmentLog(
        id=m.id,
        client_id=m.client_id,
        client_name=m.client_name,
        previous_assignment=previous,
        new_assignment=AssignmentSnapshot(
            user_id=m.new_user_id,
            user_name=m.new_user_name,
            territory_id=m.new_territory_id,
            territory_name=m.new_territory_name,
        ),
        reason=m.reason,
        applied_rule_id=m.applied_rule_id,
        assigned_by=m.assigned_by,
        timestamp=_aware(m.timestamp),
        success=m.success,
        error_message=m.error_message,
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlTerritoryRepository(TerritoryRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    def _select(self):
        # populate_existing: roster rows are changed by bulk UPDATEs below,
        # so identity-mapped objects must be refreshed on every read.
        return (
            select(TerritoryModel)
            .options(selectinload(TerritoryModel.members))
            .execution_options(populate_existing=True)
        )

    async def save(self, territory: Territory) -> Territory:
        m = TerritoryModel(
            id=territory.id,
            created_at=territory.created_at,
            created_by=territory.created_by,
            **_territory_values(territory),
        )
        m.members = [
            TeamMemberModel(position=i, **_member_values(member))
            for i, member in enumerate(territory.team_members)
        ]
        self._s.add(m)
        await self._s.flush()
        return territory

    async def get_by_id(self, territory_id: str) -> Territory | None:
        result = await self._s.execute(self._select().where(TerritoryModel.id == territory_id))
        m = result.scalar_one_or_none()
        return _territory_to_domain(m) if m else None

    async def get_all(self) -> list[Territory]:
        result = await self._s.execute(self._select().order_by(TerritoryModel.seq))
        return [_territory_to_domain(m) for m in result.scalars()]

    async def get_by_member(self, user_id: str) -> list[Territory]:
        member_of = select(TeamMemberModel.territory_id).where(TeamMemberModel.user_id == user_id)
        result = await self._s.execute(
            self._select()
            .where(TerritoryModel.id.in_(member_of))
            .order_by(TerritoryModel.seq)
        )
        return [_territory_to_domain(m) for m in result.scalars()]

    async def update(self, territory: Territory) -> Territory | None:
        result = await self._s.execute(
            update(TerritoryModel)
            .where(TerritoryModel.id == territory.id)
            .values(**_territory_values(territory))
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()
        return territory if result.rowcount else None

    async def delete(self, territory_id: str) -> bool:
        await self._s.execute(
            delete(TeamMemberModel)
            .where(TeamMemberModel.territory_id == territory_id)
            .execution_options(synchronize_session=False)
        )
        result = await self._s.execute(
            delete(TerritoryModel)
            .where(TerritoryModel.id == territory_id)
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()
        return result.rowcount > 0

    async def add_member(self, territory_id: str, member: TeamMemberAssignment) -> bool:
        exists = await self._s.scalar(
            select(func.count(TerritoryModel.seq)).where(TerritoryModel.id == territory_id)
        )
        if not exists:
            return False
        last = await self._s.scalar(
            select(func.max(TeamMemberModel.position)).where(
                TeamMemberModel.territory_id == territory_id
            )
        )
        self._s.add(
            TeamMemberModel(
                territory_id=territory_id,
                position=(last + 1) if last is not None else 0,
                **_member_values(member),
            )
        )
        await self._s.flush()
        return True

    async def update_member(self, territory_id: str, member: TeamMemberAssignment) -> bool:
        values = _member_values(member)
        values.pop("user_id")
        result = await self._s.execute(
            update(TeamMemberModel)
            .where(
                TeamMemberModel.territory_id == territory_id,
                TeamMemberModel.user_id == member.user_id,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()
        return result.rowcount > 0

    async def remove_member(self, territory_id: str, user_id: str) -> bool:
        result = await self._s.execute(
            delete(TeamMemberModel)
            .where(
                TeamMemberModel.territory_id == territory_id,
                TeamMemberModel.user_id == user_id,
            )
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()
        return result.rowcount > 0

    async def reserve_capacity(self, territory_id: str, user_id: str) -> bool:
        active_territories = select(TerritoryModel.id).where(TerritoryModel.active.is_(True))
        result = await self._s.execute(
            update(TeamMemberModel)
            .where(
                TeamMemberModel.territory_id == territory_id,
                TeamMemberModel.user_id == user_id,
                TeamMemberModel.active.is_(True),
                TeamMemberModel.current_client_count < TeamMemberModel.max_capacity,
                TeamMemberModel.territory_id.in_(active_territories),
            )
            .values(current_client_count=TeamMemberModel.current_client_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()
        return result.rowcount == 1


class SqlRuleRepository(RuleRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, rule: AssignmentRule) -> AssignmentRule:
        m = AssignmentRuleModel(
            id=rule.id,
            created_at=rule.created_at,
            created_by=rule.created_by,
            **_rule_values(rule),
        )
        self._s.add(m)
        await self._s.flush()
        return rule

    async def get_by_id(self, rule_id: str) -> AssignmentRule | None:
        result = await self._s.execute(
            select(AssignmentRuleModel)
            .where(AssignmentRuleModel.id == rule_id)
            .execution_options(populate_existing=True)
        )
        m = result.scalar_one_or_none()
        return _rule_to_domain(m) if m else None

    async def get_all(self) -> list[AssignmentRule]:
        result = await self._s.execute(
            select(AssignmentRuleModel)
            .order_by(AssignmentRuleModel.seq)
            .execution_options(populate_existing=True)
        )
        return [_rule_to_domain(m) for m in result.scalars()]

    async def get_active(self) -> list[AssignmentRule]:
        result = await self._s.execute(
            select(AssignmentRuleModel)
            .where(AssignmentRuleModel.active.is_(True))
            .order_by(AssignmentRuleModel.priority.desc(), AssignmentRuleModel.seq)
            .execution_options(populate_existing=True)
        )
        return [_rule_to_domain(m) for m in result.scalars()]

    async def update(self, rule: AssignmentRule) -> AssignmentRule | None:
        result = await self._s.execute(
            update(AssignmentRuleModel)
            .where(AssignmentRuleModel.id == rule.id)
            .values(**_rule_values(rule))
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()
        return rule if result.rowcount else None

    async def delete(self, rule_id: str) -> bool:
        result = await self._s.execute(
            delete(AssignmentRuleModel)
            .where(AssignmentRuleModel.id == rule_id)
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()
        return result.rowcount > 0


class SqlAssignmentLogRepository(AssignmentLogRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def append(self, entry: AssignmentLog) -> AssignmentLog:
        self._s.add(
            AssignmentLogModel(
                id=entry.id,
                client_id=entry.client_id,
                client_name=entry.client_name,
                previous_assignment=_snapshot_to_dict(entry.previous_assignment),
                new_user_id=entry.new_assignment.user_id,
                new_user_name=entry.new_assignment.user_name,
                new_territory_id=entry.new_assignment.territory_id,
                new_territory_name=entry.new_assignment.territory_name,
                reason=entry.reason,
                applied_rule_id=entry.applied_rule_id,
                assigned_by=entry.assigned_by,
                timestamp=entry.timestamp,
                success=entry.success,
                error_message=entry.error_message,
            )
        )
        await self._s.flush()
        return entry

    async def list_recent(self, limit: int) -> list[AssignmentLog]:
        result = await self._s.execute(
            select(AssignmentLogModel).order_by(AssignmentLogModel.seq.desc()).limit(limit)
        )
        return [_log_to_domain(m) for m in result.scalars()]

    async def last_assignment_time(self, territory_id: str) -> datetime | None:
        latest = await self._s.scalar(
            select(func.max(AssignmentLogModel.timestamp)).where(
                AssignmentLogModel.new_territory_id == territory_id
            )
        )
        return _aware(latest)

    async def clear(self) -> int:
        result = await self._s.execute(
            delete(AssignmentLogModel).execution_options(synchronize_session=False)
        )
        await self._s.flush()
        return result.rowcount
