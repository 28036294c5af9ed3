"""Request bodies — validated by pydantic, converted to domain objects."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from territory_engine.domain.entities.assignment import AssignmentSnapshot, ClientAssignmentRequest
from territory_engine.domain.entities.rule import (
    AssignBySpecialty,
    AssignmentAction,
    AssignmentRule,
    AssignToTerritory,
    AssignToUser,
    LoadBalance,
    RuleCondition,
)
from territory_engine.domain.entities.territory import (
    TeamMemberAssignment,
    Territory,
    TerritoryBoundaries,
)
from territory_engine.domain.value_objects.enums import (
    AssignmentMethod,
    ClientType,
    LogicalOperator,
    MemberRole,
    RuleField,
    RuleOperator,
    TerritoryType,
)
from territory_engine.domain.value_objects.geo_point import GeoPoint

# ------------------------------------------------------------------
# Territories
# ------------------------------------------------------------------


class GeoPointIn(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    def to_domain(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


class BoundariesIn(BaseModel):
    cities: list[str] = []
    regions: list[str] = []
    postal_codes: list[str] = []
    countries: list[str] = []

    def to_domain(self) -> TerritoryBoundaries:
        return TerritoryBoundaries(**self.model_dump())


class TeamMemberIn(BaseModel):
    user_id: str = Field(min_length=1)
    user_name: str
    role: MemberRole = MemberRole.MEMBER
    specialties: list[str] = []
    current_client_count: int = Field(default=0, ge=0)
    max_capacity: int = Field(gt=0)
    active: bool = True
    email: str | None = None

    def to_domain(self) -> TeamMemberAssignment:
        return TeamMemberAssignment(
            user_id=self.user_id,
            user_name=self.user_name,
            role=self.role,
            specialties=set(self.specialties),
            current_client_count=self.current_client_count,
            max_capacity=self.max_capacity,
            active=self.active,
            email=self.email,
        )


class TeamMemberPatch(BaseModel):
    user_name: str | None = None
    role: MemberRole | None = None
    specialties: list[str] | None = None
    current_client_count: int | None = Field(default=None, ge=0)
    max_capacity: int | None = Field(default=None, gt=0)
    active: bool | None = None
    email: str | None = None
    modified_by: str = ""

    def changes(self) -> dict[str, Any]:
        data = {
            k: v
            for k, v in self.model_dump(exclude_unset=True, exclude={"modified_by"}).items()
            if v is not None or k == "email"
        }
        if "specialties" in data:
            data["specialties"] = set(data["specialties"] or [])
        return data


class TerritoryCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    type: TerritoryType = TerritoryType.CUSTOM
    boundaries: BoundariesIn | None = None
    coordinates: list[GeoPointIn] = []
    radius_km: float | None = Field(default=None, ge=0)
    team_members: list[TeamMemberIn] = []
    lead_id: str | None = None
    max_clients_per_member: int | None = Field(default=None, gt=0)
    target_load_percentage: float | None = Field(default=None, ge=0, le=100)
    active: bool = True
    created_by: str = ""

    def to_domain(self) -> Territory:
        return Territory(
            id=None,
            name=self.name,
            description=self.description,
            type=self.type,
            boundaries=self.boundaries.to_domain() if self.boundaries else None,
            coordinates=[p.to_domain() for p in self.coordinates],
            radius_km=self.radius_km,
            team_members=[m.to_domain() for m in self.team_members],
            lead_id=self.lead_id,
            max_clients_per_member=self.max_clients_per_member,
            target_load_percentage=self.target_load_percentage,
            active=self.active,
        )


# Explicit nulls are ignored for these; the others may be cleared with null.
_REQUIRED_TERRITORY_FIELDS = frozenset(
    {"name", "description", "type", "coordinates", "team_members", "active"}
)


class TerritoryPatch(BaseModel):
    name: str | None = None
    description: str | None = None
    type: TerritoryType | None = None
    boundaries: BoundariesIn | None = None
    coordinates: list[GeoPointIn] | None = None
    radius_km: float | None = Field(default=None, ge=0)
    team_members: list[TeamMemberIn] | None = None
    lead_id: str | None = None
    max_clients_per_member: int | None = Field(default=None, gt=0)
    target_load_percentage: float | None = Field(default=None, ge=0, le=100)
    active: bool | None = None
    modified_by: str = ""

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually sent, as domain values."""
        sent = self.model_fields_set - {"modified_by"}
        data: dict[str, Any] = {}
        for name in sent:
            value = getattr(self, name)
            if value is None and name in _REQUIRED_TERRITORY_FIELDS:
                continue
            if name == "boundaries":
                value = value.to_domain() if value else None
            elif name == "coordinates":
                value = [p.to_domain() for p in value or []]
            elif name == "team_members":
                value = [m.to_domain() for m in value or []]
            data[name] = value
        return data

    def members_without_count(self) -> set[str]:
        """Roster entries that did not send ``current_client_count``."""
        return {
            m.user_id for m in self.team_members or []
            if "current_client_count" not in m.model_fields_set
        }


# ------------------------------------------------------------------
# Rules
# ------------------------------------------------------------------


class RuleConditionIn(BaseModel):
    id: str | None = None
    field: RuleField
    operator: RuleOperator
    value: str | list[str]
    case_sensitive: bool = True

    def to_domain(self) -> RuleCondition:
        value = self.value if isinstance(self.value, str) else tuple(self.value)
        return RuleCondition(
            id=self.id,
            field=self.field,
            operator=self.operator,
            value=value,
            case_sensitive=self.case_sensitive,
        )


class _ActionIn(BaseModel):
    notify_assignee: bool = False
    notification_message: str | None = None


class AssignToUserIn(_ActionIn):
    type: Literal["assign_to_user"]
    user_id: str = Field(min_length=1)

    def to_domain(self) -> AssignmentAction:
        return AssignToUser(
            user_id=self.user_id,
            notify_assignee=self.notify_assignee,
            notification_message=self.notification_message,
        )


class AssignToTerritoryIn(_ActionIn):
    type: Literal["assign_to_territory"]
    territory_id: str = Field(min_length=1)

    def to_domain(self) -> AssignmentAction:
        return AssignToTerritory(
            territory_id=self.territory_id,
            notify_assignee=self.notify_assignee,
            notification_message=self.notification_message,
        )


class AssignBySpecialtyIn(_ActionIn):
    type: Literal["assign_by_specialty"]
    required_specialties: list[str] = []

    def to_domain(self) -> AssignmentAction:
        return AssignBySpecialty(
            required_specialties=frozenset(self.required_specialties),
            notify_assignee=self.notify_assignee,
            notification_message=self.notification_message,
        )


class LoadBalanceIn(_ActionIn):
    type: Literal["load_balance"]
    method: AssignmentMethod = AssignmentMethod.LOAD_BALANCE

    def to_domain(self) -> AssignmentAction:
        return LoadBalance(
            method=self.method,
            notify_assignee=self.notify_assignee,
            notification_message=self.notification_message,
        )


ActionIn = Annotated[
    Union[AssignToUserIn, AssignToTerritoryIn, AssignBySpecialtyIn, LoadBalanceIn],
    Field(discriminator="type"),
]


class RuleCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    priority: int = 0
    conditions: list[RuleConditionIn] = []
    logical_operator: LogicalOperator = LogicalOperator.AND
    action: ActionIn
    active: bool = True
    created_by: str = ""

    def to_domain(self) -> AssignmentRule:
        return AssignmentRule(
            id=None,
            name=self.name,
            description=self.description,
            priority=self.priority,
            conditions=[c.to_domain() for c in self.conditions],
            logical_operator=self.logical_operator,
            action=self.action.to_domain(),
            active=self.active,
        )


class RulePatch(BaseModel):
    name: str | None = None
    description: str | None = None
    priority: int | None = None
    conditions: list[RuleConditionIn] | None = None
    logical_operator: LogicalOperator | None = None
    action: ActionIn | None = None
    active: bool | None = None

    def changes(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None:
                continue
            if name == "conditions":
                value = [c.to_domain() for c in value]
            elif name == "action":
                value = value.to_domain()
            data[name] = value
        return data


# ------------------------------------------------------------------
# Assignments
# ------------------------------------------------------------------


class SnapshotIn(BaseModel):
    user_id: str | None = None
    user_name: str | None = None
    territory_id: str | None = None
    territory_name: str | None = None


class AssignmentRequestIn(BaseModel):
    client_id: str = Field(min_length=1)
    client_name: str
    location: str | None = None
    postal_code: str | None = None
    city: str | None = None
    region: str | None = None
    country: str | None = None
    package_type: str | None = None
    client_type: ClientType | None = None
    special_requirements: list[str] = []
    preferred_language: str | None = None
    previous_assignment: SnapshotIn | None = None
    manual_user_id: str | None = None
    performed_by: str | None = None

    def to_domain(self) -> ClientAssignmentRequest:
        previous = self.previous_assignment
        return ClientAssignmentRequest(
            client_id=self.client_id,
            client_name=self.client_name,
            location=self.location,
            postal_code=self.postal_code,
            city=self.city,
            region=self.region,
            country=self.country,
            package_type=self.package_type,
            client_type=self.client_type,
            special_requirements=list(self.special_requirements),
            preferred_language=self.preferred_language,
            previous_assignment=AssignmentSnapshot(**previous.model_dump()) if previous else None,
        )
