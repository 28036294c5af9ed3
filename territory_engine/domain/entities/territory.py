"""Territory entity — a named pool of team members responsible for clients."""

from dataclasses import dataclass, field
from datetime import datetime

from territory_engine.domain.value_objects.enums import MemberRole, TerritoryType
from territory_engine.domain.value_objects.geo_point import GeoPoint


@dataclass
class TeamMemberAssignment:
    """One person's membership and capacity inside a territory."""

    user_id: str
    user_name: str
    role: MemberRole = MemberRole.MEMBER
    specialties: set[str] = field(default_factory=set)
    current_client_count: int = 0
    max_capacity: int = 1
    active: bool = True
    email: str | None = None
    joined_at: datetime | None = None

    def has_spare_capacity(self) -> bool:
        return self.current_client_count < self.max_capacity

    def is_available(self) -> bool:
        """Active and below capacity, so eligible for any selection path."""
        return self.active and self.has_spare_capacity()

    def has_any_specialty(self, required: set[str] | frozenset[str]) -> bool:
        return bool(self.specialties & set(required))


@dataclass
class TerritoryBoundaries:
    """Descriptive matchers; assignment is driven by rule conditions, not these."""

    cities: list[str] = field(default_factory=list)
    regions: list[str] = field(default_factory=list)
    postal_codes: list[str] = field(default_factory=list)
    countries: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "cities": list(self.cities),
            "regions": list(self.regions),
            "postal_codes": list(self.postal_codes),
            "countries": list(self.countries),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TerritoryBoundaries":
        return cls(
            cities=list(data.get("cities") or []),
            regions=list(data.get("regions") or []),
            postal_codes=list(data.get("postal_codes") or []),
            countries=list(data.get("countries") or []),
        )


@dataclass
class Territory:
    id: str | None
    name: str
    description: str = ""
    type: TerritoryType = TerritoryType.CUSTOM
    boundaries: TerritoryBoundaries | None = None
    coordinates: list[GeoPoint] = field(default_factory=list)
    radius_km: float | None = None
    team_members: list[TeamMemberAssignment] = field(default_factory=list)
    lead_id: str | None = None
    max_clients_per_member: int | None = None
    target_load_percentage: float | None = None
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str = ""
    last_modified_by: str = ""

    def find_member(self, user_id: str) -> TeamMemberAssignment | None:
        return next((m for m in self.team_members if m.user_id == user_id), None)

    def has_member(self, user_id: str) -> bool:
        return self.find_member(user_id) is not None

    def active_members(self) -> list[TeamMemberAssignment]:
        return [m for m in self.team_members if m.active]

    def available_members(self) -> list[TeamMemberAssignment]:
        """Active members with spare capacity, in roster order."""
        return [m for m in self.team_members if m.is_available()]
