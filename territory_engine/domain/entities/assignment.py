"""Assignment entities — the request, the outcome, and its audit record."""

from dataclasses import dataclass, field
from datetime import datetime

from territory_engine.domain.value_objects.enums import ClientType, ConflictType


@dataclass
class AssignmentSnapshot:
    """Who owned a client at one point in time."""

    user_id: str | None = None
    user_name: str | None = None
    territory_id: str | None = None
    territory_name: str | None = None

    def is_empty(self) -> bool:
        return not any((self.user_id, self.user_name, self.territory_id, self.territory_name))


@dataclass
class ClientAssignmentRequest:
    """Projection of a client record, as supplied by the client directory."""

    client_id: str
    client_name: str
    location: str | None = None
    postal_code: str | None = None
    city: str | None = None
    region: str | None = None
    country: str | None = None
    package_type: str | None = None
    client_type: ClientType | None = None
    special_requirements: list[str] = field(default_factory=list)
    preferred_language: str | None = None
    previous_assignment: AssignmentSnapshot | None = None


_SUGGESTIONS: dict[ConflictType, tuple[str, ...]] = {
    ConflictType.CAPACITY_EXCEEDED: (
        "Choose another team member",
        "Increase team member capacity",
        "Add members to the territory",
    ),
    ConflictType.NO_MATCH: (
        "Review territory configuration",
        "Activate a territory with available members",
        "Adjust assignment rules",
    ),
    ConflictType.SPECIALTY_MISMATCH: (
        "Add members with the required specialties",
        "Increase specialist capacity",
        "Adjust assignment rules",
    ),
    ConflictType.MULTIPLE_TERRITORIES: (
        "Refine rule conditions so a single territory matches",
        "Assign the client manually",
    ),
}


@dataclass(frozen=True)
class AssignmentConflict:
    type: ConflictType
    message: str
    suggestions: tuple[str, ...] = ()

    @classmethod
    def of(cls, conflict_type: ConflictType, message: str) -> "AssignmentConflict":
        """Conflict with the standard suggestions for its type."""
        return cls(type=conflict_type, message=message, suggestions=_SUGGESTIONS[conflict_type])


@dataclass
class AssignmentResult:
    success: bool
    client_id: str
    reason: str
    timestamp: datetime
    assigned_to_user_id: str | None = None
    assigned_to_user_name: str | None = None
    territory_id: str | None = None
    territory_name: str | None = None
    applied_rule_id: str | None = None
    conflict: AssignmentConflict | None = None


@dataclass(frozen=True)
class AssignmentLog:
    """Append-only audit entry; one per assignment attempt."""

    id: str
    client_id: str
    client_name: str
    new_assignment: AssignmentSnapshot
    reason: str
    assigned_by: str
    timestamp: datetime
    success: bool
    previous_assignment: AssignmentSnapshot | None = None
    applied_rule_id: str | None = None
    error_message: str | None = None
