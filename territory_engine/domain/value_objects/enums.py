"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class TerritoryType(str, Enum):
    GEOGRAPHIC = "geographic"
    REGIONAL = "regional"
    CUSTOM = "custom"


class MemberRole(str, Enum):
    LEAD = "lead"
    MEMBER = "member"
    JUNIOR = "junior"


class ClientType(str, Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"
    CORPORATE = "corporate"


class RuleField(str, Enum):
    LOCATION = "location"
    PACKAGE_TYPE = "packageType"
    CLIENT_TYPE = "clientType"
    SPECIALTY = "specialty"
    LANGUAGE = "language"
    CUSTOM = "custom"


class RuleOperator(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    IN = "in"
    RANGE = "range"


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class AssignmentMethod(str, Enum):
    ROUND_ROBIN = "round_robin"
    LOAD_BALANCE = "load_balance"
    SKILL_BASED = "skill_based"
    MANUAL = "manual"


class ActionType(str, Enum):
    ASSIGN_TO_USER = "assign_to_user"
    ASSIGN_TO_TERRITORY = "assign_to_territory"
    ASSIGN_BY_SPECIALTY = "assign_by_specialty"
    LOAD_BALANCE = "load_balance"


class ConflictType(str, Enum):
    MULTIPLE_TERRITORIES = "multiple_territories"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    NO_MATCH = "no_match"
    SPECIALTY_MISMATCH = "specialty_mismatch"


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
