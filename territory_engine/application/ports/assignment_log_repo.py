"""Port interface for the append-only assignment audit log."""

from abc import ABC, abstractmethod
from datetime import datetime

from territory_engine.domain.entities.assignment import AssignmentLog


class AssignmentLogRepository(ABC):
    @abstractmethod
    async def append(self, entry: AssignmentLog) -> AssignmentLog:
        """Store a new entry. Existing entries are never modified."""
        ...

    @abstractmethod
    async def list_recent(self, limit: int) -> list[AssignmentLog]:
        """Most recent first, at most ``limit`` entries."""
        ...

    @abstractmethod
    async def last_assignment_time(self, territory_id: str) -> datetime | None:
        """Latest timestamp among entries whose new assignment is in the territory."""
        ...

    @abstractmethod
    async def clear(self) -> int:
        """Delete every entry; returns how many were removed."""
        ...
