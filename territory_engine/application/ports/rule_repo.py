"""Port interface for assignment rule persistence."""

from abc import ABC, abstractmethod

from territory_engine.domain.entities.rule import AssignmentRule


class RuleRepository(ABC):
    @abstractmethod
    async def save(self, rule: AssignmentRule) -> AssignmentRule:
        ...

    @abstractmethod
    async def get_by_id(self, rule_id: str) -> AssignmentRule | None:
        ...

    @abstractmethod
    async def get_all(self) -> list[AssignmentRule]:
        """All rules in insertion order."""
        ...

    @abstractmethod
    async def get_active(self) -> list[AssignmentRule]:
        """Active rules by priority descending; ties keep insertion order."""
        ...

    @abstractmethod
    async def update(self, rule: AssignmentRule) -> AssignmentRule | None:
        ...

    @abstractmethod
    async def delete(self, rule_id: str) -> bool:
        ...
