"""Port interface for territory persistence (territories + nested rosters)."""

from abc import ABC, abstractmethod

from territory_engine.domain.entities.territory import TeamMemberAssignment, Territory


class TerritoryRepository(ABC):
    @abstractmethod
    async def save(self, territory: Territory) -> Territory:
        """Insert a new territory together with its roster."""
        ...

    @abstractmethod
    async def get_by_id(self, territory_id: str) -> Territory | None:
        ...

    @abstractmethod
    async def get_all(self) -> list[Territory]:
        """All territories in creation order."""
        ...

    @abstractmethod
    async def get_by_member(self, user_id: str) -> list[Territory]:
        """Territories whose roster lists ``user_id``, in creation order."""
        ...

    @abstractmethod
    async def update(self, territory: Territory) -> Territory | None:
        """Write territory-level fields (not the roster). None if the id is unknown."""
        ...

    @abstractmethod
    async def delete(self, territory_id: str) -> bool:
        ...

    @abstractmethod
    async def add_member(self, territory_id: str, member: TeamMemberAssignment) -> bool:
        """Append a member to the end of the roster."""
        ...

    @abstractmethod
    async def update_member(self, territory_id: str, member: TeamMemberAssignment) -> bool:
        """Overwrite the roster entry with the same ``user_id``."""
        ...

    @abstractmethod
    async def remove_member(self, territory_id: str, user_id: str) -> bool:
        ...

    @abstractmethod
    async def reserve_capacity(self, territory_id: str, user_id: str) -> bool:
        """Atomically increment the member's client count if it is below capacity.

        Must be a single compare-and-swap against the store: the increment
        happens only if the territory and member are active and
        ``current_client_count < max_capacity`` at write time. Returns False
        when no row qualified (member full, inactive or missing).
        """
        ...
