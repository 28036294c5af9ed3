"""Port interface to the client-record system."""

from abc import ABC, abstractmethod


class ClientDirectoryPort(ABC):
    @abstractmethod
    async def count_unassigned(self, territory_id: str) -> int:
        """Number of clients in the territory's scope that have no owner yet."""
        ...
