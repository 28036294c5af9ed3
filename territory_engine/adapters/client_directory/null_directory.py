"""Client directory used when no client-record system is wired in."""

from territory_engine.application.ports.client_directory_port import ClientDirectoryPort


class NullClientDirectory(ClientDirectoryPort):
    """Reports zero unassigned clients for every territory."""

    async def count_unassigned(self, territory_id: str) -> int:
        return 0
