"""AssignmentHistoryUseCase — read and administratively wipe the audit log."""

from __future__ import annotations

import logging

from territory_engine.application.ports.assignment_log_repo import AssignmentLogRepository
from territory_engine.domain.entities.assignment import AssignmentLog

logger = logging.getLogger(__name__)


class AssignmentHistoryUseCase:
    def __init__(self, log_repo: AssignmentLogRepository, default_limit: int = 100):
        self._logs = log_repo
        self._default_limit = default_limit

    async def list_recent(self, limit: int | None = None) -> list[AssignmentLog]:
        """Most recent first. A non-positive limit yields an empty list."""
        limit = self._default_limit if limit is None else limit
        if limit <= 0:
            return []
        return await self._logs.list_recent(limit)

    async def clear(self) -> int:
        removed = await self._logs.clear()
        logger.warning("Assignment log cleared (%d entries removed)", removed)
        return removed
