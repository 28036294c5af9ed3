"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from territory_engine.adapters.client_directory.null_directory import NullClientDirectory
from territory_engine.adapters.persistence.database import get_session
from territory_engine.adapters.persistence.repositories import (
    SqlAssignmentLogRepository,
    SqlRuleRepository,
    SqlTerritoryRepository,
)
from territory_engine.application.use_cases.assign_client import AssignClientUseCase
from territory_engine.application.use_cases.assignment_history import AssignmentHistoryUseCase
from territory_engine.application.use_cases.manage_rules import ManageRulesUseCase
from territory_engine.application.use_cases.manage_territories import ManageTerritoriesUseCase
from territory_engine.application.use_cases.territory_stats import TerritoryStatsUseCase
from territory_engine.config import settings
from territory_engine.domain.entities.results import OperationResult
from territory_engine.domain.value_objects.enums import ErrorKind

# No client store is wired in yet
_client_directory = NullClientDirectory()

_STATUS_BY_ERROR = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DUPLICATE: 409,
    ErrorKind.INVALID: 422,
}


def raise_for_error(result: OperationResult) -> None:
    """Translate a failed OperationResult into an HTTPException."""
    if not result.ok:
        raise HTTPException(status_code=_STATUS_BY_ERROR[result.error], detail=result.message)


def get_manage_territories_uc(
    session: AsyncSession = Depends(get_session),
) -> ManageTerritoriesUseCase:
    return ManageTerritoriesUseCase(territory_repo=SqlTerritoryRepository(session))


def get_manage_rules_uc(
    session: AsyncSession = Depends(get_session),
) -> ManageRulesUseCase:
    return ManageRulesUseCase(rule_repo=SqlRuleRepository(session))


def get_assign_client_uc(
    session: AsyncSession = Depends(get_session),
) -> AssignClientUseCase:
    return AssignClientUseCase(
        territory_repo=SqlTerritoryRepository(session),
        rule_repo=SqlRuleRepository(session),
        log_repo=SqlAssignmentLogRepository(session),
        system_principal=settings.system_principal,
        max_attempts=settings.capacity_reserve_attempts,
    )


def get_assignment_history_uc(
    session: AsyncSession = Depends(get_session),
) -> AssignmentHistoryUseCase:
    return AssignmentHistoryUseCase(
        log_repo=SqlAssignmentLogRepository(session),
        default_limit=settings.assignment_log_default_limit,
    )


def get_territory_stats_uc(
    session: AsyncSession = Depends(get_session),
) -> TerritoryStatsUseCase:
    return TerritoryStatsUseCase(
        territory_repo=SqlTerritoryRepository(session),
        rule_repo=SqlRuleRepository(session),
        log_repo=SqlAssignmentLogRepository(session),
        client_directory=_client_directory,
    )
