"""Assignment endpoints — run the engine, read and clear the audit log."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from territory_engine.adapters.persistence.database import get_session
from territory_engine.application.use_cases.assign_client import AssignClientUseCase
from territory_engine.application.use_cases.assignment_history import AssignmentHistoryUseCase
from territory_engine.config import settings
from territory_engine.infrastructure.api.dependencies import (
    get_assign_client_uc,
    get_assignment_history_uc,
)
from territory_engine.infrastructure.api.schemas import AssignmentRequestIn
from territory_engine.infrastructure.api.serializers import serialize_log, serialize_result

router = APIRouter(prefix="/assignments", tags=["assignments"])


@router.post("")
async def assign_client(
    body: AssignmentRequestIn,
    uc: AssignClientUseCase = Depends(get_assign_client_uc),
    session: AsyncSession = Depends(get_session),
):
    """Assign a client. Business failures come back as ``success: false`` with a conflict."""
    result = await uc.execute(
        body.to_domain(),
        manual_user_id=body.manual_user_id,
        performed_by=body.performed_by,
    )
    await session.commit()
    return serialize_result(result)


@router.get("/logs")
async def list_assignment_logs(
    limit: int | None = Query(default=None, le=settings.assignment_log_max_limit),
    uc: AssignmentHistoryUseCase = Depends(get_assignment_history_uc),
):
    """Most recent entries first."""
    entries = await uc.list_recent(limit)
    return {"total": len(entries), "logs": [serialize_log(e) for e in entries]}


@router.delete("/logs")
async def clear_assignment_logs(
    uc: AssignmentHistoryUseCase = Depends(get_assignment_history_uc),
    session: AsyncSession = Depends(get_session),
):
    removed = await uc.clear()
    await session.commit()
    return {"status": "ok", "removed": removed}
