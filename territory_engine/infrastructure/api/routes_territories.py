"""Territory endpoints — CRUD, roster management and per-territory stats."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from territory_engine.adapters.persistence.database import get_session
from territory_engine.application.use_cases.manage_territories import ManageTerritoriesUseCase
from territory_engine.application.use_cases.territory_stats import TerritoryStatsUseCase
from territory_engine.infrastructure.api.dependencies import (
    get_manage_territories_uc,
    get_territory_stats_uc,
    raise_for_error,
)
from territory_engine.infrastructure.api.schemas import (
    TeamMemberIn,
    TeamMemberPatch,
    TerritoryCreate,
    TerritoryPatch,
)
from territory_engine.infrastructure.api.serializers import serialize_stats, serialize_territory

router = APIRouter(prefix="/territories", tags=["territories"])


@router.post("", status_code=201)
async def create_territory(
    body: TerritoryCreate,
    uc: ManageTerritoriesUseCase = Depends(get_manage_territories_uc),
    session: AsyncSession = Depends(get_session),
):
    result = await uc.create(body.to_domain(), created_by=body.created_by)
    raise_for_error(result)
    await session.commit()
    return serialize_territory(result.value)


@router.get("")
async def list_territories(
    member_id: str | None = None,
    uc: ManageTerritoriesUseCase = Depends(get_manage_territories_uc),
):
    """All territories in creation order, optionally only those containing ``member_id``."""
    if member_id:
        territories = await uc.list_by_member(member_id)
    else:
        territories = await uc.list_all()
    return {
        "total": len(territories),
        "territories": [serialize_territory(t) for t in territories],
    }


@router.get("/{territory_id}")
async def get_territory(
    territory_id: str,
    uc: ManageTerritoriesUseCase = Depends(get_manage_territories_uc),
):
    territory = await uc.get(territory_id)
    if not territory:
        raise HTTPException(status_code=404, detail="Territory not found")
    return serialize_territory(territory)


@router.patch("/{territory_id}")
async def update_territory(
    territory_id: str,
    body: TerritoryPatch,
    uc: ManageTerritoriesUseCase = Depends(get_manage_territories_uc),
    session: AsyncSession = Depends(get_session),
):
    result = await uc.update(
        territory_id,
        body.changes(),
        modified_by=body.modified_by,
        keep_client_counts=body.members_without_count(),
    )
    raise_for_error(result)
    await session.commit()
    return serialize_territory(result.value)


@router.delete("/{territory_id}", status_code=204)
async def delete_territory(
    territory_id: str,
    uc: ManageTerritoriesUseCase = Depends(get_manage_territories_uc),
    session: AsyncSession = Depends(get_session),
):
    if not await uc.delete(territory_id):
        raise HTTPException(status_code=404, detail="Territory not found")
    await session.commit()


# ─── Roster ─────────────────────────────────────────────────────────


@router.post("/{territory_id}/members", status_code=201)
async def add_team_member(
    territory_id: str,
    body: TeamMemberIn,
    modified_by: str = "",
    uc: ManageTerritoriesUseCase = Depends(get_manage_territories_uc),
    session: AsyncSession = Depends(get_session),
):
    result = await uc.add_member(territory_id, body.to_domain(), modified_by=modified_by)
    raise_for_error(result)
    await session.commit()
    return serialize_territory(result.value)


@router.patch("/{territory_id}/members/{user_id}")
async def update_team_member(
    territory_id: str,
    user_id: str,
    body: TeamMemberPatch,
    uc: ManageTerritoriesUseCase = Depends(get_manage_territories_uc),
    session: AsyncSession = Depends(get_session),
):
    result = await uc.update_member(
        territory_id, user_id, body.changes(), modified_by=body.modified_by
    )
    raise_for_error(result)
    await session.commit()
    return serialize_territory(result.value)


@router.delete("/{territory_id}/members/{user_id}")
async def remove_team_member(
    territory_id: str,
    user_id: str,
    modified_by: str = "",
    uc: ManageTerritoriesUseCase = Depends(get_manage_territories_uc),
    session: AsyncSession = Depends(get_session),
):
    result = await uc.remove_member(territory_id, user_id, modified_by=modified_by)
    raise_for_error(result)
    await session.commit()
    return serialize_territory(result.value)


# ─── Stats ──────────────────────────────────────────────────────────


@router.get("/{territory_id}/stats")
async def territory_stats(
    territory_id: str,
    uc: TerritoryStatsUseCase = Depends(get_territory_stats_uc),
):
    stats = await uc.territory_stats(territory_id)
    if stats is None:
        raise HTTPException(status_code=404, detail="Territory not found")
    return serialize_stats(stats)
