"""Analytics endpoints — capacity utilization across territories."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from territory_engine.application.use_cases.territory_stats import TerritoryStatsUseCase
from territory_engine.infrastructure.api.dependencies import get_territory_stats_uc
from territory_engine.infrastructure.api.serializers import serialize_utilization

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/capacity")
async def capacity_ranking(uc: TerritoryStatsUseCase = Depends(get_territory_stats_uc)):
    """Active territories ranked by capacity utilization, highest first."""
    ranking = await uc.capacity_ranking()
    return {
        "total": len(ranking),
        "territories": [serialize_utilization(u) for u in ranking],
    }
