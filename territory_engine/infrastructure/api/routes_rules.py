"""Assignment rule endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from territory_engine.adapters.persistence.database import get_session
from territory_engine.application.use_cases.manage_rules import ManageRulesUseCase
from territory_engine.infrastructure.api.dependencies import get_manage_rules_uc, raise_for_error
from territory_engine.infrastructure.api.schemas import RuleCreate, RulePatch
from territory_engine.infrastructure.api.serializers import serialize_rule

router = APIRouter(prefix="/rules", tags=["rules"])


@router.post("", status_code=201)
async def create_rule(
    body: RuleCreate,
    uc: ManageRulesUseCase = Depends(get_manage_rules_uc),
    session: AsyncSession = Depends(get_session),
):
    result = await uc.create(body.to_domain(), created_by=body.created_by)
    raise_for_error(result)
    await session.commit()
    return serialize_rule(result.value)


@router.get("")
async def list_rules(
    active_only: bool = False,
    uc: ManageRulesUseCase = Depends(get_manage_rules_uc),
):
    """All rules, or with ``active_only`` the active ones in evaluation order."""
    rules = await uc.get_active() if active_only else await uc.list_all()
    return {"total": len(rules), "rules": [serialize_rule(r) for r in rules]}


@router.get("/{rule_id}")
async def get_rule(rule_id: str, uc: ManageRulesUseCase = Depends(get_manage_rules_uc)):
    rule = await uc.get(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Rule not found")
    return serialize_rule(rule)


@router.patch("/{rule_id}")
async def update_rule(
    rule_id: str,
    body: RulePatch,
    uc: ManageRulesUseCase = Depends(get_manage_rules_uc),
    session: AsyncSession = Depends(get_session),
):
    result = await uc.update(rule_id, body.changes())
    raise_for_error(result)
    await session.commit()
    return serialize_rule(result.value)


@router.delete("/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: str,
    uc: ManageRulesUseCase = Depends(get_manage_rules_uc),
    session: AsyncSession = Depends(get_session),
):
    if not await uc.delete(rule_id):
        raise HTTPException(status_code=404, detail="Rule not found")
    await session.commit()
