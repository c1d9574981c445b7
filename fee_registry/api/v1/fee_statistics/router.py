"""Fee statistics router."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fee_registry.auth.rbac import require_branch_admin, resolve_organization_id
from fee_registry.auth.schemas import CurrentUser
from fee_registry.db.session import get_db

from .schemas import FeeItemStats, FeeTypeStats
from . import service

router = APIRouter(prefix="/api/v1/fee-statistics", tags=["fee-statistics"])


@router.get("/fee-types", response_model=FeeTypeStats)
async def fee_type_stats(
    organization_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_branch_admin),
) -> FeeTypeStats:
    return await service.get_fee_type_stats(db, resolve_organization_id(current_user, organization_id))


@router.get("/fee-items", response_model=FeeItemStats)
async def fee_item_stats(
    organization_id: Optional[UUID] = Query(None),
    branch_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_branch_admin),
) -> FeeItemStats:
    if current_user.branch_id is not None:
        branch_id = current_user.branch_id
    return await service.get_fee_item_stats(
        db,
        organization_id=resolve_organization_id(current_user, organization_id),
        branch_id=branch_id,
    )
