"""Fee items router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fee_registry.auth.rbac import require_admin, require_branch_admin, resolve_organization_id
from fee_registry.auth.schemas import CurrentUser
from fee_registry.core.exceptions import ServiceError
from fee_registry.db.session import get_db

from .schemas import FeeItemCreate, FeeItemResponse, FeeItemUpdate, FeeItemWithDetails
from . import service

router = APIRouter(prefix="/api/v1/fee-items", tags=["fee-items"])


async def _get_in_scope(db: AsyncSession, fee_item_id: UUID, current_user: CurrentUser) -> FeeItemWithDetails:
    """Load the item, hiding other organizations' items from non-platform admins."""
    fi = await service.get_fee_item(db, fee_item_id)
    if not current_user.is_platform_admin and fi.organization_id != current_user.organization_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fee item not found")
    return fi


@router.post(
    "",
    response_model=FeeItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_fee_item(
    payload: FeeItemCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeItemResponse:
    organization_id = resolve_organization_id(current_user, payload.organization_id)
    try:
        return await service.create_fee_item(db, organization_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[FeeItemWithDetails],
)
async def list_fee_items(
    organization_id: Optional[UUID] = Query(None),
    branch_id: Optional[UUID] = Query(None, description="Branch admins are always scoped to their branch"),
    academic_year_id: Optional[UUID] = Query(None),
    fee_type_id: Optional[UUID] = Query(None),
    include_deleted: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_branch_admin),
) -> List[FeeItemWithDetails]:
    if current_user.branch_id is not None:
        branch_id = current_user.branch_id
    return await service.list_fee_items(
        db,
        organization_id=resolve_organization_id(current_user, organization_id),
        branch_id=branch_id,
        academic_year_id=academic_year_id,
        fee_type_id=fee_type_id,
        include_deleted=include_deleted,
    )


@router.get(
    "/{fee_item_id}",
    response_model=FeeItemWithDetails,
)
async def get_fee_item(
    fee_item_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_branch_admin),
) -> FeeItemWithDetails:
    try:
        return await _get_in_scope(db, fee_item_id, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "/{fee_item_id}",
    response_model=FeeItemResponse,
)
async def update_fee_item(
    fee_item_id: UUID,
    payload: FeeItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeItemResponse:
    try:
        await _get_in_scope(db, fee_item_id, current_user)
        return await service.update_fee_item(db, fee_item_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{fee_item_id}",
    response_model=FeeItemResponse,
)
async def delete_fee_item(
    fee_item_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeItemResponse:
    try:
        await _get_in_scope(db, fee_item_id, current_user)
        return await service.delete_fee_item(db, fee_item_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
