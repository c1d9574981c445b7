"""Fee types router."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fee_registry.auth.rbac import require_admin, require_branch_admin, resolve_organization_id
from fee_registry.auth.schemas import CurrentUser
from fee_registry.core.enums import RemovalAction
from fee_registry.core.exceptions import InternalError, ServiceError
from fee_registry.db.session import get_db

from .schemas import (
    EnableFeeTypesRequest,
    EnabledFeeTypeResponse,
    EnabledFeeTypesResponse,
    FeeTypeCreate,
    FeeTypeResponse,
    FeeTypeRestoreRequest,
    FeeTypeUpdate,
    RemovalCheckResponse,
    RemovalResultResponse,
)
from . import service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/fee-types", tags=["fee-types"])


def _http_error(e: ServiceError) -> HTTPException:
    if isinstance(e, InternalError):
        logger.error("Fee type operation failed: %s", e.message, exc_info=e.__cause__)
    return HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=FeeTypeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_fee_type(
    payload: FeeTypeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeTypeResponse:
    # Only platform admins create global (organization-less) fee types
    if not current_user.is_platform_admin:
        payload = payload.model_copy(
            update={"organization_id": resolve_organization_id(current_user, payload.organization_id)}
        )
    try:
        return await service.create_fee_type(db, payload)
    except ServiceError as e:
        raise _http_error(e)


@router.get(
    "",
    response_model=List[FeeTypeResponse],
)
async def list_fee_types(
    organization_id: Optional[UUID] = Query(None, description="Defaults to the caller's organization"),
    include_deleted: bool = Query(False),
    include_private: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_branch_admin),
) -> List[FeeTypeResponse]:
    return await service.list_fee_types(
        db,
        organization_id=resolve_organization_id(current_user, organization_id),
        include_deleted=include_deleted,
        include_private=include_private,
    )


@router.get(
    "/global",
    response_model=List[FeeTypeResponse],
)
async def list_global_fee_types(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[FeeTypeResponse]:
    return await service.get_global_fee_types(db)


@router.get(
    "/organization",
    response_model=List[FeeTypeResponse],
)
async def list_organization_fee_types(
    organization_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_branch_admin),
) -> List[FeeTypeResponse]:
    return await service.get_organization_fee_types(db, resolve_organization_id(current_user, organization_id))


@router.get(
    "/enabled",
    response_model=List[EnabledFeeTypeResponse],
)
async def list_enabled_fee_types(
    organization_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[EnabledFeeTypeResponse]:
    try:
        return await service.get_enabled_fee_types(db, resolve_organization_id(current_user, organization_id))
    except ServiceError as e:
        raise _http_error(e)


@router.post(
    "/enabled",
    response_model=EnabledFeeTypesResponse,
)
async def enable_fee_types(
    payload: EnableFeeTypesRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> EnabledFeeTypesResponse:
    organization_id = resolve_organization_id(current_user, payload.organization_id)
    try:
        return await service.enable_fee_types(db, organization_id, payload.fee_type_ids)
    except ServiceError as e:
        raise _http_error(e)


@router.get(
    "/{fee_type_id}",
    response_model=FeeTypeResponse,
)
async def get_fee_type(
    fee_type_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_branch_admin),
) -> FeeTypeResponse:
    try:
        ft = await service.get_fee_type(db, fee_type_id)
    except ServiceError as e:
        raise _http_error(e)
    # Other organizations' private types are hidden from non-platform admins
    if (
        not current_user.is_platform_admin
        and ft.organization_id is not None
        and ft.organization_id != current_user.organization_id
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fee type not found")
    return ft


@router.patch(
    "/{fee_type_id}",
    response_model=FeeTypeResponse,
)
async def update_fee_type(
    fee_type_id: UUID,
    payload: FeeTypeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeTypeResponse:
    # Platform admins act without an organization and may edit global types
    organization_id = None if current_user.is_platform_admin else current_user.organization_id
    try:
        return await service.update_fee_type(db, fee_type_id, payload, organization_id)
    except ServiceError as e:
        raise _http_error(e)


@router.get(
    "/{fee_type_id}/removal-check",
    response_model=RemovalCheckResponse,
)
async def check_fee_type_removal(
    fee_type_id: UUID,
    organization_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> RemovalCheckResponse:
    try:
        return await service.check_removal(db, fee_type_id, resolve_organization_id(current_user, organization_id))
    except ServiceError as e:
        raise _http_error(e)


@router.delete(
    "/{fee_type_id}",
    response_model=RemovalResultResponse,
)
async def remove_or_delete_fee_type(
    fee_type_id: UUID,
    organization_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> RemovalResultResponse:
    """Delete a private fee type (owner only) or remove a global one from the organization."""
    organization_id = resolve_organization_id(current_user, organization_id)
    try:
        result = await service.remove_or_delete(db, fee_type_id, organization_id)
    except ServiceError as e:
        raise _http_error(e)
    log_extra = {"organization_id": organization_id, "fee_type_id": fee_type_id}
    if result.action == RemovalAction.DELETED and result.usage_count:
        logger.warning(
            "Deleted fee type %s still used by %d fee items", fee_type_id, result.usage_count, extra=log_extra
        )
    else:
        logger.info("Fee type %s %s for organization %s", fee_type_id, result.action.value, organization_id, extra=log_extra)
    return result


@router.post(
    "/{fee_type_id}/restore",
    response_model=FeeTypeResponse,
)
async def restore_fee_type(
    fee_type_id: UUID,
    payload: Optional[FeeTypeRestoreRequest] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeTypeResponse:
    requested = payload.organization_id if payload else None
    organization_id = resolve_organization_id(current_user, requested)
    try:
        restored = await service.restore_fee_type(db, fee_type_id, organization_id)
    except ServiceError as e:
        raise _http_error(e)
    logger.info("Fee type %s restored for organization %s", fee_type_id, organization_id)
    return restored
