"""Fee item service layer. Items are soft deleted only and cannot be restored."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fee_registry.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from fee_registry.core.models import AcademicYear, Branch, FeeItem, FeeType
from fee_registry.db.session import transaction

from .schemas import FeeItemCreate, FeeItemResponse, FeeItemUpdate, FeeItemWithDetails


def _normalize_grades(grades: Optional[List[str]]) -> List[str]:
    """Grade identifiers are opaque: trimmed, blanks dropped, duplicates removed, order kept."""
    cleaned = [str(g).strip() for g in grades or []]
    return list(dict.fromkeys(g for g in cleaned if g))


def _to_response(fi: FeeItem) -> FeeItemResponse:
    return FeeItemResponse(
        id=fi.id,
        organization_id=fi.organization_id,
        branch_id=fi.branch_id,
        academic_year_id=fi.academic_year_id,
        fee_type_id=fi.fee_type_id,
        name=fi.name,
        amount_paise=fi.amount_paise,
        is_mandatory=fi.is_mandatory,
        enabled_grades=list(fi.enabled_grades or []),
        is_deleted=fi.is_deleted,
        created_at=fi.created_at,
        updated_at=fi.updated_at,
    )


def _details_stmt():
    return (
        select(
            FeeItem,
            FeeType.name.label("fee_type_name"),
            FeeType.code.label("fee_type_code"),
            Branch.name.label("branch_name"),
            Branch.code.label("branch_code"),
            AcademicYear.name.label("academic_year_name"),
            AcademicYear.start_date.label("academic_year_start_date"),
            AcademicYear.end_date.label("academic_year_end_date"),
        )
        .outerjoin(FeeType, FeeItem.fee_type_id == FeeType.id)
        .outerjoin(Branch, FeeItem.branch_id == Branch.id)
        .outerjoin(AcademicYear, FeeItem.academic_year_id == AcademicYear.id)
    )


def _row_to_details(row) -> FeeItemWithDetails:
    fi = row[0]
    return FeeItemWithDetails(
        **_to_response(fi).model_dump(),
        fee_type_name=row.fee_type_name,
        fee_type_code=row.fee_type_code,
        branch_name=row.branch_name,
        branch_code=row.branch_code,
        academic_year_name=row.academic_year_name,
        academic_year_start_date=row.academic_year_start_date,
        academic_year_end_date=row.academic_year_end_date,
    )


async def _get_usable_fee_type(db: AsyncSession, fee_type_id: UUID, organization_id: UUID) -> FeeType:
    ft = await db.get(FeeType, fee_type_id)
    if not ft:
        raise NotFoundError("Fee type not found")
    if ft.is_deleted:
        raise ValidationError("Fee type is deleted")
    if ft.organization_id is not None and ft.organization_id != organization_id:
        raise ForbiddenError("Fee type belongs to another organization")
    return ft


async def _get_fee_item_row(db: AsyncSession, fee_item_id: UUID) -> FeeItem:
    fi = await db.get(FeeItem, fee_item_id)
    if not fi:
        raise NotFoundError("Fee item not found")
    return fi


async def create_fee_item(
    db: AsyncSession,
    organization_id: UUID,
    payload: FeeItemCreate,
) -> FeeItemResponse:
    name = payload.name.strip()
    if not name:
        raise ValidationError("Fee item name is required")

    async with transaction(db):
        await _get_usable_fee_type(db, payload.fee_type_id, organization_id)
        ay = await db.get(AcademicYear, payload.academic_year_id)
        if not ay or ay.organization_id != organization_id:
            raise ValidationError("Invalid academic year")
        if payload.branch_id is not None:
            branch = await db.get(Branch, payload.branch_id)
            if not branch or branch.organization_id != organization_id:
                raise ValidationError("Invalid branch")
        fi = FeeItem(
            organization_id=organization_id,
            branch_id=payload.branch_id,
            academic_year_id=payload.academic_year_id,
            fee_type_id=payload.fee_type_id,
            name=name,
            amount_paise=payload.amount_paise,
            is_mandatory=payload.is_mandatory,
            enabled_grades=_normalize_grades(payload.enabled_grades),
            is_deleted=False,
        )
        db.add(fi)
    await db.refresh(fi)
    return _to_response(fi)


async def list_fee_items(
    db: AsyncSession,
    organization_id: Optional[UUID] = None,
    branch_id: Optional[UUID] = None,
    academic_year_id: Optional[UUID] = None,
    fee_type_id: Optional[UUID] = None,
    include_deleted: bool = False,
) -> List[FeeItemWithDetails]:
    """Fee items with display fields, newest first."""
    stmt = _details_stmt()
    if organization_id is not None:
        stmt = stmt.where(FeeItem.organization_id == organization_id)
    if branch_id is not None:
        stmt = stmt.where(FeeItem.branch_id == branch_id)
    if academic_year_id is not None:
        stmt = stmt.where(FeeItem.academic_year_id == academic_year_id)
    if fee_type_id is not None:
        stmt = stmt.where(FeeItem.fee_type_id == fee_type_id)
    if not include_deleted:
        stmt = stmt.where(FeeItem.is_deleted.is_(False))
    stmt = stmt.order_by(FeeItem.created_at.desc())
    result = await db.execute(stmt)
    return [_row_to_details(row) for row in result.all()]


async def get_fee_item(db: AsyncSession, fee_item_id: UUID) -> FeeItemWithDetails:
    result = await db.execute(_details_stmt().where(FeeItem.id == fee_item_id))
    row = result.first()
    if row is None:
        raise NotFoundError("Fee item not found")
    return _row_to_details(row)


async def update_fee_item(
    db: AsyncSession,
    fee_item_id: UUID,
    payload: FeeItemUpdate,
) -> FeeItemResponse:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No data to update")
    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("Fee item name cannot be empty")
    if "amount_paise" in changes and changes["amount_paise"] is None:
        raise ValidationError("amount_paise cannot be null")

    async with transaction(db):
        fi = await _get_fee_item_row(db, fee_item_id)
        if changes.get("fee_type_id") is not None:
            await _get_usable_fee_type(db, changes["fee_type_id"], fi.organization_id)
            fi.fee_type_id = changes["fee_type_id"]
        if "name" in changes:
            fi.name = changes["name"].strip()
        if "amount_paise" in changes:
            fi.amount_paise = changes["amount_paise"]
        if changes.get("is_mandatory") is not None:
            fi.is_mandatory = changes["is_mandatory"]
        if "enabled_grades" in changes:
            fi.enabled_grades = _normalize_grades(changes["enabled_grades"])
    await db.refresh(fi)
    return _to_response(fi)


async def delete_fee_item(db: AsyncSession, fee_item_id: UUID) -> FeeItemResponse:
    """Soft delete. There is intentionally no way back for fee items."""
    async with transaction(db):
        fi = await _get_fee_item_row(db, fee_item_id)
        fi.is_deleted = True
    await db.refresh(fi)
    return _to_response(fi)


async def count_active_fee_items(
    db: AsyncSession,
    fee_type_id: UUID,
    organization_id: UUID,
) -> int:
    """Non-deleted fee items of one organization that reference the fee type."""
    result = await db.execute(
        select(func.count(FeeItem.id)).where(
            FeeItem.fee_type_id == fee_type_id,
            FeeItem.organization_id == organization_id,
            FeeItem.is_deleted.is_(False),
        )
    )
    return int(result.scalar_one() or 0)
