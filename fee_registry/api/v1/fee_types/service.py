"""Fee type service: creation, enablement, removal/deletion decision, restore."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fee_registry.api.v1.fee_items import service as fee_item_service
from fee_registry.core import fee_type_membership
from fee_registry.core.enums import RemovalAction
from fee_registry.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from fee_registry.core.models import FeeType
from fee_registry.db.session import transaction

from .schemas import (
    EnabledFeeTypeResponse,
    EnabledFeeTypesResponse,
    FeeTypeCreate,
    FeeTypeResponse,
    FeeTypeUpdate,
    RemovalCheckResponse,
    RemovalResultResponse,
)


# --- Ownership ---
@dataclass(frozen=True)
class GlobalOwnership:
    """Shared by every organization; only enabled-set membership changes per organization."""


@dataclass(frozen=True)
class PrivateOwnership:
    owner_id: UUID


Ownership = Union[GlobalOwnership, PrivateOwnership]


def ownership_of(ft: FeeType) -> Ownership:
    if ft.organization_id is None:
        return GlobalOwnership()
    return PrivateOwnership(owner_id=ft.organization_id)


@dataclass(frozen=True)
class RemovalPlan:
    ownership: Ownership
    will_delete: bool
    usage_count: int
    message: str
    fee_type_name: str

    @property
    def has_usage(self) -> bool:
        return self.usage_count > 0

    @property
    def is_private(self) -> bool:
        return isinstance(self.ownership, PrivateOwnership)


def _items_phrase(count: int) -> str:
    return f"{count} fee item{'s' if count != 1 else ''}"


async def _plan_removal(db: AsyncSession, ft: FeeType, organization_id: UUID) -> RemovalPlan:
    """Decide delete vs. remove for one organization acting on ft. Reads only."""
    ownership = ownership_of(ft)
    if isinstance(ownership, PrivateOwnership) and ownership.owner_id != organization_id:
        raise ForbiddenError("You do not have permission to delete this fee type")
    if isinstance(ownership, PrivateOwnership) and ft.is_deleted:
        raise ValidationError("Fee type is already deleted")

    usage_count = await fee_item_service.count_active_fee_items(db, ft.id, organization_id)
    phrase = _items_phrase(usage_count)
    if isinstance(ownership, PrivateOwnership):
        will_delete = True
        message = (
            f"This private fee type will be permanently deleted. {phrase} currently use this type."
            if usage_count
            else "This private fee type will be permanently deleted from your organization."
        )
    else:
        will_delete = False
        message = (
            "This fee type will be removed from your organization's enabled types. "
            f"{phrase} currently use this type and should be reassigned."
            if usage_count
            else "This fee type will be removed from your organization's enabled types."
        )
    return RemovalPlan(
        ownership=ownership,
        will_delete=will_delete,
        usage_count=usage_count,
        message=message,
        fee_type_name=ft.name,
    )


# --- Helpers ---
def _to_response(ft: FeeType) -> FeeTypeResponse:
    return FeeTypeResponse(
        id=ft.id,
        organization_id=ft.organization_id,
        code=ft.code,
        name=ft.name,
        description=ft.description,
        is_private=ft.is_private,
        is_deleted=ft.is_deleted,
        deleted_at=ft.deleted_at,
        created_at=ft.created_at,
        updated_at=ft.updated_at,
    )


def _clean(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def _sorted_ids(ids) -> List[UUID]:
    return sorted(ids, key=str)


async def _get_fee_type_row(db: AsyncSession, fee_type_id: UUID, for_update: bool = False) -> FeeType:
    stmt = select(FeeType).where(FeeType.id == fee_type_id)
    if for_update:
        # Re-read committed state even if the row is already in the identity map
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    ft = (await db.execute(stmt)).scalar_one_or_none()
    if not ft:
        raise NotFoundError("Fee type not found")
    return ft


# --- CRUD ---
async def create_fee_type(db: AsyncSession, payload: FeeTypeCreate) -> FeeTypeResponse:
    """Create a fee type. An organization-owned type is enabled for its owner in the same transaction."""
    name = payload.name.strip()
    if not name:
        raise ValidationError("Fee type name is required")
    is_private = payload.is_private if payload.is_private is not None else payload.organization_id is not None

    async with transaction(db):
        if payload.organization_id is not None:
            await fee_type_membership.get_organization(db, payload.organization_id)
        ft = FeeType(
            organization_id=payload.organization_id,
            code=_clean(payload.code),
            name=name,
            description=_clean(payload.description),
            is_private=is_private,
            is_deleted=False,
        )
        db.add(ft)
        await db.flush()
        if payload.organization_id is not None:
            await fee_type_membership.add_ids(db, payload.organization_id, [ft.id])
    await db.refresh(ft)
    return _to_response(ft)


async def list_fee_types(
    db: AsyncSession,
    organization_id: Optional[UUID] = None,
    include_deleted: bool = False,
    include_private: bool = False,
) -> List[FeeTypeResponse]:
    """Global fee types, plus the organization's own when organization_id is given. Ordered by name."""
    stmt = select(FeeType)
    if organization_id is not None:
        stmt = stmt.where(or_(FeeType.organization_id.is_(None), FeeType.organization_id == organization_id))
    else:
        stmt = stmt.where(FeeType.organization_id.is_(None))
    if not include_deleted:
        stmt = stmt.where(FeeType.is_deleted.is_(False))
    if not include_private:
        stmt = stmt.where(FeeType.is_private.is_(False))
    stmt = stmt.order_by(FeeType.name)
    result = await db.execute(stmt)
    return [_to_response(ft) for ft in result.scalars().all()]


async def get_global_fee_types(db: AsyncSession) -> List[FeeTypeResponse]:
    return await list_fee_types(db)


async def get_organization_fee_types(db: AsyncSession, organization_id: UUID) -> List[FeeTypeResponse]:
    """Active, non-private fee types visible to the organization (global or owned)."""
    result = await db.execute(
        select(FeeType)
        .where(
            FeeType.is_deleted.is_(False),
            FeeType.is_private.is_(False),
            or_(FeeType.organization_id.is_(None), FeeType.organization_id == organization_id),
        )
        .order_by(FeeType.name)
    )
    return [_to_response(ft) for ft in result.scalars().all()]


async def get_fee_type(db: AsyncSession, fee_type_id: UUID) -> FeeTypeResponse:
    return _to_response(await _get_fee_type_row(db, fee_type_id))


async def update_fee_type(
    db: AsyncSession,
    fee_type_id: UUID,
    payload: FeeTypeUpdate,
    organization_id: Optional[UUID] = None,
) -> FeeTypeResponse:
    """
    Apply only the supplied fields.

    organization_id is the acting organization; None means a platform-level caller.
    An organization may only edit its own private types, never global ones.
    """
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No data to update")
    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("Fee type name cannot be empty")

    async with transaction(db):
        ft = await _get_fee_type_row(db, fee_type_id, for_update=True)
        if organization_id is not None:
            ownership = ownership_of(ft)
            if isinstance(ownership, GlobalOwnership):
                raise ForbiddenError("Only platform administrators can modify global fee types")
            if ownership.owner_id != organization_id:
                raise ForbiddenError("You do not have permission to modify this fee type")
        if "name" in changes:
            ft.name = changes["name"].strip()
        if "code" in changes:
            ft.code = _clean(changes["code"])
        if "description" in changes:
            ft.description = _clean(changes["description"])
        if changes.get("is_private") is not None:
            ft.is_private = changes["is_private"]
    await db.refresh(ft)
    return _to_response(ft)


# --- Organization enabled set ---
async def get_enabled_fee_types(db: AsyncSession, organization_id: UUID) -> List[EnabledFeeTypeResponse]:
    """
    Fee types enabled for the organization plus every type it owns, deleted ones included
    so they can be restored. Deleted rows last, then by name.
    """
    await fee_type_membership.get_organization(db, organization_id)
    enabled = await fee_type_membership.get_enabled_set(db, organization_id)
    result = await db.execute(
        select(FeeType)
        .where(or_(FeeType.id.in_(list(enabled)), FeeType.organization_id == organization_id))
        .order_by(FeeType.is_deleted.asc(), FeeType.name.asc())
    )
    return [
        EnabledFeeTypeResponse(**_to_response(ft).model_dump(), is_enabled=ft.id in enabled)
        for ft in result.scalars().all()
    ]


async def enable_fee_types(
    db: AsyncSession,
    organization_id: UUID,
    fee_type_ids: List[UUID],
) -> EnabledFeeTypesResponse:
    """Opt the organization into existing global types or its own private types."""
    if not fee_type_ids:
        raise ValidationError("At least one fee type ID is required")

    async with transaction(db):
        await fee_type_membership.get_organization(db, organization_id)
        wanted = set(fee_type_ids)
        rows = (await db.execute(select(FeeType).where(FeeType.id.in_(list(wanted))))).scalars().all()
        missing = wanted - {ft.id for ft in rows}
        if missing:
            raise NotFoundError(
                f"Fee type(s) not found: {', '.join(sorted(str(m) for m in missing))}"
            )
        for ft in rows:
            if ft.is_deleted:
                raise ValidationError(f"Fee type '{ft.name}' is deleted and cannot be enabled")
            ownership = ownership_of(ft)
            if isinstance(ownership, PrivateOwnership) and ownership.owner_id != organization_id:
                raise ForbiddenError(f"Fee type '{ft.name}' belongs to another organization")
        enabled = await fee_type_membership.add_ids(db, organization_id, wanted)
    return EnabledFeeTypesResponse(organization_id=organization_id, enabled_fee_type_ids=_sorted_ids(enabled))


# --- Removal ---
async def check_removal(
    db: AsyncSession,
    fee_type_id: UUID,
    organization_id: UUID,
) -> RemovalCheckResponse:
    """What remove_or_delete would do for this organization. No writes."""
    await fee_type_membership.get_organization(db, organization_id)
    ft = await _get_fee_type_row(db, fee_type_id)
    plan = await _plan_removal(db, ft, organization_id)
    return RemovalCheckResponse(
        will_delete=plan.will_delete,
        has_usage=plan.has_usage,
        usage_count=plan.usage_count,
        message=plan.message,
        is_private=plan.is_private,
        fee_type_name=plan.fee_type_name,
    )


async def remove_or_delete(
    db: AsyncSession,
    fee_type_id: UUID,
    organization_id: UUID,
) -> RemovalResultResponse:
    """
    Private type, owner acting: purge from every enabled set, then soft delete.
    Global type: strike from the acting organization's enabled set only; the row is untouched.
    Fee items referencing the type are never touched.
    """
    async with transaction(db):
        await fee_type_membership.get_organization(db, organization_id)
        ft = await _get_fee_type_row(db, fee_type_id, for_update=True)
        plan = await _plan_removal(db, ft, organization_id)
        suffix = f" (was used by {_items_phrase(plan.usage_count)})" if plan.has_usage else ""
        if plan.will_delete:
            affected = await fee_type_membership.remove_id_everywhere(db, ft.id)
            ft.is_deleted = True
            ft.deleted_at = datetime.now(timezone.utc)
            await db.flush()
            action = RemovalAction.DELETED
            remaining = None
            message = f"Fee type permanently deleted{suffix}"
        else:
            removed = await fee_type_membership.remove_id(db, organization_id, ft.id)
            affected = [organization_id] if removed else []
            action = RemovalAction.REMOVED
            remaining = _sorted_ids(await fee_type_membership.get_enabled_set(db, organization_id))
            message = f"Fee type removed from organization{suffix}"
    await db.refresh(ft)
    return RemovalResultResponse(
        action=action,
        fee_type=_to_response(ft),
        usage_count=plan.usage_count,
        affected_organization_ids=_sorted_ids(affected),
        enabled_fee_type_ids=remaining,
        message=message,
    )


async def restore_fee_type(
    db: AsyncSession,
    fee_type_id: UUID,
    organization_id: Optional[UUID] = None,
) -> FeeTypeResponse:
    """
    Undo a private type's deletion and re-enable it for its owner. For a global type
    only the enabled set of organization_id (if given) changes.
    """
    async with transaction(db):
        ft = await _get_fee_type_row(db, fee_type_id, for_update=True)
        ownership = ownership_of(ft)
        target = organization_id
        if isinstance(ownership, PrivateOwnership):
            if organization_id is not None and organization_id != ownership.owner_id:
                raise ForbiddenError("You do not have permission to restore this fee type")
            if not ft.is_deleted:
                raise ValidationError("Fee type is not deleted")
            clash = await db.execute(
                select(FeeType.id).where(
                    FeeType.organization_id == ownership.owner_id,
                    FeeType.name == ft.name,
                    FeeType.is_deleted.is_(False),
                    FeeType.id != ft.id,
                )
            )
            if clash.first() is not None:
                raise ConflictError(
                    f"An active fee type named '{ft.name}' already exists for this organization"
                )
            ft.is_deleted = False
            ft.deleted_at = None
            target = ownership.owner_id
        if target is not None:
            await fee_type_membership.add_ids(db, target, [ft.id])
    await db.refresh(ft)
    return _to_response(ft)
