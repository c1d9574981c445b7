"""Read-only aggregates over fee types and fee items for dashboards."""

from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fee_registry.core.models import FeeItem, FeeType

from .schemas import FeeItemStats, FeeItemTypeCount, FeeTypeStats


async def get_fee_type_stats(
    db: AsyncSession,
    organization_id: Optional[UUID] = None,
) -> FeeTypeStats:
    """Counts over non-deleted fee types; scoped to global + the organization's own when given."""
    conditions = [FeeType.is_deleted.is_(False)]
    if organization_id is not None:
        conditions.append(or_(FeeType.organization_id.is_(None), FeeType.organization_id == organization_id))

    stmt = select(
        func.count(FeeType.id),
        func.count(FeeType.id).filter(FeeType.is_private.is_(True)),
        func.count(FeeType.id).filter(FeeType.organization_id.is_(None)),
    ).where(*conditions)
    total, private, global_ = (await db.execute(stmt)).one()
    total = int(total or 0)
    global_ = int(global_ or 0)
    return FeeTypeStats(
        total_types=total,
        private_types=int(private or 0),
        global_types=global_,
        organization_types=total - global_,
    )


async def get_fee_item_stats(
    db: AsyncSession,
    organization_id: Optional[UUID] = None,
    branch_id: Optional[UUID] = None,
) -> FeeItemStats:
    """
    Counts and amount aggregates over non-deleted items. A branch narrows the
    organization scope; it never widens it to another organization's items.
    """
    conditions = [FeeItem.is_deleted.is_(False)]
    if organization_id is not None:
        conditions.append(FeeItem.organization_id == organization_id)
    if branch_id is not None:
        conditions.append(FeeItem.branch_id == branch_id)

    totals = (
        await db.execute(
            select(
                func.count(FeeItem.id),
                func.avg(FeeItem.amount_paise),
                func.max(FeeItem.amount_paise),
                func.min(FeeItem.amount_paise),
            ).where(*conditions)
        )
    ).one()
    total_items, avg_amount, max_amount, min_amount = totals

    count_col = func.count(FeeItem.id).label("count")
    by_type = await db.execute(
        select(FeeItem.fee_type_id, FeeType.name, count_col)
        .outerjoin(FeeType, FeeItem.fee_type_id == FeeType.id)
        .where(*conditions)
        .group_by(FeeItem.fee_type_id, FeeType.name)
        .order_by(count_col.desc(), FeeType.name)
    )

    return FeeItemStats(
        total_items=int(total_items or 0),
        items_by_type=[
            FeeItemTypeCount(fee_type_id=fee_type_id, fee_type_name=name, count=int(count))
            for fee_type_id, name, count in by_type.all()
        ],
        average_fee_amount=float(avg_amount or 0),
        max_fee_amount=int(max_amount or 0),
        min_fee_amount=int(min_amount or 0),
    )
