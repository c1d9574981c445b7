"""
Organization membership store: which fee types each organization has enabled.

- The enabled set is the organization_fee_types relation, never a column on the
  organization or the fee type.
- Nothing here commits. Callers pair these writes with fee type row changes
  inside one transaction (see fee_registry.db.session.transaction).
"""
from typing import Iterable, List, Set
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from fee_registry.core.exceptions import NotFoundError
from fee_registry.core.models import FeeType, Organization, OrganizationFeeType


async def get_organization(db: AsyncSession, organization_id: UUID) -> Organization:
    org = await db.get(Organization, organization_id)
    if not org:
        raise NotFoundError("Organization not found")
    return org


async def get_enabled_set(db: AsyncSession, organization_id: UUID) -> Set[UUID]:
    """Fee type ids enabled for the organization (empty set if none)."""
    result = await db.execute(
        select(OrganizationFeeType.fee_type_id).where(
            OrganizationFeeType.organization_id == organization_id
        )
    )
    return set(result.scalars().all())


async def add_ids(
    db: AsyncSession,
    organization_id: UUID,
    fee_type_ids: Iterable[UUID],
) -> Set[UUID]:
    """Union fee_type_ids into the organization's enabled set. Idempotent; returns the new set."""
    await get_organization(db, organization_id)
    wanted = set(fee_type_ids)
    if wanted:
        found = await db.execute(select(FeeType.id).where(FeeType.id.in_(list(wanted))))
        missing = wanted - set(found.scalars().all())
        if missing:
            raise NotFoundError(
                f"Fee type(s) not found: {', '.join(sorted(str(m) for m in missing))}"
            )
    current = await get_enabled_set(db, organization_id)
    for fee_type_id in wanted - current:
        db.add(OrganizationFeeType(organization_id=organization_id, fee_type_id=fee_type_id))
    await db.flush()
    return current | wanted


async def remove_id(db: AsyncSession, organization_id: UUID, fee_type_id: UUID) -> bool:
    """Strike fee_type_id from one organization's enabled set. Absent id is a no-op."""
    result = await db.execute(
        delete(OrganizationFeeType).where(
            OrganizationFeeType.organization_id == organization_id,
            OrganizationFeeType.fee_type_id == fee_type_id,
        )
    )
    return result.rowcount > 0


async def remove_id_everywhere(db: AsyncSession, fee_type_id: UUID) -> List[UUID]:
    """Strike fee_type_id from every organization's enabled set; returns the organizations touched."""
    result = await db.execute(
        select(OrganizationFeeType.organization_id).where(
            OrganizationFeeType.fee_type_id == fee_type_id
        )
    )
    organization_ids = list(result.scalars().all())
    if organization_ids:
        await db.execute(
            delete(OrganizationFeeType).where(OrganizationFeeType.fee_type_id == fee_type_id)
        )
    return organization_ids
