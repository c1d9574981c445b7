import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from fee_registry.api.v1.fee_items import service as fee_item_service
from fee_registry.api.v1.fee_items.schemas import FeeItemCreate
from fee_registry.api.v1.fee_statistics import service
from fee_registry.api.v1.fee_types import service as fee_type_service
from fee_registry.api.v1.fee_types.schemas import FeeTypeCreate


@pytest.mark.asyncio
async def test_fee_type_stats(db_session: AsyncSession, org_a, org_b) -> None:
    await fee_type_service.create_fee_type(db_session, FeeTypeCreate(name="Tuition"))
    await fee_type_service.create_fee_type(db_session, FeeTypeCreate(name="Transport"))
    lab = await fee_type_service.create_fee_type(db_session, FeeTypeCreate(name="Lab Fee", organization_id=org_a.id))
    await fee_type_service.create_fee_type(db_session, FeeTypeCreate(name="Art Fee", organization_id=org_a.id))
    await fee_type_service.create_fee_type(db_session, FeeTypeCreate(name="Sports", organization_id=org_b.id))
    await fee_type_service.remove_or_delete(db_session, lab.id, org_a.id)

    stats = await service.get_fee_type_stats(db_session, org_a.id)

    assert stats.total_types == 3
    assert stats.global_types == 2
    assert stats.private_types == 1
    assert stats.organization_types == 1

    overall = await service.get_fee_type_stats(db_session)
    assert overall.total_types == 4
    assert overall.organization_types == 2


@pytest.mark.asyncio
async def test_fee_item_stats(db_session: AsyncSession, org_a, academic_year_a, branch_a) -> None:
    tuition = await fee_type_service.create_fee_type(db_session, FeeTypeCreate(name="Tuition"))
    bus = await fee_type_service.create_fee_type(db_session, FeeTypeCreate(name="Bus"))
    for fee_type, amount, branch_id in (
        (tuition, 30000, None),
        (tuition, 50000, branch_a.id),
        (bus, 10000, branch_a.id),
    ):
        await fee_item_service.create_fee_item(
            db_session,
            org_a.id,
            FeeItemCreate(
                name=f"{fee_type.name} item",
                amount_paise=amount,
                fee_type_id=fee_type.id,
                academic_year_id=academic_year_a.id,
                branch_id=branch_id,
            ),
        )

    stats = await service.get_fee_item_stats(db_session, organization_id=org_a.id)

    assert stats.total_items == 3
    assert stats.average_fee_amount == pytest.approx(30000)
    assert stats.max_fee_amount == 50000
    assert stats.min_fee_amount == 10000
    assert [(row.fee_type_name, row.count) for row in stats.items_by_type] == [("Tuition", 2), ("Bus", 1)]

    branch_stats = await service.get_fee_item_stats(db_session, organization_id=org_a.id, branch_id=branch_a.id)
    assert branch_stats.total_items == 2
    assert branch_stats.min_fee_amount == 10000


@pytest.mark.asyncio
async def test_fee_item_stats_branch_stays_within_organization(
    db_session: AsyncSession, org_a, org_b, academic_year_a, branch_a
) -> None:
    tuition = await fee_type_service.create_fee_type(db_session, FeeTypeCreate(name="Tuition"))
    await fee_item_service.create_fee_item(
        db_session,
        org_a.id,
        FeeItemCreate(
            name="Term 1",
            amount_paise=77700,
            fee_type_id=tuition.id,
            academic_year_id=academic_year_a.id,
            branch_id=branch_a.id,
        ),
    )

    stats = await service.get_fee_item_stats(db_session, organization_id=org_b.id, branch_id=branch_a.id)

    assert stats.total_items == 0
    assert stats.items_by_type == []
    assert stats.average_fee_amount == 0


@pytest.mark.asyncio
async def test_fee_item_stats_empty_scope(db_session: AsyncSession, org_b) -> None:
    stats = await service.get_fee_item_stats(db_session, organization_id=org_b.id)

    assert stats.total_items == 0
    assert stats.items_by_type == []
    assert stats.average_fee_amount == 0
    assert stats.max_fee_amount == 0
