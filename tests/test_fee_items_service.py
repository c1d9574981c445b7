from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from fee_registry.api.v1.fee_items import service
from fee_registry.api.v1.fee_items.schemas import FeeItemCreate, FeeItemUpdate
from fee_registry.api.v1.fee_types import service as fee_type_service
from fee_registry.api.v1.fee_types.schemas import FeeTypeCreate
from fee_registry.core.exceptions import ForbiddenError, NotFoundError, ValidationError


@pytest.fixture()
async def tuition(db_session: AsyncSession):
    return await fee_type_service.create_fee_type(db_session, FeeTypeCreate(name="Tuition", code="TUI"))


def _payload(fee_type, academic_year, **overrides) -> FeeItemCreate:
    data = {
        "name": "Term 1 Tuition",
        "amount_paise": 2500000,
        "fee_type_id": fee_type.id,
        "academic_year_id": academic_year.id,
    }
    data.update(overrides)
    return FeeItemCreate(**data)


@pytest.mark.asyncio
async def test_create_defaults(db_session: AsyncSession, org_a, academic_year_a, tuition) -> None:
    fi = await service.create_fee_item(db_session, org_a.id, _payload(tuition, academic_year_a))

    assert fi.organization_id == org_a.id
    assert fi.branch_id is None
    assert fi.is_mandatory is True
    assert fi.enabled_grades == []
    assert fi.is_deleted is False


@pytest.mark.asyncio
async def test_enabled_grades_are_an_opaque_deduplicated_set(
    db_session: AsyncSession, org_a, academic_year_a, tuition
) -> None:
    fi = await service.create_fee_item(
        db_session,
        org_a.id,
        _payload(tuition, academic_year_a, enabled_grades=["grade-5", " grade-6 ", "grade-5", ""]),
    )
    assert fi.enabled_grades == ["grade-5", "grade-6"]


@pytest.mark.asyncio
async def test_create_rejects_blank_name(db_session: AsyncSession, org_a, academic_year_a, tuition) -> None:
    with pytest.raises(ValidationError):
        await service.create_fee_item(db_session, org_a.id, _payload(tuition, academic_year_a, name="  "))


@pytest.mark.asyncio
async def test_create_rejects_unknown_fee_type(db_session: AsyncSession, org_a, academic_year_a) -> None:
    payload = FeeItemCreate(
        name="Bus", amount_paise=100, fee_type_id=uuid4(), academic_year_id=academic_year_a.id
    )
    with pytest.raises(NotFoundError):
        await service.create_fee_item(db_session, org_a.id, payload)


@pytest.mark.asyncio
async def test_create_rejects_other_organizations_private_type(
    db_session: AsyncSession, org_a, org_b, academic_year_a
) -> None:
    foreign = await fee_type_service.create_fee_type(
        db_session, FeeTypeCreate(name="Sports", organization_id=org_b.id)
    )
    with pytest.raises(ForbiddenError):
        await service.create_fee_item(db_session, org_a.id, _payload(foreign, academic_year_a))


@pytest.mark.asyncio
async def test_create_rejects_foreign_academic_year(db_session: AsyncSession, org_b, academic_year_a, tuition) -> None:
    with pytest.raises(ValidationError):
        await service.create_fee_item(db_session, org_b.id, _payload(tuition, academic_year_a))


@pytest.mark.asyncio
async def test_items_are_not_unique(db_session: AsyncSession, org_a, academic_year_a, tuition) -> None:
    await service.create_fee_item(db_session, org_a.id, _payload(tuition, academic_year_a))
    await service.create_fee_item(db_session, org_a.id, _payload(tuition, academic_year_a))

    assert len(await service.list_fee_items(db_session, organization_id=org_a.id)) == 2


@pytest.mark.asyncio
async def test_list_joins_display_fields_and_filters(
    db_session: AsyncSession, org_a, academic_year_a, branch_a, tuition
) -> None:
    await service.create_fee_item(db_session, org_a.id, _payload(tuition, academic_year_a, name="Org wide"))
    await service.create_fee_item(
        db_session, org_a.id, _payload(tuition, academic_year_a, name="North only", branch_id=branch_a.id)
    )

    branch_items = await service.list_fee_items(db_session, organization_id=org_a.id, branch_id=branch_a.id)

    assert [i.name for i in branch_items] == ["North only"]
    item = branch_items[0]
    assert item.fee_type_name == "Tuition"
    assert item.fee_type_code == "TUI"
    assert item.branch_name == "North Campus"
    assert item.branch_code == "NC"
    assert item.academic_year_name == "2025-2026"
    assert item.academic_year_start_date == academic_year_a.start_date


@pytest.mark.asyncio
async def test_get_with_details_and_missing(db_session: AsyncSession, org_a, academic_year_a, tuition) -> None:
    fi = await service.create_fee_item(db_session, org_a.id, _payload(tuition, academic_year_a))

    detail = await service.get_fee_item(db_session, fi.id)
    assert detail.fee_type_name == "Tuition"
    assert detail.branch_name is None

    with pytest.raises(NotFoundError):
        await service.get_fee_item(db_session, uuid4())


@pytest.mark.asyncio
async def test_update_partial(db_session: AsyncSession, org_a, academic_year_a, tuition) -> None:
    fi = await service.create_fee_item(db_session, org_a.id, _payload(tuition, academic_year_a))

    updated = await service.update_fee_item(db_session, fi.id, FeeItemUpdate(amount_paise=2600000))

    assert updated.amount_paise == 2600000
    assert updated.name == "Term 1 Tuition"


@pytest.mark.asyncio
async def test_update_without_fields_never_touches_storage() -> None:
    with pytest.raises(ValidationError):
        await service.update_fee_item(None, uuid4(), FeeItemUpdate())


@pytest.mark.asyncio
async def test_update_missing_item(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await service.update_fee_item(db_session, uuid4(), FeeItemUpdate(name="X"))


@pytest.mark.asyncio
async def test_delete_is_soft(db_session: AsyncSession, org_a, academic_year_a, tuition) -> None:
    fi = await service.create_fee_item(db_session, org_a.id, _payload(tuition, academic_year_a))

    deleted = await service.delete_fee_item(db_session, fi.id)

    assert deleted.is_deleted is True
    assert await service.list_fee_items(db_session, organization_id=org_a.id) == []
    everything = await service.list_fee_items(db_session, organization_id=org_a.id, include_deleted=True)
    assert [i.id for i in everything] == [fi.id]
    assert await service.count_active_fee_items(db_session, tuition.id, org_a.id) == 0


def test_fee_items_have_no_restore() -> None:
    # Documented limitation: fee types can be restored, fee items cannot
    assert not hasattr(service, "restore_fee_item")


@pytest.mark.asyncio
async def test_usage_count_is_per_organization(
    db_session: AsyncSession, org_a, org_b, academic_year_a, tuition
) -> None:
    await service.create_fee_item(db_session, org_a.id, _payload(tuition, academic_year_a))

    assert await service.count_active_fee_items(db_session, tuition.id, org_a.id) == 1
    assert await service.count_active_fee_items(db_session, tuition.id, org_b.id) == 0
