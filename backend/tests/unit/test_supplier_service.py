"""Unit tests for supplier invitations and status updates."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from alucbam.core.lifecycle import InvalidTransitionError
from alucbam.core.security import Principal
from alucbam.core.tasks import PersistenceDispatcher
from alucbam.db.store import SUPPLIERS, InMemoryDocumentStore
from alucbam.modules.suppliers.schemas import (
    InvitationRejection,
    MaterialType,
    SupplierInvitation,
    SupplierStatus,
)
from alucbam.modules.suppliers.service import (
    InvitationRejected,
    InvitationSent,
    SupplierNotFoundError,
    SupplierService,
    material_types,
)

AT = datetime(2024, 4, 2, 8, 0, tzinfo=UTC)


@pytest.fixture()
def service(
    store: InMemoryDocumentStore,
    dispatcher: PersistenceDispatcher,
    principal: Principal,
) -> SupplierService:
    return SupplierService(store, dispatcher, principal)


def _invitation(**overrides: object) -> SupplierInvitation:
    data: dict[str, object] = {
        "supplier_name": "Bauxite Co",
        "supplier_email": "ops@bauxite.example",
        "materials": [MaterialType.BAUXITE, MaterialType.ALUMINA, MaterialType.BAUXITE],
    }
    data.update(overrides)
    return SupplierInvitation(**data)


@pytest.mark.asyncio
async def test_invite_records_supplier(
    service: SupplierService,
    store: InMemoryDocumentStore,
    dispatcher: PersistenceDispatcher,
) -> None:
    result = await service.invite(_invitation(), at=AT)
    await dispatcher.drain()

    assert isinstance(result, InvitationSent)
    supplier = result.supplier
    assert supplier.status == SupplierStatus.INVITED
    assert supplier.invited_at == AT
    assert [m.material_type for m in supplier.materials] == [
        MaterialType.BAUXITE,
        MaterialType.ALUMINA,
    ]
    assert supplier.materials[0].material_name == "Bauxite"
    assert supplier.materials[0].unit == "tonnes"

    [stored] = await store.list(SUPPLIERS)
    assert stored["userId"] == "user-123"
    assert stored["invitedAt"] == "2024-04-02T08:00:00Z"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("overrides", "reason"),
    [
        ({"supplier_email": ""}, InvitationRejection.MISSING_EMAIL),
        ({"supplier_name": "   "}, InvitationRejection.MISSING_NAME),
    ],
)
async def test_incomplete_invitation_is_discarded(
    service: SupplierService,
    store: InMemoryDocumentStore,
    dispatcher: PersistenceDispatcher,
    overrides: dict[str, object],
    reason: InvitationRejection,
) -> None:
    result = await service.invite(_invitation(**overrides))
    await dispatcher.drain()

    assert isinstance(result, InvitationRejected)
    assert result.reason == reason
    assert await store.list(SUPPLIERS) == []


@pytest.mark.asyncio
async def test_status_updates_and_summary(
    service: SupplierService,
    dispatcher: PersistenceDispatcher,
) -> None:
    first = await service.invite(_invitation(), at=AT)
    second = await service.invite(_invitation(supplier_name="Smelter AG"), at=AT)
    await service.invite(_invitation(supplier_name="Caster Ltd"), at=AT)
    await dispatcher.drain()
    assert isinstance(first, InvitationSent) and isinstance(second, InvitationSent)

    updated = await service.update_status(first.supplier.id, SupplierStatus.COMPLETED, at=AT)
    await service.update_status(second.supplier.id, SupplierStatus.ACTIVE, at=AT)
    await dispatcher.drain()
    assert updated.responded_at == AT

    summary = await service.summary()
    assert summary.total == 3
    assert summary.completed == 1
    assert summary.pending == 1
    assert summary.completion_rate == pytest.approx(100 / 3)

    with pytest.raises(InvalidTransitionError):
        await service.update_status(first.supplier.id, SupplierStatus.PENDING)


@pytest.mark.asyncio
async def test_status_cannot_move_back_before_write_lands(
    service: SupplierService,
    store: InMemoryDocumentStore,
    dispatcher: PersistenceDispatcher,
) -> None:
    result = await service.invite(_invitation(), at=AT)
    assert isinstance(result, InvitationSent)
    supplier_id = result.supplier.id

    await service.update_status(supplier_id, SupplierStatus.COMPLETED, at=AT)
    with pytest.raises(InvalidTransitionError):
        await service.update_status(supplier_id, SupplierStatus.PENDING, at=AT)

    await dispatcher.drain()
    [stored] = await store.list(SUPPLIERS)
    assert stored["status"] == "completed"
    assert stored["respondedAt"] == "2024-04-02T08:00:00Z"


@pytest.mark.asyncio
async def test_unknown_supplier(service: SupplierService) -> None:
    with pytest.raises(SupplierNotFoundError):
        await service.update_status("supplier-missing", SupplierStatus.PENDING)


def test_material_types() -> None:
    types = material_types()
    assert [t.value for t in types] == list(MaterialType)
    assert all(t.unit == "tonnes" for t in types)
