"""
Supplier collaboration service.

Records supplier invitations and their status progress for one user.
Like the report service, writes are dispatched in the background and
reads wait for the supplier writes still in flight.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from alucbam.core.logging import get_logger
from alucbam.core.security import Principal
from alucbam.core.tasks import PersistenceDispatcher
from alucbam.db.store import OWNER_FIELD, SUPPLIERS, DocumentStore
from alucbam.modules.suppliers.lifecycle import SupplierInvitationLifecycle
from alucbam.modules.suppliers.schemas import (
    MATERIAL_LABELS,
    MATERIAL_UNIT,
    InvitationRejection,
    MaterialTypeInfo,
    Supplier,
    SupplierInvitation,
    SupplierMaterial,
    SupplierStatus,
    SupplierSummary,
)

logger = get_logger(__name__)


class SupplierNotFoundError(LookupError):
    def __init__(self, supplier_id: str) -> None:
        self.supplier_id = supplier_id
        super().__init__(f"Supplier {supplier_id} not found")


@dataclass(frozen=True)
class InvitationSent:
    supplier: Supplier

    @property
    def accepted(self) -> bool:
        return True


@dataclass(frozen=True)
class InvitationRejected:
    reason: InvitationRejection

    @property
    def accepted(self) -> bool:
        return False


InvitationResult = InvitationSent | InvitationRejected


def material_types() -> list[MaterialTypeInfo]:
    """Materials that can be requested from suppliers."""
    return [
        MaterialTypeInfo(value=material, label=label, unit=MATERIAL_UNIT)
        for material, label in MATERIAL_LABELS.items()
    ]


def summarize_suppliers(suppliers: list[Supplier]) -> SupplierSummary:
    total = len(suppliers)
    completed = sum(1 for s in suppliers if s.status == SupplierStatus.COMPLETED)
    pending = sum(
        1 for s in suppliers if s.status in (SupplierStatus.PENDING, SupplierStatus.ACTIVE)
    )
    return SupplierSummary(
        total=total,
        completed=completed,
        pending=pending,
        completion_rate=(completed / total * 100.0) if total else 0.0,
    )


class SupplierService:
    """Supplier operations for one authenticated user."""

    def __init__(
        self,
        store: DocumentStore,
        dispatcher: PersistenceDispatcher,
        principal: Principal,
        *,
        lifecycle: SupplierInvitationLifecycle | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._principal = principal
        self._lifecycle = lifecycle or SupplierInvitationLifecycle()

    @property
    def _owner(self) -> dict[str, Any]:
        return {OWNER_FIELD: self._principal.subject}

    async def list_suppliers(self) -> list[Supplier]:
        """The user's suppliers, most recently invited first."""
        await self._dispatcher.settle(SUPPLIERS)
        records = await self._store.list(
            SUPPLIERS,
            where=self._owner,
            order_by="invitedAt",
            descending=True,
        )
        return [Supplier.model_validate(record) for record in records]

    async def get_supplier(self, supplier_id: str) -> Supplier:
        await self._dispatcher.settle(SUPPLIERS)
        records = await self._store.list(SUPPLIERS, where={**self._owner, "id": supplier_id})
        if not records:
            raise SupplierNotFoundError(supplier_id)
        return Supplier.model_validate(records[0])

    async def summary(self) -> SupplierSummary:
        return summarize_suppliers(await self.list_suppliers())

    async def invite(
        self,
        invitation: SupplierInvitation,
        *,
        at: datetime | None = None,
    ) -> InvitationResult:
        """Record an invited supplier with the requested materials.

        Invitations without a supplier name or email are discarded.
        """
        name = invitation.supplier_name.strip()
        email = invitation.supplier_email.strip()
        if not email:
            return InvitationRejected(InvitationRejection.MISSING_EMAIL)
        if not name:
            return InvitationRejected(InvitationRejection.MISSING_NAME)

        requested = list(dict.fromkeys(invitation.materials))
        supplier = Supplier(
            id=f"supplier-{uuid4().hex[:12]}",
            name=name,
            email=email,
            status=SupplierStatus.INVITED,
            invited_at=at or datetime.now(UTC),
            materials=[
                SupplierMaterial(
                    id=f"material-{uuid4().hex[:12]}",
                    material_name=MATERIAL_LABELS[material],
                    material_type=material,
                )
                for material in requested
            ],
        )
        record = {**supplier.model_dump(mode="json", by_alias=True), **self._owner}
        self._dispatcher.submit(
            "create_supplier",
            self._store.create(SUPPLIERS, record),
            collection=SUPPLIERS,
        )

        logger.info(
            "supplier_invited",
            supplier_id=supplier.id,
            material_count=len(requested),
            due_date=invitation.due_date.isoformat() if invitation.due_date else None,
        )
        return InvitationSent(supplier)

    async def update_status(
        self,
        supplier_id: str,
        status: SupplierStatus,
        *,
        at: datetime | None = None,
    ) -> Supplier:
        supplier = self._lifecycle.transition(await self.get_supplier(supplier_id), status, at=at)
        payload = supplier.model_dump(
            mode="json",
            by_alias=True,
            include={"status", "responded_at"},
        )
        self._dispatcher.submit(
            "update_supplier_status",
            self._store.update(SUPPLIERS, supplier.id, payload),
            collection=SUPPLIERS,
        )
        return supplier
