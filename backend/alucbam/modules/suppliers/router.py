"""API router for supplier collaboration."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from alucbam.core.dependencies import DispatcherDep, StoreDep
from alucbam.core.lifecycle import InvalidTransitionError
from alucbam.core.security import CurrentPrincipal
from alucbam.modules.suppliers.schemas import (
    MaterialTypeInfo,
    StatusUpdate,
    Supplier,
    SupplierInvitation,
    SupplierSummary,
)
from alucbam.modules.suppliers.service import (
    InvitationRejected,
    SupplierNotFoundError,
    SupplierService,
    material_types,
)

router = APIRouter()


@router.get("/material-types", response_model=list[MaterialTypeInfo])
async def list_material_types() -> list[MaterialTypeInfo]:
    return material_types()


@router.get("/summary", response_model=SupplierSummary)
async def get_summary(
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> SupplierSummary:
    return await SupplierService(store, dispatcher, principal).summary()


@router.get("", response_model=list[Supplier])
async def list_suppliers(
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> list[Supplier]:
    return await SupplierService(store, dispatcher, principal).list_suppliers()


@router.post("", response_model=Supplier, status_code=status.HTTP_201_CREATED)
async def invite_supplier(
    body: SupplierInvitation,
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> Supplier:
    """Invite a supplier to share embedded-emissions data."""
    result = await SupplierService(store, dispatcher, principal).invite(body)
    if isinstance(result, InvitationRejected):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invitation rejected: {result.reason.value}",
        )
    return result.supplier


@router.post("/{supplier_id}/status", response_model=Supplier)
async def update_supplier_status(
    supplier_id: str,
    body: StatusUpdate,
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> Supplier:
    """Advance a supplier's status. Backward moves are rejected."""
    service = SupplierService(store, dispatcher, principal)
    try:
        return await service.update_status(supplier_id, body.status)
    except SupplierNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
