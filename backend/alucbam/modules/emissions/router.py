"""API router for the emissions calculator.

The calculator is stateless over HTTP: clients send the full set of
activity inputs and receive the recomputed snapshot.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends

from alucbam.core.security import CurrentPrincipal
from alucbam.modules.emissions.catalog import EmissionFactorCatalog
from alucbam.modules.emissions.engine import EmissionsCalculator
from alucbam.modules.emissions.schemas import (
    ActivityCategory,
    CatalogResponse,
    Rejected,
    SnapshotRequest,
    SnapshotResponse,
)

router = APIRouter()


@lru_cache
def get_catalog() -> EmissionFactorCatalog:
    """Process-wide catalog instance."""
    return EmissionFactorCatalog()


CatalogDep = Annotated[EmissionFactorCatalog, Depends(get_catalog)]


@router.get("/factors", response_model=CatalogResponse)
async def list_factors(catalog: CatalogDep) -> CatalogResponse:
    """Default emission factors and the activity types offered per section."""
    return CatalogResponse(
        version=catalog.version,
        factors=catalog.factors(),
        fuel_types=catalog.activities(ActivityCategory.FUEL),
        process_types=catalog.activities(ActivityCategory.PROCESS),
        fuel_fallback_factor=catalog.fallback(ActivityCategory.FUEL),
        process_fallback_factor=catalog.fallback(ActivityCategory.PROCESS),
    )


@router.post("/snapshot", response_model=SnapshotResponse)
async def calculate_snapshot(
    body: SnapshotRequest,
    catalog: CatalogDep,
    _principal: CurrentPrincipal,
) -> SnapshotResponse:
    """Recompute an emissions snapshot from the submitted inputs.

    Rows with an unknown type or a non-positive quantity are dropped and
    listed in ``rejected``, mirroring the interactive calculator.
    """
    calculator = EmissionsCalculator(catalog)
    rejected: list[str] = []

    for row in body.fuel_combustion:
        result = calculator.add_fuel(row.activity_type, row.quantity, row.provenance)
        if isinstance(result, Rejected):
            rejected.append(f"fuel:{row.activity_type}:{result.reason.value}")
    for row in body.process_emissions:
        result = calculator.add_process(row.activity_type, row.quantity, row.provenance)
        if isinstance(result, Rejected):
            rejected.append(f"process:{row.activity_type}:{result.reason.value}")

    calculator.set_electricity(
        consumption=body.electricity_consumption,
        emission_factor=body.electricity_emission_factor,
        source=body.electricity_source,
    )
    calculator.set_production_volume(body.production_volume)

    return SnapshotResponse(
        snapshot=calculator.snapshot,
        fuel_combustion=list(calculator.ledger.fuel_combustion),
        process_emissions=list(calculator.ledger.process_emissions),
        scope2=calculator.scope2,
        rejected=rejected,
    )
