"""Emissions snapshot engine.

``recompute`` is the single, pure derivation of an ``EmissionsSnapshot``
from a ledger, a Scope 2 record and a production volume.
``EmissionsCalculator`` is the working session used while a user enters
activity data: every mutation recomputes its snapshot before returning.
"""

from __future__ import annotations

from typing import Any

from alucbam.core.logging import get_logger
from alucbam.modules.emissions.catalog import EmissionFactorCatalog
from alucbam.modules.emissions.classifier import classify_compliance, default_thresholds
from alucbam.modules.emissions.ledger import EmissionLedger, coerce_non_negative
from alucbam.modules.emissions.schemas import (
    AddResult,
    ComplianceThresholds,
    ElectricitySource,
    EmissionsSnapshot,
    Provenance,
    Scope2Record,
)

logger = get_logger(__name__)

# Kept for compatibility with existing reports: the product of MWh and
# tCO2/MWh is scaled down by this divisor.
SCOPE2_SCALE_DIVISOR = 1000.0


def compute_scope2(consumption: float, factor: float) -> float:
    """Indirect emissions as ``consumption * factor / 1000``."""
    return consumption * factor / SCOPE2_SCALE_DIVISOR


def scope2_total(record: Scope2Record) -> float:
    return compute_scope2(record.electricity_consumption, record.emission_factor)


def recompute(
    ledger: EmissionLedger,
    scope2: Scope2Record,
    production_volume: float,
    thresholds: ComplianceThresholds | None = None,
) -> EmissionsSnapshot:
    """Derive a snapshot from the current inputs.

    Pure: the same inputs always produce an equal snapshot.
    """
    scope1 = ledger.total
    scope2_value = scope2_total(scope2)
    total = scope1 + scope2_value
    volume = production_volume if production_volume > 0 else 0.0
    specific = total / volume if volume > 0 else 0.0

    return EmissionsSnapshot(
        scope1_total=scope1,
        scope2_total=scope2_value,
        total_emissions=total,
        production_volume=volume,
        specific_emissions=specific,
        compliance_status=classify_compliance(specific, thresholds),
    )


class EmissionsCalculator:
    """Single-user calculation session.

    Usage::

        calc = EmissionsCalculator(EmissionFactorCatalog())
        calc.add_fuel("natural-gas", 100)
        calc.set_production_volume(50)
        calc.snapshot.specific_emissions   # 0.1122
    """

    def __init__(
        self,
        catalog: EmissionFactorCatalog,
        *,
        thresholds: ComplianceThresholds | None = None,
    ) -> None:
        self._catalog = catalog
        self._thresholds = thresholds or default_thresholds()
        self._ledger = EmissionLedger(catalog)
        self._scope2 = Scope2Record(emission_factor=catalog.electricity_default)
        self._production_volume = 0.0
        self._snapshot = self._recompute()

    @property
    def ledger(self) -> EmissionLedger:
        return self._ledger

    @property
    def scope2(self) -> Scope2Record:
        return self._scope2

    @property
    def production_volume(self) -> float:
        return self._production_volume

    @property
    def snapshot(self) -> EmissionsSnapshot:
        """Snapshot of the current inputs; never stale."""
        return self._snapshot

    def add_fuel(
        self,
        activity_type: str,
        quantity: Any,
        provenance: Provenance = Provenance.CALCULATED,
    ) -> AddResult:
        result = self._ledger.add_fuel(activity_type, quantity, provenance)
        self._snapshot = self._recompute()
        return result

    def add_process(
        self,
        activity_type: str,
        quantity: Any,
        provenance: Provenance = Provenance.CALCULATED,
    ) -> AddResult:
        result = self._ledger.add_process(activity_type, quantity, provenance)
        self._snapshot = self._recompute()
        return result

    def remove_entry(self, entry_id: str) -> bool:
        removed = self._ledger.remove(entry_id)
        self._snapshot = self._recompute()
        return removed

    def set_electricity(
        self,
        *,
        consumption: Any = None,
        emission_factor: Any = None,
        source: ElectricitySource | None = None,
    ) -> EmissionsSnapshot:
        """Update any of the Scope 2 fields; omitted fields keep their value."""
        changes: dict[str, Any] = {}
        if consumption is not None:
            changes["electricity_consumption"] = coerce_non_negative(consumption)
        if emission_factor is not None:
            changes["emission_factor"] = coerce_non_negative(emission_factor)
        if source is not None:
            changes["source"] = ElectricitySource(source)
        self._scope2 = self._scope2.model_copy(update=changes)
        self._snapshot = self._recompute()
        return self._snapshot

    def set_production_volume(self, volume: Any) -> EmissionsSnapshot:
        self._production_volume = coerce_non_negative(volume)
        self._snapshot = self._recompute()
        return self._snapshot

    def _recompute(self) -> EmissionsSnapshot:
        snapshot = recompute(
            self._ledger,
            self._scope2,
            self._production_volume,
            self._thresholds,
        )
        logger.debug(
            "snapshot_recomputed",
            entries=len(self._ledger),
            total_emissions=snapshot.total_emissions,
            specific_emissions=snapshot.specific_emissions,
            compliance_status=snapshot.compliance_status.value,
        )
        return snapshot
