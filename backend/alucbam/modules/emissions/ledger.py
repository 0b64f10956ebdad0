"""Scope 1 emission ledger.

Holds the ordered fuel-combustion and process-emission entries of one
calculation. Invalid input is discarded rather than raised; the returned
``Accepted``/``Rejected`` result says which happened.
"""

from __future__ import annotations

import math
from typing import Any
from uuid import uuid4

from alucbam.core.logging import get_logger
from alucbam.modules.emissions.catalog import EmissionFactorCatalog
from alucbam.modules.emissions.schemas import (
    Accepted,
    ActivityCategory,
    AddResult,
    EmissionEntry,
    Provenance,
    Rejected,
    RejectionReason,
)

logger = get_logger(__name__)


def coerce_number(value: Any) -> float | None:
    """Parse a user-supplied number; ``None`` when it is not a finite number."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_non_negative(value: Any) -> float:
    """Form-field semantics: anything unparseable or negative becomes 0."""
    number = coerce_number(value)
    if number is None or number < 0:
        return 0.0
    return number


def aggregate_scope1(entries: list[EmissionEntry] | tuple[EmissionEntry, ...]) -> float:
    """Sum of quantity x emission factor over *entries*."""
    return sum(entry.quantity * entry.emission_factor for entry in entries)


class EmissionLedger:
    """Ordered Scope 1 activity entries with their snapshotted factors."""

    def __init__(self, catalog: EmissionFactorCatalog) -> None:
        self._catalog = catalog
        self._entries: dict[ActivityCategory, list[EmissionEntry]] = {
            ActivityCategory.FUEL: [],
            ActivityCategory.PROCESS: [],
        }

    @property
    def fuel_combustion(self) -> tuple[EmissionEntry, ...]:
        return tuple(self._entries[ActivityCategory.FUEL])

    @property
    def process_emissions(self) -> tuple[EmissionEntry, ...]:
        return tuple(self._entries[ActivityCategory.PROCESS])

    @property
    def entries(self) -> tuple[EmissionEntry, ...]:
        """All entries, fuel first, each section in insertion order."""
        return self.fuel_combustion + self.process_emissions

    @property
    def fuel_total(self) -> float:
        return aggregate_scope1(self._entries[ActivityCategory.FUEL])

    @property
    def process_total(self) -> float:
        return aggregate_scope1(self._entries[ActivityCategory.PROCESS])

    @property
    def total(self) -> float:
        """Direct (Scope 1) emissions in tCO2e."""
        return self.fuel_total + self.process_total

    def __len__(self) -> int:
        return sum(len(section) for section in self._entries.values())

    def add(
        self,
        category: ActivityCategory,
        activity_type: str,
        quantity: Any,
        provenance: Provenance = Provenance.CALCULATED,
    ) -> AddResult:
        """Append an activity entry.

        The entry is discarded when the type is empty or not offered for
        *category*, or when the quantity is not a positive number.
        """
        result = self._build(category, activity_type, quantity, Provenance(provenance))
        if isinstance(result, Rejected):
            logger.info(
                "entry_rejected",
                category=category.value,
                activity_type=activity_type,
                reason=result.reason.value,
            )
            return result

        self._entries[category].append(result.entry)
        logger.debug(
            "entry_added",
            category=category.value,
            entry_id=result.entry.id,
            activity_type=result.entry.activity_type,
            emissions=result.entry.emissions,
        )
        return result

    def add_fuel(
        self,
        activity_type: str,
        quantity: Any,
        provenance: Provenance = Provenance.CALCULATED,
    ) -> AddResult:
        return self.add(ActivityCategory.FUEL, activity_type, quantity, provenance)

    def add_process(
        self,
        activity_type: str,
        quantity: Any,
        provenance: Provenance = Provenance.CALCULATED,
    ) -> AddResult:
        return self.add(ActivityCategory.PROCESS, activity_type, quantity, provenance)

    def remove(self, entry_id: str) -> bool:
        """Delete the entry with *entry_id*; unknown ids are ignored."""
        for section in self._entries.values():
            for index, entry in enumerate(section):
                if entry.id == entry_id:
                    del section[index]
                    return True
        return False

    def _build(
        self,
        category: ActivityCategory,
        activity_type: str,
        quantity: Any,
        provenance: Provenance,
    ) -> AddResult:
        if not activity_type or not activity_type.strip():
            return Rejected(RejectionReason.EMPTY_TYPE)

        number = coerce_number(quantity)
        if number is None:
            return Rejected(RejectionReason.NON_NUMERIC_QUANTITY)
        if number <= 0:
            return Rejected(RejectionReason.NON_POSITIVE_QUANTITY)

        activity = self._catalog.activity(activity_type, category)
        if activity is None:
            return Rejected(RejectionReason.UNKNOWN_TYPE)

        return Accepted(
            EmissionEntry(
                id=f"{category.value}-{uuid4().hex[:12]}",
                activity_type=activity.value,
                name=activity.label,
                quantity=number,
                unit=activity.unit,
                emission_factor=self._catalog.lookup(activity.value, category),
                provenance=provenance,
            )
        )
