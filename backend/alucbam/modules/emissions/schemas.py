"""Pydantic schemas for the emissions calculator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Provenance(str, Enum):
    """How an activity quantity or factor was obtained."""

    MEASURED = "measured"
    CALCULATED = "calculated"
    DEFAULT = "default"


class ElectricitySource(str, Enum):
    """Origin of the electricity emission factor, in CBAM preference order."""

    SUPPLIER = "supplier"  # indSEE
    NATIONAL = "national"  # SEE
    DEFAULT = "default"


class ActivityCategory(str, Enum):
    """Scope 1 ledger sections."""

    FUEL = "fuel"
    PROCESS = "process"


class ComplianceStatus(str, Enum):
    """Classification of a snapshot's specific emissions."""

    COMPLIANT = "compliant"
    WARNING = "warning"
    NON_COMPLIANT = "non-compliant"


class RejectionReason(str, Enum):
    """Why the ledger declined an activity entry."""

    EMPTY_TYPE = "empty_type"
    UNKNOWN_TYPE = "unknown_type"
    NON_NUMERIC_QUANTITY = "non_numeric_quantity"
    NON_POSITIVE_QUANTITY = "non_positive_quantity"


class ActivityType(BaseModel):
    """An activity offered for entry in one ledger section."""

    model_config = ConfigDict(frozen=True)

    value: str
    label: str
    unit: str
    category: ActivityCategory


class EmissionEntry(BaseModel):
    """A single activity record in the Scope 1 ledger.

    The emission factor is captured when the entry is added and never
    re-resolved afterwards.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    activity_type: str
    name: str
    quantity: float = Field(ge=0.0)
    unit: str
    emission_factor: float = Field(ge=0.0)
    provenance: Provenance

    @property
    def emissions(self) -> float:
        """Contribution in tCO2e."""
        return self.quantity * self.emission_factor


@dataclass(frozen=True)
class Accepted:
    """The entry was stored."""

    entry: EmissionEntry

    @property
    def accepted(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    """The entry was silently discarded."""

    reason: RejectionReason

    @property
    def accepted(self) -> bool:
        return False


AddResult = Accepted | Rejected


class Scope2Record(BaseModel):
    """Purchased electricity and the factor applied to it."""

    model_config = ConfigDict(frozen=True)

    electricity_consumption: float = Field(default=0.0, ge=0.0, description="MWh")
    emission_factor: float = Field(default=0.275, ge=0.0, description="tCO2/MWh")
    source: ElectricitySource = ElectricitySource.DEFAULT


class ComplianceThresholds(BaseModel):
    """Specific-emission limits (tCO2e/t) used by the classifier."""

    model_config = ConfigDict(frozen=True)

    warning: float = 10.0
    non_compliant: float = 15.0


class EmissionsSnapshot(BaseModel):
    """Derived totals for one ledger state. Never edited by hand."""

    model_config = ConfigDict(frozen=True)

    scope1_total: float
    scope2_total: float
    total_emissions: float
    production_volume: float
    specific_emissions: float
    compliance_status: ComplianceStatus


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------


class ActivityInput(BaseModel):
    """One activity row submitted for a stateless snapshot."""

    activity_type: str
    quantity: float | str | None = None
    provenance: Provenance = Provenance.CALCULATED


class SnapshotRequest(BaseModel):
    """Complete calculator state for ``POST /emissions/snapshot``."""

    fuel_combustion: list[ActivityInput] = Field(default_factory=list)
    process_emissions: list[ActivityInput] = Field(default_factory=list)
    electricity_consumption: float | str | None = 0.0
    electricity_emission_factor: float | str | None = None
    electricity_source: ElectricitySource = ElectricitySource.DEFAULT
    production_volume: float | str | None = 0.0


class SnapshotResponse(BaseModel):
    """Snapshot plus the ledger it was computed from."""

    snapshot: EmissionsSnapshot
    fuel_combustion: list[EmissionEntry]
    process_emissions: list[EmissionEntry]
    scope2: Scope2Record
    rejected: list[str] = Field(
        default_factory=list,
        description="Activity types that were discarded, with the reason",
    )


class CatalogResponse(BaseModel):
    """Default emission factors and offered activities."""

    version: str
    factors: dict[str, float]
    fuel_types: list[ActivityType]
    process_types: list[ActivityType]
    fuel_fallback_factor: float
    process_fallback_factor: float
