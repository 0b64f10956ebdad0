"""Pydantic schemas for CBAM reports."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from alucbam.modules.emissions.schemas import Provenance


class ReportStatus(str, Enum):
    """CBAM report lifecycle state."""

    DRAFT = "draft"
    VALIDATED = "validated"
    SUBMITTED = "submitted"


class FactorType(str, Enum):
    """Activity an emission factor applies to."""

    FUEL = "fuel"
    ELECTRICITY = "electricity"
    PROCESS = "process"


class _CamelModel(BaseModel):
    """Persisted and exchanged with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EmissionFactorRecord(_CamelModel):
    """A factor used for a product, with its data source."""

    type: FactorType
    source: Provenance
    value: float
    unit: str
    documentation: str | None = None


class CBAMProduct(_CamelModel):
    """A CN-coded product line of a report."""

    id: str
    cn_code: str
    product_name: str
    production_volume: float = Field(ge=0.0)
    unit: str = "t"
    direct_emissions: float = Field(ge=0.0)
    indirect_emissions: float = Field(ge=0.0)
    embedded_emissions: float = Field(ge=0.0)
    specific_emissions: float = Field(ge=0.0)
    emission_factors: list[EmissionFactorRecord] = Field(default_factory=list)


class CBAMReport(_CamelModel):
    """A reporting-period CBAM report for one installation."""

    id: str
    reporting_period: str
    facility_id: str
    facility_name: str
    installation_id: str
    products: list[CBAMProduct] = Field(default_factory=list)
    total_emissions: float = 0.0
    status: ReportStatus = ReportStatus.DRAFT
    created_at: datetime
    validated_at: datetime | None = None
    submitted_at: datetime | None = None


class CNCode(BaseModel):
    """Combined Nomenclature reference entry."""

    code: str
    name: str


class ReportSummary(BaseModel):
    """Dashboard counts over a user's reports."""

    total: int
    validated: int = Field(description="Reports validated or already submitted")
    submitted: int
    completion_rate: float = Field(description="Percentage of reports submitted")


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------


class ReportCreate(_CamelModel):
    """Request body for creating a draft report."""

    reporting_period: str = Field(default="2024", min_length=1)
    facility_id: str = Field(min_length=1)
    installation_id: str = Field(min_length=1)


class ProductCreate(_CamelModel):
    """Request body for attaching a product to a draft report."""

    cn_code: str = Field(min_length=1)
    product_name: str = Field(min_length=1)
    production_volume: float = Field(ge=0.0)
    unit: str = "t"
    direct_emissions: float = Field(default=0.0, ge=0.0)
    indirect_emissions: float = Field(default=0.0, ge=0.0)
    emission_factors: list[EmissionFactorRecord] = Field(default_factory=list)
