"""Pydantic schemas for supplier collaboration."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from alucbam.modules.emissions.schemas import ElectricitySource


class SupplierStatus(str, Enum):
    """Progress of a supplier's data request."""

    INVITED = "invited"
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


class MaterialType(str, Enum):
    """Upstream materials requested from suppliers."""

    BAUXITE = "bauxite"
    ALUMINA = "alumina"
    PRIMARY_ALUMINIUM = "primary-aluminium"
    SECONDARY_ALUMINIUM = "secondary-aluminium"
    SEMI_FINISHED = "semi-finished"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class InvitationRejection(str, Enum):
    """Why an invitation was not sent."""

    MISSING_NAME = "missing_name"
    MISSING_EMAIL = "missing_email"


MATERIAL_LABELS: dict[MaterialType, str] = {
    MaterialType.BAUXITE: "Bauxite",
    MaterialType.ALUMINA: "Alumina",
    MaterialType.PRIMARY_ALUMINIUM: "Primary Aluminium",
    MaterialType.SECONDARY_ALUMINIUM: "Secondary Aluminium",
    MaterialType.SEMI_FINISHED: "Semi-finished Products",
}
MATERIAL_UNIT = "tonnes"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SupplierMaterial(_CamelModel):
    """A material whose embedded emissions are requested from the supplier."""

    id: str
    material_name: str
    material_type: MaterialType
    annual_volume: float = Field(default=0.0, ge=0.0)
    unit: str = MATERIAL_UNIT
    embedded_emissions: float | None = Field(default=None, ge=0.0)
    emission_factor: float | None = Field(default=None, ge=0.0)
    see_source: ElectricitySource | None = None
    verification_status: VerificationStatus = VerificationStatus.PENDING
    documentation: str | None = None


class Supplier(_CamelModel):
    id: str
    name: str
    email: str
    country: str = ""
    status: SupplierStatus = SupplierStatus.INVITED
    invited_at: datetime
    responded_at: datetime | None = None
    materials: list[SupplierMaterial] = Field(default_factory=list)


class SupplierInvitation(_CamelModel):
    """Request body for inviting a supplier."""

    supplier_email: str = ""
    supplier_name: str = ""
    materials: list[MaterialType] = Field(default_factory=list)
    message: str = ""
    due_date: date | None = None


class StatusUpdate(_CamelModel):
    status: SupplierStatus


class MaterialTypeInfo(BaseModel):
    value: MaterialType
    label: str
    unit: str


class SupplierSummary(BaseModel):
    """Dashboard counts over a user's suppliers."""

    total: int
    completed: int
    pending: int = Field(description="Suppliers pending or active")
    completion_rate: float = Field(description="Percentage of suppliers completed")
