"""CBAM report assembly.

The compiler owns the structural bookkeeping of a report: product lines are
attached, replaced or removed only on drafts, and ``total_emissions`` is
re-derived from the products after every change. Reports are treated as
values; every operation returns a new ``CBAMReport``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from uuid import uuid4

from alucbam.core.logging import get_logger
from alucbam.modules.emissions.schemas import (
    ElectricitySource,
    EmissionEntry,
    EmissionsSnapshot,
    Provenance,
    Scope2Record,
)
from alucbam.modules.reports.lifecycle import ReportLifecycle
from alucbam.modules.reports.schemas import (
    CBAMProduct,
    CBAMReport,
    EmissionFactorRecord,
    FactorType,
    ReportStatus,
    ReportSummary,
)

logger = get_logger(__name__)

UNKNOWN_FACILITY = "Unknown Facility"

_ELECTRICITY_PROVENANCE: dict[ElectricitySource, Provenance] = {
    ElectricitySource.SUPPLIER: Provenance.MEASURED,
    ElectricitySource.NATIONAL: Provenance.CALCULATED,
    ElectricitySource.DEFAULT: Provenance.DEFAULT,
}


class ReportLockedError(ValueError):
    """Raised when products are changed on a report that is no longer a draft."""

    def __init__(self, report: CBAMReport) -> None:
        self.report_id = report.id
        self.status = report.status
        super().__init__(
            f"Report {report.id} is {report.status.value}; products can only change in draft"
        )


class ProductNotFoundError(LookupError):
    """Raised when a product id is not part of the report."""


def embedded_total(products: Iterable[CBAMProduct]) -> float:
    """Sum of embedded emissions over *products*."""
    return sum(product.embedded_emissions for product in products)


def build_product(
    *,
    cn_code: str,
    product_name: str,
    production_volume: float,
    direct_emissions: float,
    indirect_emissions: float,
    unit: str = "t",
    emission_factors: Sequence[EmissionFactorRecord] = (),
    product_id: str | None = None,
) -> CBAMProduct:
    """Create a product with its derived embedded and specific emissions."""
    embedded = direct_emissions + indirect_emissions
    specific = embedded / production_volume if production_volume > 0 else 0.0
    return CBAMProduct(
        id=product_id or f"product-{uuid4().hex[:12]}",
        cn_code=cn_code,
        product_name=product_name,
        production_volume=production_volume,
        unit=unit,
        direct_emissions=direct_emissions,
        indirect_emissions=indirect_emissions,
        embedded_emissions=embedded,
        specific_emissions=specific,
        emission_factors=list(emission_factors),
    )


def factor_records(
    entries: Iterable[EmissionEntry],
    scope2: Scope2Record | None = None,
    *,
    process_types: Iterable[str] = (),
) -> list[EmissionFactorRecord]:
    """Describe the factors behind ledger entries as report factor records.

    Entries whose activity type is in *process_types* are recorded as
    process factors, everything else as fuel.
    """
    process_keys = set(process_types)
    records = [
        EmissionFactorRecord(
            type=FactorType.PROCESS if entry.activity_type in process_keys else FactorType.FUEL,
            source=entry.provenance,
            value=entry.emission_factor,
            unit=f"tCO2/{entry.unit}",
            documentation=entry.name,
        )
        for entry in entries
    ]
    if scope2 is not None and scope2.electricity_consumption > 0:
        records.append(
            EmissionFactorRecord(
                type=FactorType.ELECTRICITY,
                source=_electricity_provenance(scope2),
                value=scope2.emission_factor,
                unit="tCO2/MWh",
                documentation=f"Electricity factor source: {scope2.source.value}",
            )
        )
    return records


def _electricity_provenance(scope2: Scope2Record) -> Provenance:
    return _ELECTRICITY_PROVENANCE[scope2.source]


class ReportCompiler:
    """Creates reports and keeps their product lines and totals consistent.

    Usage::

        compiler = ReportCompiler()
        report = compiler.create_report("2024", "fac-1", "EU-CBAM-0001")
        report = compiler.add_product(report, product)
    """

    def __init__(self, lifecycle: ReportLifecycle | None = None) -> None:
        self._lifecycle = lifecycle or ReportLifecycle()

    def create_report(
        self,
        reporting_period: str,
        facility_id: str,
        installation_id: str,
        *,
        facility_name: str | None = None,
        created_at: datetime | None = None,
    ) -> CBAMReport:
        """Start an empty draft report."""
        report = CBAMReport(
            id=f"cbam-{uuid4().hex}",
            reporting_period=reporting_period,
            facility_id=facility_id,
            facility_name=facility_name or UNKNOWN_FACILITY,
            installation_id=installation_id,
            products=[],
            total_emissions=0.0,
            status=ReportStatus.DRAFT,
            created_at=created_at or datetime.now(UTC),
        )
        logger.info(
            "report_created",
            report_id=report.id,
            reporting_period=reporting_period,
            installation_id=installation_id,
        )
        return report

    def product_from_snapshot(
        self,
        snapshot: EmissionsSnapshot,
        *,
        cn_code: str,
        product_name: str,
        unit: str = "t",
        emission_factors: Sequence[EmissionFactorRecord] = (),
    ) -> CBAMProduct:
        """Build a product line whose emissions come from a calculator snapshot."""
        return build_product(
            cn_code=cn_code,
            product_name=product_name,
            production_volume=snapshot.production_volume,
            direct_emissions=snapshot.scope1_total,
            indirect_emissions=snapshot.scope2_total,
            unit=unit,
            emission_factors=emission_factors,
        )

    def add_product(self, report: CBAMReport, product: CBAMProduct) -> CBAMReport:
        self._require_draft(report)
        return self._with_products(report, [*report.products, product])

    def replace_product(self, report: CBAMReport, product: CBAMProduct) -> CBAMReport:
        """Swap the product with the same id for *product*."""
        self._require_draft(report)
        if not any(p.id == product.id for p in report.products):
            raise ProductNotFoundError(f"Product {product.id} not found in report {report.id}")
        products = [product if p.id == product.id else p for p in report.products]
        return self._with_products(report, products)

    def remove_product(self, report: CBAMReport, product_id: str) -> CBAMReport:
        """Drop a product line; unknown ids leave the report unchanged."""
        self._require_draft(report)
        products = [p for p in report.products if p.id != product_id]
        if len(products) == len(report.products):
            return report
        return self._with_products(report, products)

    def recalculate(self, report: CBAMReport) -> CBAMReport:
        """Re-derive the report total, e.g. after loading a stored record."""
        total = embedded_total(report.products)
        if total == report.total_emissions:
            return report
        return report.model_copy(update={"total_emissions": total})

    @staticmethod
    def summarize(reports: Sequence[CBAMReport]) -> ReportSummary:
        """Counts shown on the reports overview."""
        total = len(reports)
        submitted = sum(1 for r in reports if r.status == ReportStatus.SUBMITTED)
        validated = sum(
            1 for r in reports if r.status in (ReportStatus.VALIDATED, ReportStatus.SUBMITTED)
        )
        return ReportSummary(
            total=total,
            validated=validated,
            submitted=submitted,
            completion_rate=(submitted / total * 100.0) if total else 0.0,
        )

    def _require_draft(self, report: CBAMReport) -> None:
        if not self._lifecycle.is_editable(report):
            raise ReportLockedError(report)

    @staticmethod
    def _with_products(report: CBAMReport, products: list[CBAMProduct]) -> CBAMReport:
        return report.model_copy(
            update={"products": products, "total_emissions": embedded_total(products)}
        )
