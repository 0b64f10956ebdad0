"""Unit tests for CBAM report assembly."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from alucbam.modules.emissions.catalog import EmissionFactorCatalog
from alucbam.modules.emissions.engine import EmissionsCalculator
from alucbam.modules.emissions.schemas import (
    ActivityCategory,
    ElectricitySource,
    Provenance,
)
from alucbam.modules.reports.compiler import (
    UNKNOWN_FACILITY,
    ProductNotFoundError,
    ReportCompiler,
    ReportLockedError,
    build_product,
    factor_records,
)
from alucbam.modules.reports.schemas import CBAMReport, FactorType, ReportStatus

FIXED_TIME = datetime(2024, 5, 17, 9, 30, tzinfo=UTC)


@pytest.fixture()
def compiler() -> ReportCompiler:
    return ReportCompiler()


@pytest.fixture()
def draft(compiler: ReportCompiler) -> CBAMReport:
    return compiler.create_report(
        "2024",
        "facility-1",
        "EU-CBAM-0001",
        facility_name="Rheinwerk Smelter",
        created_at=FIXED_TIME,
    )


def _product(volume: float = 100.0, direct: float = 150.0, indirect: float = 50.0):
    return build_product(
        cn_code="7601.10.00",
        product_name="Primary ingot",
        production_volume=volume,
        direct_emissions=direct,
        indirect_emissions=indirect,
    )


class TestBuildProduct:
    def test_derived_emissions(self) -> None:
        product = _product()
        assert product.embedded_emissions == pytest.approx(200.0)
        assert product.specific_emissions == pytest.approx(2.0)
        assert product.id.startswith("product-")

    def test_zero_volume_has_zero_specific(self) -> None:
        assert _product(volume=0).specific_emissions == 0


class TestCreateReport:
    def test_new_report_is_empty_draft(self, draft: CBAMReport) -> None:
        assert draft.status == ReportStatus.DRAFT
        assert draft.products == []
        assert draft.total_emissions == 0
        assert draft.created_at == FIXED_TIME
        assert draft.validated_at is None
        assert draft.id.startswith("cbam-")

    def test_missing_facility_name(self, compiler: ReportCompiler) -> None:
        report = compiler.create_report("2025", "facility-x", "EU-CBAM-0002")
        assert report.facility_name == UNKNOWN_FACILITY


class TestProducts:
    def test_total_tracks_products(self, compiler: ReportCompiler, draft: CBAMReport) -> None:
        first = _product()
        second = _product(volume=10, direct=4, indirect=1)

        report = compiler.add_product(draft, first)
        report = compiler.add_product(report, second)
        assert report.total_emissions == pytest.approx(205.0)
        assert draft.products == []

        report = compiler.remove_product(report, first.id)
        assert [p.id for p in report.products] == [second.id]
        assert report.total_emissions == pytest.approx(5.0)

    def test_remove_unknown_product_returns_same_report(
        self, compiler: ReportCompiler, draft: CBAMReport
    ) -> None:
        report = compiler.add_product(draft, _product())
        assert compiler.remove_product(report, "product-missing") is report

    def test_replace_product(self, compiler: ReportCompiler, draft: CBAMReport) -> None:
        original = _product()
        report = compiler.add_product(draft, original)
        revised = build_product(
            cn_code=original.cn_code,
            product_name=original.product_name,
            production_volume=100,
            direct_emissions=10,
            indirect_emissions=0,
            product_id=original.id,
        )

        report = compiler.replace_product(report, revised)
        assert report.total_emissions == pytest.approx(10.0)

        with pytest.raises(ProductNotFoundError):
            compiler.replace_product(report, _product())

    @pytest.mark.parametrize("status", [ReportStatus.VALIDATED, ReportStatus.SUBMITTED])
    def test_locked_reports_reject_changes(
        self, compiler: ReportCompiler, draft: CBAMReport, status: ReportStatus
    ) -> None:
        locked = compiler.add_product(draft, _product()).model_copy(update={"status": status})

        with pytest.raises(ReportLockedError):
            compiler.add_product(locked, _product())
        with pytest.raises(ReportLockedError):
            compiler.remove_product(locked, locked.products[0].id)

    def test_recalculate_repairs_stale_total(
        self, compiler: ReportCompiler, draft: CBAMReport
    ) -> None:
        report = compiler.add_product(draft, _product())
        stale = report.model_copy(update={"total_emissions": 1.0})
        assert compiler.recalculate(stale).total_emissions == pytest.approx(200.0)
        assert compiler.recalculate(report) is report


class TestFromSnapshot:
    def test_product_from_calculator(
        self, compiler: ReportCompiler, catalog: EmissionFactorCatalog
    ) -> None:
        calc = EmissionsCalculator(catalog)
        calc.add_fuel("natural-gas", 100, Provenance.MEASURED)
        calc.add_process("primary-aluminium", 2)
        calc.set_electricity(consumption=1000, source=ElectricitySource.SUPPLIER)
        calc.set_production_volume(50)

        records = factor_records(
            calc.ledger.entries,
            calc.scope2,
            process_types=[a.value for a in catalog.activities(ActivityCategory.PROCESS)],
        )
        product = compiler.product_from_snapshot(
            calc.snapshot,
            cn_code="7601.10.00",
            product_name="Primary ingot",
            emission_factors=records,
        )

        assert product.direct_emissions == pytest.approx(5.61 + 3.6)
        assert product.indirect_emissions == pytest.approx(0.275)
        assert product.production_volume == 50
        assert [r.type for r in records] == [
            FactorType.FUEL,
            FactorType.PROCESS,
            FactorType.ELECTRICITY,
        ]
        assert records[0].source == Provenance.MEASURED
        assert records[2].source == Provenance.MEASURED
        assert records[2].unit == "tCO2/MWh"


class TestSummary:
    def test_counts(self, compiler: ReportCompiler, draft: CBAMReport) -> None:
        reports = [
            draft,
            draft.model_copy(update={"status": ReportStatus.VALIDATED}),
            draft.model_copy(update={"status": ReportStatus.SUBMITTED}),
            draft.model_copy(update={"status": ReportStatus.SUBMITTED}),
        ]
        summary = compiler.summarize(reports)
        assert summary.total == 4
        assert summary.validated == 3
        assert summary.submitted == 2
        assert summary.completion_rate == pytest.approx(50.0)

    def test_empty(self, compiler: ReportCompiler) -> None:
        assert compiler.summarize([]).completion_rate == 0
