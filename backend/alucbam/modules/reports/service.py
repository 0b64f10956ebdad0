"""
CBAM report service.

Reads a user's reports from the document store and applies compiler and
lifecycle operations to them. Writes are handed to the persistence
dispatcher and not awaited: the returned report is the authoritative
result even if the write later fails. Every read first settles the
report writes still in flight, so consecutive operations build on each
other.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from alucbam.core.logging import get_logger
from alucbam.core.security import Principal
from alucbam.core.tasks import PersistenceDispatcher
from alucbam.db.store import CBAM_REPORTS, FACILITIES, OWNER_FIELD, DocumentStore
from alucbam.modules.reports.cn_codes import describe_cn_code
from alucbam.modules.reports.compiler import ReportCompiler, build_product
from alucbam.modules.reports.lifecycle import ReportLifecycle
from alucbam.modules.reports.schemas import (
    CBAMReport,
    ProductCreate,
    ReportCreate,
    ReportSummary,
)
from alucbam.modules.reports.serializer import DocumentSerializer

logger = get_logger(__name__)


class ReportNotFoundError(LookupError):
    """Raised when a report does not exist for the current user."""

    def __init__(self, report_id: str) -> None:
        self.report_id = report_id
        super().__init__(f"Report {report_id} not found")


class UnknownCNCodeError(ValueError):
    """Raised when a product is not classified under an aluminium CN code."""

    def __init__(self, cn_code: str) -> None:
        self.cn_code = cn_code
        super().__init__(f"{cn_code!r} is not an aluminium CN code covered by CBAM")


class ReportService:
    """Report operations for one authenticated user."""

    def __init__(
        self,
        store: DocumentStore,
        dispatcher: PersistenceDispatcher,
        principal: Principal,
        *,
        compiler: ReportCompiler | None = None,
        lifecycle: ReportLifecycle | None = None,
        serializer: DocumentSerializer | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._principal = principal
        self._lifecycle = lifecycle or ReportLifecycle()
        self._compiler = compiler or ReportCompiler(self._lifecycle)
        self._serializer = serializer or DocumentSerializer()

    @property
    def _owner(self) -> dict[str, Any]:
        return {OWNER_FIELD: self._principal.subject}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_reports(self) -> list[CBAMReport]:
        """The user's reports, newest first."""
        await self._dispatcher.settle(CBAM_REPORTS)
        records = await self._store.list(
            CBAM_REPORTS,
            where=self._owner,
            order_by="createdAt",
            descending=True,
        )
        return [self._compiler.recalculate(CBAMReport.model_validate(r)) for r in records]

    async def get_report(self, report_id: str) -> CBAMReport:
        await self._dispatcher.settle(CBAM_REPORTS)
        records = await self._store.list(CBAM_REPORTS, where={**self._owner, "id": report_id})
        if not records:
            raise ReportNotFoundError(report_id)
        return self._compiler.recalculate(CBAMReport.model_validate(records[0]))

    async def summary(self) -> ReportSummary:
        return self._compiler.summarize(await self.list_reports())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_report(self, body: ReportCreate) -> CBAMReport:
        """Create a draft report, naming it after the user's facility."""
        facilities = await self._store.list(
            FACILITIES,
            where={**self._owner, "id": body.facility_id},
        )
        facility_name = facilities[0].get("name") if facilities else None
        if not facilities:
            logger.warning(
                "report_facility_not_found",
                facility_id=body.facility_id,
                user=self._principal.subject,
            )

        report = self._compiler.create_report(
            body.reporting_period,
            body.facility_id,
            body.installation_id,
            facility_name=facility_name,
        )
        record = {**report.model_dump(mode="json", by_alias=True), **self._owner}
        self._dispatcher.submit(
            "create_report",
            self._store.create(CBAM_REPORTS, record),
            collection=CBAM_REPORTS,
        )
        return report

    async def add_product(self, report_id: str, body: ProductCreate) -> CBAMReport:
        cn_code = describe_cn_code(body.cn_code)
        if cn_code is None:
            raise UnknownCNCodeError(body.cn_code)
        report = await self.get_report(report_id)
        product = build_product(
            cn_code=cn_code.code,
            product_name=body.product_name,
            production_volume=body.production_volume,
            direct_emissions=body.direct_emissions,
            indirect_emissions=body.indirect_emissions,
            unit=body.unit,
            emission_factors=body.emission_factors,
        )
        updated = self._compiler.add_product(report, product)
        self._persist_products(updated)
        return updated

    async def remove_product(self, report_id: str, product_id: str) -> CBAMReport:
        report = await self.get_report(report_id)
        updated = self._compiler.remove_product(report, product_id)
        if updated is not report:
            self._persist_products(updated)
        return updated

    async def validate_report(self, report_id: str, *, at: datetime | None = None) -> CBAMReport:
        report = self._lifecycle.validate(await self.get_report(report_id), at=at)
        self._persist_status(report)
        return report

    async def submit_report(self, report_id: str, *, at: datetime | None = None) -> CBAMReport:
        report = self._lifecycle.submit(await self.get_report(report_id), at=at)
        self._persist_status(report)
        return report

    async def export_report(
        self,
        report_id: str,
        *,
        generated_at: datetime | None = None,
    ) -> tuple[str, bytes]:
        """Return the export file name and XML content."""
        report = await self.get_report(report_id)
        return (
            self._serializer.filename(report),
            self._serializer.render_bytes(report, generated_at),
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist_products(self, report: CBAMReport) -> None:
        payload = report.model_dump(
            mode="json",
            by_alias=True,
            include={"products", "total_emissions"},
        )
        self._dispatcher.submit(
            "update_report_products",
            self._store.update(CBAM_REPORTS, report.id, payload),
            collection=CBAM_REPORTS,
        )

    def _persist_status(self, report: CBAMReport) -> None:
        payload = report.model_dump(
            mode="json",
            by_alias=True,
            include={"status", "validated_at", "submitted_at"},
        )
        self._dispatcher.submit(
            "update_report_status",
            self._store.update(CBAM_REPORTS, report.id, payload),
            collection=CBAM_REPORTS,
        )
