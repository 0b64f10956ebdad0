"""CBAM report lifecycle: draft -> validated -> submitted."""

from __future__ import annotations

from datetime import UTC, datetime

from alucbam.core.lifecycle import StatusLifecycle
from alucbam.core.logging import get_logger
from alucbam.modules.reports.schemas import CBAMReport, ReportStatus

logger = get_logger(__name__)

REPORT_TRANSITIONS: dict[ReportStatus, set[ReportStatus]] = {
    ReportStatus.DRAFT: {ReportStatus.VALIDATED},
    ReportStatus.VALIDATED: {ReportStatus.SUBMITTED},
    ReportStatus.SUBMITTED: set(),
}


class ReportLifecycle:
    """Applies status transitions to reports, stamping the transition time."""

    def __init__(self) -> None:
        self._rules = StatusLifecycle(REPORT_TRANSITIONS)

    def allowed_targets(self, report: CBAMReport) -> frozenset[ReportStatus]:
        return self._rules.allowed_targets(report.status)

    def can_transition(self, report: CBAMReport, target: ReportStatus) -> bool:
        return self._rules.can_transition(report.status, target)

    def is_editable(self, report: CBAMReport) -> bool:
        """Products may only change while the report is a draft."""
        return report.status == ReportStatus.DRAFT

    def transition(
        self,
        report: CBAMReport,
        target: ReportStatus,
        *,
        at: datetime | None = None,
    ) -> CBAMReport:
        """Return a copy of *report* in *target* status.

        Raises ``InvalidTransitionError`` for any move outside
        draft -> validated -> submitted.
        """
        target = ReportStatus(target)
        self._rules.check(report.status, target)
        timestamp = at or datetime.now(UTC)

        changes: dict[str, object] = {"status": target}
        if target == ReportStatus.VALIDATED:
            changes["validated_at"] = timestamp
        elif target == ReportStatus.SUBMITTED:
            changes["submitted_at"] = timestamp

        logger.info(
            "report_status_changed",
            report_id=report.id,
            from_status=report.status.value,
            to_status=target.value,
        )
        return report.model_copy(update=changes)

    def validate(self, report: CBAMReport, *, at: datetime | None = None) -> CBAMReport:
        return self.transition(report, ReportStatus.VALIDATED, at=at)

    def submit(self, report: CBAMReport, *, at: datetime | None = None) -> CBAMReport:
        return self.transition(report, ReportStatus.SUBMITTED, at=at)
