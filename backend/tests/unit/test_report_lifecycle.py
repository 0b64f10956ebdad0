"""Unit tests for the CBAM report status lifecycle."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from alucbam.core.lifecycle import InvalidTransitionError
from alucbam.modules.reports.compiler import ReportCompiler
from alucbam.modules.reports.lifecycle import ReportLifecycle
from alucbam.modules.reports.schemas import CBAMReport, ReportStatus

FIXED_TIME = datetime(2024, 5, 17, 9, 30, tzinfo=UTC)


@pytest.fixture()
def lifecycle() -> ReportLifecycle:
    return ReportLifecycle()


@pytest.fixture()
def draft() -> CBAMReport:
    return ReportCompiler().create_report("2024", "facility-1", "EU-CBAM-0001")


def test_draft_to_validated_to_submitted(lifecycle: ReportLifecycle, draft: CBAMReport) -> None:
    validated = lifecycle.validate(draft, at=FIXED_TIME)
    assert validated.status == ReportStatus.VALIDATED
    assert validated.validated_at == FIXED_TIME
    assert validated.submitted_at is None
    assert draft.status == ReportStatus.DRAFT

    later = FIXED_TIME + timedelta(days=3)
    submitted = lifecycle.submit(validated, at=later)
    assert submitted.status == ReportStatus.SUBMITTED
    assert submitted.validated_at == FIXED_TIME
    assert submitted.submitted_at == later


@pytest.mark.parametrize(
    ("start", "target"),
    [
        (ReportStatus.DRAFT, ReportStatus.SUBMITTED),
        (ReportStatus.DRAFT, ReportStatus.DRAFT),
        (ReportStatus.VALIDATED, ReportStatus.DRAFT),
        (ReportStatus.VALIDATED, ReportStatus.VALIDATED),
        (ReportStatus.SUBMITTED, ReportStatus.VALIDATED),
        (ReportStatus.SUBMITTED, ReportStatus.DRAFT),
    ],
)
def test_invalid_transitions_raise(
    lifecycle: ReportLifecycle,
    draft: CBAMReport,
    start: ReportStatus,
    target: ReportStatus,
) -> None:
    report = draft.model_copy(update={"status": start})

    assert not lifecycle.can_transition(report, target)
    with pytest.raises(InvalidTransitionError) as exc_info:
        lifecycle.transition(report, target)
    assert exc_info.value.current == start
    assert exc_info.value.target == target


def test_only_drafts_are_editable(lifecycle: ReportLifecycle, draft: CBAMReport) -> None:
    assert lifecycle.is_editable(draft)
    assert not lifecycle.is_editable(lifecycle.validate(draft))


def test_submitted_is_terminal(lifecycle: ReportLifecycle, draft: CBAMReport) -> None:
    submitted = lifecycle.submit(lifecycle.validate(draft))
    assert lifecycle.allowed_targets(submitted) == frozenset()
