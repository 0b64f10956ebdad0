"""Threshold classification of specific emissions."""

from __future__ import annotations

from alucbam.core.config import get_settings
from alucbam.modules.emissions.schemas import ComplianceStatus, ComplianceThresholds


def default_thresholds() -> ComplianceThresholds:
    """Thresholds configured for this deployment."""
    settings = get_settings()
    return ComplianceThresholds(
        warning=settings.compliance_warning_threshold,
        non_compliant=settings.compliance_non_compliant_threshold,
    )


def classify_compliance(
    specific_emissions: float,
    thresholds: ComplianceThresholds | None = None,
) -> ComplianceStatus:
    """Map specific emissions (tCO2e/t) to a compliance status.

    Both limits are exclusive: exactly 10 is compliant and exactly 15 is a
    warning with the default thresholds.
    """
    limits = thresholds or default_thresholds()
    if specific_emissions > limits.non_compliant:
        return ComplianceStatus.NON_COMPLIANT
    if specific_emissions > limits.warning:
        return ComplianceStatus.WARNING
    return ComplianceStatus.COMPLIANT
