"""Supplier invitation lifecycle: invited -> pending -> active -> completed.

Status only moves forward. Skipping intermediate states is allowed unless
strict sequencing is configured.
"""

from __future__ import annotations

from datetime import UTC, datetime

from alucbam.core.config import get_settings
from alucbam.core.lifecycle import StatusLifecycle
from alucbam.core.logging import get_logger
from alucbam.modules.suppliers.schemas import Supplier, SupplierStatus

logger = get_logger(__name__)

STATUS_ORDER: tuple[SupplierStatus, ...] = (
    SupplierStatus.INVITED,
    SupplierStatus.PENDING,
    SupplierStatus.ACTIVE,
    SupplierStatus.COMPLETED,
)


def _transitions(strict: bool) -> dict[SupplierStatus, set[SupplierStatus]]:
    table: dict[SupplierStatus, set[SupplierStatus]] = {}
    for index, state in enumerate(STATUS_ORDER):
        later = STATUS_ORDER[index + 1 :]
        table[state] = set(later[:1]) if strict else set(later)
    return table


class SupplierInvitationLifecycle:
    """Applies forward-only status changes to suppliers."""

    def __init__(self, *, strict_sequencing: bool | None = None) -> None:
        if strict_sequencing is None:
            strict_sequencing = get_settings().supplier_strict_sequencing
        self.strict_sequencing = strict_sequencing
        self._rules = StatusLifecycle(_transitions(strict_sequencing))

    def can_transition(self, supplier: Supplier, target: SupplierStatus) -> bool:
        return self._rules.can_transition(supplier.status, target)

    def transition(
        self,
        supplier: Supplier,
        target: SupplierStatus,
        *,
        at: datetime | None = None,
    ) -> Supplier:
        """Return a copy of *supplier* in *target* status.

        Raises ``InvalidTransitionError`` for backward, repeated, or (under
        strict sequencing) skipping moves. The first move out of
        ``invited`` records when the supplier responded.
        """
        target = SupplierStatus(target)
        self._rules.check(supplier.status, target)

        changes: dict[str, object] = {"status": target}
        if supplier.responded_at is None:
            changes["responded_at"] = at or datetime.now(UTC)

        logger.info(
            "supplier_status_changed",
            supplier_id=supplier.id,
            from_status=supplier.status.value,
            to_status=target.value,
        )
        return supplier.model_copy(update=changes)
