"""API router for CBAM reports and their XML export.

All endpoints operate on the authenticated user's reports.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status

from alucbam.core.dependencies import DispatcherDep, StoreDep
from alucbam.core.lifecycle import InvalidTransitionError
from alucbam.core.security import CurrentPrincipal
from alucbam.modules.reports.cn_codes import ALUMINIUM_CN_CODES
from alucbam.modules.reports.compiler import ReportLockedError
from alucbam.modules.reports.schemas import (
    CBAMReport,
    CNCode,
    ProductCreate,
    ReportCreate,
    ReportSummary,
)
from alucbam.modules.reports.service import (
    ReportNotFoundError,
    ReportService,
    UnknownCNCodeError,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _not_found(exc: ReportNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _conflict(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/cn-codes", response_model=list[CNCode])
async def list_cn_codes() -> list[CNCode]:
    """Aluminium CN codes that can be reported."""
    return list(ALUMINIUM_CN_CODES)


@router.get("/summary", response_model=ReportSummary)
async def get_summary(
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> ReportSummary:
    return await ReportService(store, dispatcher, principal).summary()


@router.get("", response_model=list[CBAMReport], response_model_by_alias=True)
async def list_reports(
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> list[CBAMReport]:
    return await ReportService(store, dispatcher, principal).list_reports()


@router.post(
    "",
    response_model=CBAMReport,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_report(
    body: ReportCreate,
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> CBAMReport:
    """Create an empty draft report for one of the user's facilities."""
    return await ReportService(store, dispatcher, principal).create_report(body)


@router.get("/{report_id}", response_model=CBAMReport, response_model_by_alias=True)
async def get_report(
    report_id: str,
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> CBAMReport:
    try:
        return await ReportService(store, dispatcher, principal).get_report(report_id)
    except ReportNotFoundError as exc:
        raise _not_found(exc) from exc


@router.post(
    "/{report_id}/products",
    response_model=CBAMReport,
    response_model_by_alias=True,
)
async def add_product(
    report_id: str,
    body: ProductCreate,
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> CBAMReport:
    """Attach a product line to a draft report."""
    try:
        return await ReportService(store, dispatcher, principal).add_product(report_id, body)
    except ReportNotFoundError as exc:
        raise _not_found(exc) from exc
    except UnknownCNCodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except ReportLockedError as exc:
        raise _conflict(exc) from exc


@router.delete(
    "/{report_id}/products/{product_id}",
    response_model=CBAMReport,
    response_model_by_alias=True,
)
async def remove_product(
    report_id: str,
    product_id: str,
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> CBAMReport:
    try:
        return await ReportService(store, dispatcher, principal).remove_product(
            report_id, product_id
        )
    except ReportNotFoundError as exc:
        raise _not_found(exc) from exc
    except ReportLockedError as exc:
        raise _conflict(exc) from exc


@router.post(
    "/{report_id}/validate",
    response_model=CBAMReport,
    response_model_by_alias=True,
)
async def validate_report(
    report_id: str,
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> CBAMReport:
    """Move a draft report to validated."""
    try:
        return await ReportService(store, dispatcher, principal).validate_report(report_id)
    except ReportNotFoundError as exc:
        raise _not_found(exc) from exc
    except InvalidTransitionError as exc:
        raise _conflict(exc) from exc


@router.post(
    "/{report_id}/submit",
    response_model=CBAMReport,
    response_model_by_alias=True,
)
async def submit_report(
    report_id: str,
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> CBAMReport:
    """Mark a validated report as submitted.

    No document is transmitted; submission to the registry happens outside
    this platform.
    """
    try:
        return await ReportService(store, dispatcher, principal).submit_report(report_id)
    except ReportNotFoundError as exc:
        raise _not_found(exc) from exc
    except InvalidTransitionError as exc:
        raise _conflict(exc) from exc


@router.get("/{report_id}/export")
async def export_report(
    report_id: str,
    store: StoreDep,
    dispatcher: DispatcherDep,
    principal: CurrentPrincipal,
) -> Response:
    """Download the report as CBAM XML."""
    try:
        filename, content = await ReportService(store, dispatcher, principal).export_report(
            report_id
        )
    except ReportNotFoundError as exc:
        raise _not_found(exc) from exc

    return Response(
        content=content,
        media_type="application/xml",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
