from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_use_cases
from app.api.schemas.workers import DispatchReportResponse, SweepReportResponse

router = APIRouter()


@router.post(
    "/workers/expiry-sweep",
    response_model=SweepReportResponse,
    status_code=status.HTTP_200_OK,
)
async def run_expiry_sweep(use_cases=Depends(get_use_cases)) -> SweepReportResponse:
    """Expire lapsed unpaid holds now instead of waiting for the next tick."""
    report = await use_cases["expire_bookings"].execute()
    return SweepReportResponse(
        expired=report.expired,
        skipped=report.skipped,
        errors=report.errors,
    )


@router.post(
    "/workers/outbox/dispatch",
    response_model=DispatchReportResponse,
    status_code=status.HTTP_200_OK,
)
async def run_outbox_dispatch(use_cases=Depends(get_use_cases)) -> DispatchReportResponse:
    report = await use_cases["dispatch_outbox"].execute()
    return DispatchReportResponse(
        claimed=report.claimed,
        published=report.published,
        retried=report.retried,
        failed=report.failed,
    )
