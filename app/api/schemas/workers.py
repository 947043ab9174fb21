from app.api.schemas.base import CamelModel


class SweepReportResponse(CamelModel):
    expired: int
    skipped: int
    errors: int


class DispatchReportResponse(CamelModel):
    claimed: int
    published: int
    retried: int
    failed: int
