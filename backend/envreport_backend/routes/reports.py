from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from ..models.report import ReportResponse, SendReportRequest, report_response
from ..services.report_service import MissingTargetError, ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/collect", response_model=ReportResponse)
async def collect_report(request: Request) -> ReportResponse:
    service: ReportService = request.app.state.report_service
    report = await service.collect()
    return report_response(report, service.render(report))


@router.post("/send", response_model=ReportResponse)
async def send_report(request: Request, payload: SendReportRequest) -> ReportResponse:
    service: ReportService = request.app.state.report_service
    try:
        result = await service.collect_and_send(payload.target_id)
    except MissingTargetError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return report_response(result.report, result.text, result.delivery)
