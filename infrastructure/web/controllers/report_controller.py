from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core.entities.user import User
from core.entities.waste_report import WasteReport
from core.use_cases.report_use_cases import ReportNotFoundError, list_reports, set_report_status, submit_report
from infrastructure.db.sqlite_reports import SQLiteReportRepository
from infrastructure.db.sqlite_tokens import SQLiteTokenRepository
from infrastructure.web.dependencies import get_current_user, get_report_repo, get_token_repo, require_admin


router = APIRouter(prefix="/reports", tags=["reports"])


class ReportRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    waste_size: str = Field(..., description="small | medium | large")
    description: Optional[str] = None
    location: Optional[str] = None

class ReportResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    waste_size: str
    status: str
    created_at: str

class SubmitReportResponse(BaseModel):
    report: ReportResponse
    tokens_awarded: int
    rewarded: bool

class StatusRequest(BaseModel):
    status: str  # pending | approved | rejected | collected


def _to_response(report: WasteReport) -> ReportResponse:
    return ReportResponse(**vars(report))


@router.post("", response_model=SubmitReportResponse, status_code=201)
async def create_report(
    payload: ReportRequest,
    current_user: User = Depends(get_current_user),
    report_repo: SQLiteReportRepository = Depends(get_report_repo),
    token_repo: SQLiteTokenRepository = Depends(get_token_repo),
):
    try:
        submitted = await submit_report(
            report_repo,
            token_repo,
            user_id=current_user.id,
            title=payload.title,
            waste_size=payload.waste_size,
            description=payload.description,
            location=payload.location,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SubmitReportResponse(
        report=_to_response(submitted.report),
        tokens_awarded=submitted.tokens_awarded,
        rewarded=submitted.rewarded,
    )

@router.get("/mine", response_model=List[ReportResponse])
async def my_reports(
    limit: int = 50,
    offset: int = 0,
    current_user: User = Depends(get_current_user),
    repo: SQLiteReportRepository = Depends(get_report_repo),
):
    reports = await list_reports(repo, user_id=current_user.id, limit=limit, offset=offset)
    return [_to_response(r) for r in reports]

@router.get("", response_model=List[ReportResponse])
async def all_reports(
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    admin: User = Depends(require_admin),
    repo: SQLiteReportRepository = Depends(get_report_repo),
):
    try:
        reports = await list_reports(repo, status=status, limit=limit, offset=offset)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [_to_response(r) for r in reports]

@router.patch("/{report_id}/status", response_model=ReportResponse)
async def change_status(
    report_id: int,
    payload: StatusRequest,
    admin: User = Depends(require_admin),
    repo: SQLiteReportRepository = Depends(get_report_repo),
):
    try:
        report = await set_report_status(repo, report_id, payload.status)
    except ReportNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_response(report)
