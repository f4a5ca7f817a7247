from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime, timezone
from sqlalchemy.orm import Session

import config
from database import get_db
from dsr import CompilerRunResult, run_dsr_compiler
from models import DSRReport
from utils import parse_business_date

router = APIRouter()

# --- Pydantic Models ---
class CompileRequest(BaseModel):
    date: Optional[str] = None

class SheetsSalesItem(BaseModel):
    catalog: str
    totalSheets: int

class ExpenseItem(BaseModel):
    category: Optional[str]
    totalAmount: float

class DSRReportResponse(BaseModel):
    id: str
    user_id: str
    date: str
    check_in_at: Optional[datetime]
    check_out_at: Optional[datetime]
    total_visits: int
    visit_ids: List[str]
    was_active: bool
    activity_count: int
    sheets_sales: List[SheetsSalesItem]
    total_sheets_sold: int
    expenses: List[ExpenseItem]
    total_expenses: float
    status: str
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    manager_comments: Optional[str] = None
    resubmitted_at: Optional[datetime] = None
    generated_at: datetime

    model_config = {"from_attributes": True}

class ReviewRequest(BaseModel):
    reviewer_id: str
    status: str
    comments: Optional[str] = None


@router.post("/dsr/compile", response_model=CompilerRunResult, tags=["DSR"])
def trigger_dsr_compiler(body: CompileRequest, db: Session = Depends(get_db)):
    """Runs the DSR compiler now, for `date` or today (IST). Used for backfills."""
    if body.date is not None:
        try:
            parse_business_date(body.date)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
    return run_dsr_compiler(db, body.date)


@router.get("/dsr", response_model=List[DSRReportResponse], tags=["DSR"])
def list_dsr_reports(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    status: Optional[str] = Query(None, description="A DSR status, or 'all'"),
    db: Session = Depends(get_db),
):
    """Manager review queue, newest day first."""
    query = db.query(DSRReport)
    if status and status != "all":
        query = query.filter(DSRReport.status == status)
    if date:
        try:
            parse_business_date(date)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        query = query.filter(DSRReport.date == date)
    return query.order_by(DSRReport.date.desc(), DSRReport.id).all()


@router.get("/dsr/{report_id}", response_model=DSRReportResponse, tags=["DSR"])
def get_dsr_report(report_id: str, db: Session = Depends(get_db)):
    report = db.get(DSRReport, report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="DSR report not found")
    return report


@router.post("/dsr/{report_id}/review", response_model=DSRReportResponse, tags=["DSR"])
def review_dsr_report(report_id: str, body: ReviewRequest, db: Session = Depends(get_db)):
    if body.status not in config.DSR_REVIEW_STATUSES:
        raise HTTPException(status_code=400, detail="Status must be 'approved' or 'needs_revision'")

    report = db.get(DSRReport, report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="DSR report not found")
    if report.status == config.DSR_STATUS_APPROVED:
        raise HTTPException(status_code=400, detail="This DSR has already been approved")

    report.status = body.status
    report.reviewed_by = body.reviewer_id
    report.reviewed_at = datetime.now(timezone.utc)
    report.manager_comments = body.comments or ""
    db.commit()
    db.refresh(report)
    return report


@router.post("/dsr/{report_id}/resubmit", response_model=DSRReportResponse, tags=["DSR"])
def resubmit_dsr_report(report_id: str, db: Session = Depends(get_db)):
    """Sends a DSR sent back for revision to the review queue again."""
    report = db.get(DSRReport, report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="DSR report not found")
    if report.status != config.DSR_STATUS_NEEDS_REVISION:
        raise HTTPException(status_code=400, detail="Only DSRs marked needs_revision can be resubmitted")

    report.status = config.DSR_STATUS_PENDING
    report.resubmitted_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(report)
    return report
