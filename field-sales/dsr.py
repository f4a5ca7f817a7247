# field-sales/dsr.py
"""
Daily Sales Report compilation.

compile_daily_summary() gathers one rep's activity for one IST calendar day,
save_dsr_report() turns that summary into a persisted DSR, and
run_dsr_compiler() drives both across every active rep.
"""
import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

import config
from database import upsert
from models import AttendanceEvent, DSRReport, Expense, SheetsSale, Visit
from user_directory import get_active_rep_ids
from utils import business_today, day_bounds, parse_business_date

logger = logging.getLogger(__name__)


class DailySummary(BaseModel):
    user_id: str
    date: str
    check_in_at: Optional[datetime] = None
    check_out_at: Optional[datetime] = None
    visit_ids: List[str] = Field(default_factory=list)
    # Open-ended: any catalog / category string is summed, known or not.
    sheets_sales_by_catalog: Dict[str, int] = Field(default_factory=dict)
    expenses_by_category: Dict[str, Decimal] = Field(default_factory=dict)


class CompilerRunResult(BaseModel):
    date: str
    processed: int = 0
    written: int = 0
    skipped: int = 0
    failed: int = 0
    failed_user_ids: List[str] = Field(default_factory=list)


def report_id_for(user_id: str, date: str) -> str:
    return f"{user_id}_{date}"


def compile_daily_summary(db: Session, user_id: str, date: str) -> DailySummary:
    start_of_day, end_of_day = day_bounds(date)
    summary = DailySummary(user_id=user_id, date=date)

    # Attendance and visits are keyed by instant.
    attendance = (
        db.query(AttendanceEvent)
        .filter(
            AttendanceEvent.user_id == user_id,
            AttendanceEvent.timestamp >= start_of_day,
            AttendanceEvent.timestamp <= end_of_day,
        )
        .order_by(AttendanceEvent.timestamp.asc())
        .all()
    )
    for event in attendance:
        if event.type == config.CHECK_IN and summary.check_in_at is None:
            summary.check_in_at = event.timestamp
        elif event.type == config.CHECK_OUT:
            summary.check_out_at = event.timestamp

    visit_rows = (
        db.query(Visit.id)
        .filter(
            Visit.user_id == user_id,
            Visit.timestamp >= start_of_day,
            Visit.timestamp <= end_of_day,
        )
        .all()
    )
    summary.visit_ids = [row.id for row in visit_rows]

    # Sheets and expenses are keyed by calendar string: exact match only.
    sheets_by_catalog = defaultdict(int)
    sales = db.query(SheetsSale).filter(SheetsSale.user_id == user_id, SheetsSale.date == date).all()
    for sale in sales:
        sheets_by_catalog[sale.catalog] += sale.sheets_count or 0
    summary.sheets_sales_by_catalog = dict(sheets_by_catalog)

    expenses_by_category = defaultdict(Decimal)
    reports = db.query(Expense).filter(Expense.user_id == user_id, Expense.date == date).all()
    for report in reports:
        for item in report.items or []:
            expenses_by_category[item.get("category")] += Decimal(str(item.get("amount") or 0))
    summary.expenses_by_category = dict(expenses_by_category)

    return summary


def save_dsr_report(db: Session, summary: DailySummary) -> Optional[str]:
    """
    Merge-writes the DSR for summary.user_id / summary.date.
    Returns the report id, or None when the rep had nothing to report.
    """
    total_sheets_sold = sum(summary.sheets_sales_by_catalog.values())
    total_expenses = sum(summary.expenses_by_category.values(), Decimal("0"))

    was_active = bool(summary.visit_ids) or total_sheets_sold > 0 or total_expenses > 0
    activity_count = (
        len(summary.visit_ids)
        + len(summary.sheets_sales_by_catalog)
        + len(summary.expenses_by_category)
    )

    if summary.check_in_at is None and summary.check_out_at is None and not was_active:
        logger.info("No activity for %s on %s, skipping DSR.", summary.user_id, summary.date)
        return None

    # Money on the line means a manager has to look at it.
    requires_approval = total_sheets_sold > 0 or total_expenses > 0
    status = config.DSR_STATUS_PENDING if requires_approval else config.DSR_STATUS_APPROVED

    report_id = report_id_for(summary.user_id, summary.date)
    upsert(db, DSRReport, {
        "id": report_id,
        "user_id": summary.user_id,
        "date": summary.date,
        "check_in_at": summary.check_in_at,
        "check_out_at": summary.check_out_at,
        "total_visits": len(summary.visit_ids),
        "visit_ids": list(summary.visit_ids),
        "was_active": was_active,
        "activity_count": activity_count,
        "sheets_sales": [
            {"catalog": catalog, "totalSheets": total}
            for catalog, total in summary.sheets_sales_by_catalog.items()
        ],
        "total_sheets_sold": total_sheets_sold,
        "expenses": [
            {"category": category, "totalAmount": float(total)}
            for category, total in summary.expenses_by_category.items()
        ],
        "total_expenses": total_expenses,
        "status": status,
        "generated_at": datetime.now(timezone.utc),
    })
    logger.info(
        "DSR %s written: status=%s sheets=%s expenses=%s",
        report_id, status, total_sheets_sold, total_expenses,
    )
    return report_id


def run_dsr_compiler(db: Session, date: Optional[str] = None) -> CompilerRunResult:
    """
    Compiles DSRs for every active rep. A failing rep is logged and skipped;
    a malformed date or failing to list the reps raises.
    """
    if date is None:
        date = business_today()
    parse_business_date(date)
    result = CompilerRunResult(date=date)

    rep_ids = get_active_rep_ids(db)
    logger.info("DSR compiler started for %s with %d active reps.", date, len(rep_ids))

    for user_id in rep_ids:
        result.processed += 1
        try:
            summary = compile_daily_summary(db, user_id, date)
            report_id = save_dsr_report(db, summary)
            db.commit()
            if report_id is None:
                result.skipped += 1
            else:
                result.written += 1
        except Exception:
            db.rollback()
            result.failed += 1
            result.failed_user_ids.append(user_id)
            logger.exception("Failed to compile DSR for user %s on %s.", user_id, date)

    logger.info(
        "DSR compiler finished for %s: %d written, %d skipped, %d failed.",
        date, result.written, result.skipped, result.failed,
    )
    return result
