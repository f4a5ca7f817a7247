# field-sales/targets.py
"""
Monthly targets: progress against achieved sales/visits, the team overview,
and the monthly auto-renew of targets into the new month.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

import config
from database import insert_if_absent
from models import SheetsSale, Target, Visit
from user_directory import get_active_reps
from utils import current_and_previous_month, following_months, is_valid_month, month_bounds, month_date_range

logger = logging.getLogger(__name__)


class TargetProgress(BaseModel):
    target: int
    achieved: int
    percentage: int


class CatalogProgress(TargetProgress):
    catalog: str


class VisitProgress(TargetProgress):
    account_type: str


class TeamTargetSummary(BaseModel):
    user_id: str
    user_name: str
    has_target: bool
    progress: List[CatalogProgress]
    total_target: int = 0
    total_achieved: int = 0
    overall_percentage: int = 0


class RenewalResult(BaseModel):
    current_month: str
    previous_month: str
    candidates: int = 0
    renewed: int = 0
    skipped: int = 0


# Fixed-key tallies: anything outside the known catalogs/types is dropped.
@dataclass
class CatalogTally:
    fine_decor: int = 0
    artvio: int = 0
    woodrica: int = 0
    artis: int = 0

    FIELDS = {"Fine Decor": "fine_decor", "Artvio": "artvio", "Woodrica": "woodrica", "Artis": "artis"}

    def add(self, catalog: str, sheets: int):
        field = self.FIELDS.get(catalog)
        if field is not None:
            setattr(self, field, getattr(self, field) + (sheets or 0))

    def get(self, catalog: str) -> int:
        return getattr(self, self.FIELDS[catalog])


@dataclass
class AccountTypeTally:
    dealer: int = 0
    architect: int = 0
    oem: int = 0

    FIELDS = {"dealer": "dealer", "architect": "architect", "OEM": "oem"}

    def add(self, account_type: str):
        field = self.FIELDS.get(account_type)
        if field is not None:
            setattr(self, field, getattr(self, field) + 1)

    def get(self, account_type: str) -> int:
        return getattr(self, self.FIELDS[account_type])


def percentage_of(achieved: int, target: int) -> int:
    if not target:
        return 0
    ratio = Decimal(achieved * 100) / Decimal(target)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _has_target(targets: Dict[str, Optional[int]], key: str) -> bool:
    value = (targets or {}).get(key)
    return value is not None and value > 0


def calculate_sheet_progress(
    db: Session, user_id: str, month: str, targets_by_catalog: Dict[str, Optional[int]]
) -> List[CatalogProgress]:
    first_day, last_day = month_date_range(month)
    sales = (
        db.query(SheetsSale)
        .filter(
            SheetsSale.user_id == user_id,
            SheetsSale.date >= first_day,
            SheetsSale.date <= last_day,
        )
        .all()
    )

    tally = CatalogTally()
    for sale in sales:
        tally.add(sale.catalog, sale.sheets_count)

    progress = []
    for catalog in config.CATALOGS:
        if not _has_target(targets_by_catalog, catalog):
            continue
        target = targets_by_catalog[catalog]
        achieved = tally.get(catalog)
        progress.append(CatalogProgress(
            catalog=catalog, target=target, achieved=achieved, percentage=percentage_of(achieved, target),
        ))
    return progress


def calculate_visit_progress(
    db: Session, user_id: str, month: str, targets_by_account_type: Dict[str, Optional[int]]
) -> List[VisitProgress]:
    start, end = month_bounds(month)
    visits = (
        db.query(Visit.account_type)
        .filter(Visit.user_id == user_id, Visit.timestamp >= start, Visit.timestamp <= end)
        .all()
    )

    tally = AccountTypeTally()
    for visit in visits:
        tally.add(visit.account_type)

    progress = []
    for account_type in config.ACCOUNT_TYPES:
        if not _has_target(targets_by_account_type, account_type):
            continue
        target = targets_by_account_type[account_type]
        achieved = tally.get(account_type)
        progress.append(VisitProgress(
            account_type=account_type, target=target, achieved=achieved,
            percentage=percentage_of(achieved, target),
        ))
    return progress


def target_id_for(user_id: str, month: str) -> str:
    return f"{user_id}_{month}"


def renew_targets(db: Session, now: Optional[datetime] = None) -> RenewalResult:
    """
    Clones every auto-renewing target of the previous month into the current
    month. Existing current-month targets are never touched. All creates are
    committed together; a failed commit raises.
    """
    current_month, previous_month = current_and_previous_month(now)
    result = RenewalResult(current_month=current_month, previous_month=previous_month)
    logger.info("[targetAutoRenew] Current month: %s, previous month: %s", current_month, previous_month)

    sources = (
        db.query(Target)
        .filter(Target.month == previous_month, Target.auto_renew.is_(True))
        .order_by(Target.id)
        .all()
    )
    result.candidates = len(sources)
    if not sources:
        logger.info("[targetAutoRenew] No targets to auto-renew.")
        return result

    stamp = datetime.now(timezone.utc)
    try:
        for source in sources:
            new_id = target_id_for(source.user_id, current_month)
            created = insert_if_absent(db, Target, {
                "id": new_id,
                "user_id": source.user_id,
                "month": current_month,
                "targets_by_catalog": dict(source.targets_by_catalog or {}),
                "targets_by_account_type": dict(source.targets_by_account_type or {}),
                "auto_renew": source.auto_renew,
                "source_target_id": source.id,
                "created_by": source.created_by,
                "created_by_name": source.created_by_name,
                "created_at": stamp,
                "updated_at": stamp,
            })
            if created:
                result.renewed += 1
                logger.info("[targetAutoRenew] Renewed %s -> %s", source.id, new_id)
            else:
                result.skipped += 1
                logger.info("[targetAutoRenew] Target already exists for %s, skipping", new_id)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("[targetAutoRenew] Failed to auto-renew targets for %s", current_month)
        raise

    logger.info("[targetAutoRenew] Renewed %d targets for %s", result.renewed, current_month)
    return result


def calculate_team_targets(db: Session, month: str) -> List[TeamTargetSummary]:
    """
    Sheet progress for every active rep in `month`. Reps with a target come
    first, lowest overall percentage first.
    """
    if not is_valid_month(month):
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM.")
    summaries = []
    for rep in get_active_reps(db):
        target = db.get(Target, target_id_for(rep.id, month))
        summary = TeamTargetSummary(
            user_id=rep.id, user_name=rep.name or "Unknown", has_target=target is not None, progress=[],
        )
        if target is not None:
            summary.progress = calculate_sheet_progress(db, rep.id, month, target.targets_by_catalog or {})
            summary.total_target = sum(p.target for p in summary.progress)
            summary.total_achieved = sum(p.achieved for p in summary.progress)
            summary.overall_percentage = percentage_of(summary.total_achieved, summary.total_target)
        summaries.append(summary)

    summaries.sort(key=lambda s: (not s.has_target, s.overall_percentage))
    return summaries


def push_catalog_targets_forward(db: Session, target: Target, months: int = 12) -> List[str]:
    """
    Copies `target`'s catalog targets into the following months' targets that
    were auto-renewed from it. Does not commit. Returns the updated ids.
    """
    updated = []
    now = datetime.now(timezone.utc)
    for month in following_months(target.month, months):
        future = db.get(Target, target_id_for(target.user_id, month))
        if future is None or future.source_target_id != target.id:
            continue
        future.targets_by_catalog = dict(target.targets_by_catalog or {})
        future.updated_at = now
        updated.append(future.id)
    if updated:
        logger.info("Pushed catalog targets of %s into %s", target.id, ", ".join(updated))
    return updated
