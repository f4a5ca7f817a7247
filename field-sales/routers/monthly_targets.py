from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime, timezone
from sqlalchemy.orm import Session

import config
from database import get_db
from models import Target
from targets import (
    CatalogProgress,
    TeamTargetSummary,
    VisitProgress,
    calculate_sheet_progress,
    calculate_team_targets,
    calculate_visit_progress,
    push_catalog_targets_forward,
    target_id_for,
)
from utils import is_valid_month

router = APIRouter()

# --- Pydantic Models ---
class SetTargetRequest(BaseModel):
    targets_by_catalog: Dict[str, Optional[int]]
    targets_by_account_type: Dict[str, Optional[int]] = Field(default_factory=dict)
    auto_renew: bool = False
    update_future_months: bool = False
    created_by: str
    created_by_name: Optional[str] = None

class TargetResponse(BaseModel):
    id: str
    user_id: str
    month: str
    targets_by_catalog: Dict[str, Optional[int]]
    targets_by_account_type: Dict[str, Optional[int]]
    auto_renew: bool
    source_target_id: Optional[str] = None
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None

    model_config = {"from_attributes": True}

class TargetWithProgressResponse(BaseModel):
    target: TargetResponse
    sheet_progress: List[CatalogProgress]
    visit_progress: List[VisitProgress]


def _check_month(month: str):
    if not is_valid_month(month):
        raise HTTPException(status_code=422, detail="Invalid month format. Use YYYY-MM")

def _check_targets(values: Dict[str, Optional[int]], allowed, label: str) -> Dict[str, int]:
    cleaned = {}
    for key, value in values.items():
        if key not in allowed:
            raise HTTPException(status_code=422, detail=f"Unknown {label}: {key}")
        if value is None:
            continue
        if value <= 0:
            raise HTTPException(status_code=422, detail=f"Target for {key} must be a positive number")
        cleaned[key] = value
    return cleaned

def _get_target_or_404(db: Session, user_id: str, month: str) -> Target:
    target = db.get(Target, target_id_for(user_id, month))
    if target is None:
        raise HTTPException(status_code=404, detail="No target set for this month")
    return target


@router.put("/targets/{user_id}/{month}", response_model=TargetResponse, tags=["Targets"])
def set_target(user_id: str, month: str, body: SetTargetRequest, db: Session = Depends(get_db)):
    _check_month(month)
    by_catalog = _check_targets(body.targets_by_catalog, config.CATALOGS, "catalog")
    by_account_type = _check_targets(body.targets_by_account_type, config.ACCOUNT_TYPES, "account type")
    if not by_catalog and not by_account_type:
        raise HTTPException(status_code=422, detail="At least one target value is required")

    now = datetime.now(timezone.utc)
    target = db.get(Target, target_id_for(user_id, month))
    if target is None:
        target = Target(
            id=target_id_for(user_id, month),
            user_id=user_id,
            month=month,
            created_at=now,
        )
        db.add(target)

    target.targets_by_catalog = by_catalog
    target.targets_by_account_type = by_account_type
    target.auto_renew = body.auto_renew
    # Last editor wins.
    target.created_by = body.created_by
    target.created_by_name = body.created_by_name
    target.updated_at = now
    if body.update_future_months:
        # Same transaction as the edit itself.
        push_catalog_targets_forward(db, target)
    db.commit()
    db.refresh(target)
    return target


@router.get("/targets/{month}", response_model=List[TeamTargetSummary], tags=["Targets"])
def get_team_targets(month: str, db: Session = Depends(get_db)):
    """Sheet progress of every active rep, lowest achievers first."""
    _check_month(month)
    return calculate_team_targets(db, month)


@router.get("/targets/{user_id}/{month}", response_model=TargetWithProgressResponse, tags=["Targets"])
def get_target(user_id: str, month: str, db: Session = Depends(get_db)):
    _check_month(month)
    target = _get_target_or_404(db, user_id, month)
    return TargetWithProgressResponse(
        target=TargetResponse.model_validate(target),
        sheet_progress=calculate_sheet_progress(db, user_id, month, target.targets_by_catalog or {}),
        visit_progress=calculate_visit_progress(db, user_id, month, target.targets_by_account_type or {}),
    )


@router.post("/targets/{user_id}/{month}/stop-auto-renew", response_model=TargetResponse, tags=["Targets"])
def stop_auto_renew(user_id: str, month: str, db: Session = Depends(get_db)):
    _check_month(month)
    target = _get_target_or_404(db, user_id, month)
    target.auto_renew = False
    target.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(target)
    return target
