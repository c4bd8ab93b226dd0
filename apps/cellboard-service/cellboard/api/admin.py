"""
Season administration and audit trail endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cellboard.audit import AuditAction, log
from cellboard.db.database import get_db
from cellboard.db import schemas
from cellboard.db.repositories import audits as audit_repo
from cellboard.db.repositories import cells as cell_repo
from cellboard.api.envelope import success

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/activate")
def activate_season(year: int = Query(..., ge=1900, le=9999), db: Session = Depends(get_db)):
    activated = cell_repo.activate_season(db, year)
    log(
        db,
        action=AuditAction.SEASON_ACTIVATE,
        target_type="season",
        period_year=year,
        metadata={"activated": activated},
    )
    return success({"year": year, "activated": activated}, message=f"Season {year} activated")


@router.get("/audits")
def list_audit_logs(
    year: Optional[int] = None,
    action_type: Optional[str] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    audit_logs = audit_repo.get_audit_logs(
        db, period_year=year, action_type=action_type, status=status, skip=skip, limit=limit
    )
    # The model keeps the JSON column under metadata_json
    adapted = [
        schemas.AuditLog(
            id=entry.id,
            action_type=entry.action_type,
            status=entry.status,
            target_type=entry.target_type,
            target_id=entry.target_id,
            period_year=entry.period_year,
            reason=entry.reason,
            metadata=entry.metadata_json,
            created_at=entry.created_at,
        ).model_dump()
        for entry in audit_logs
    ]
    return success(adapted)
