"""
Cell administration API endpoints.

Create, rename, delete cells and write their memberships with replace
semantics. Every mutation is audited.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cellboard.audit import AuditAction, AuditStatus, log_cell
from cellboard.db.database import get_db
from cellboard.db import schemas
from cellboard.db.repositories import cells as cell_repo
from cellboard.api.envelope import success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/cells", tags=["cells"])


def _serialize(cell) -> dict:
    return schemas.Cell.model_validate(cell).model_dump()


def _log_batch_failure(db: Session, cell_ids, reason: str) -> None:
    log_cell(
        db,
        cell_id=None,
        action=AuditAction.CELL_MEMBERS_BATCH,
        status=AuditStatus.FAILURE,
        reason=reason,
        metadata={"cell_ids": cell_ids},
    )


@router.get("")
def list_cells(
    year: int = Query(..., ge=1900, le=9999),
    skip: int = 0,
    limit: int | None = None,
    db: Session = Depends(get_db),
):
    cells = cell_repo.get_cells(db, year=year, skip=skip, limit=limit)
    return success([_serialize(c) for c in cells])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_cell(payload: schemas.CellCreate, db: Session = Depends(get_db)):
    try:
        cell = cell_repo.create_cell(db, payload)
    except cell_repo.UnknownReference as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except IntegrityError as exc:
        db.rollback()
        logger.warning("cell_create_conflict: %s", exc)
        raise HTTPException(status_code=409, detail="Cell conflicts with existing memberships")

    log_cell(
        db,
        cell_id=cell.id,
        action=AuditAction.CELL_CREATE,
        period_year=cell.year,
        metadata={"name": cell.name, "leader_id": payload.leader_id, "co_leader_id": payload.co_leader_id},
    )
    return success(schemas.CellCreated(id=cell.id).model_dump(), message="Cell created")


# Declared before "/{cell_id}/members" so "members" is never read as a cell id
@router.put("/members/batch")
def update_members_batch(payload: schemas.CellMemberBatchUpdate, db: Session = Depends(get_db)):
    cell_ids = [u.cell_id for u in payload.cell_updates]
    try:
        cells = cell_repo.apply_membership_batch(db, payload)
    except cell_repo.UnknownReference as exc:
        _log_batch_failure(db, cell_ids, str(exc))
        raise HTTPException(status_code=404, detail=str(exc))
    except cell_repo.MembershipConflict as exc:
        _log_batch_failure(db, cell_ids, str(exc))
        raise HTTPException(status_code=422, detail=str(exc))
    except IntegrityError as exc:
        logger.warning("cell_members_batch_integrity_error: %s", exc)
        _log_batch_failure(db, cell_ids, "integrity error")
        raise HTTPException(status_code=422, detail="Membership batch places a person in two cells of one year")

    years = sorted({c.year for c in cells})
    log_cell(
        db,
        cell_id=None,
        action=AuditAction.CELL_MEMBERS_BATCH,
        period_year=years[0] if len(years) == 1 else None,
        metadata={"cell_ids": cell_ids},
    )
    return success({"updated": len(cells)}, message="Memberships saved")


@router.get("/{cell_id}")
def get_cell(cell_id: int, db: Session = Depends(get_db)):
    cell = cell_repo.get_cell(db, cell_id)
    if not cell:
        raise HTTPException(status_code=404, detail="Cell not found")
    return success(_serialize(cell))


@router.patch("/{cell_id}")
def update_cell(cell_id: int, payload: schemas.CellUpdate, db: Session = Depends(get_db)):
    try:
        cell = cell_repo.update_cell(db, cell_id, payload)
    except cell_repo.MembershipConflict as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc))
    if not cell:
        raise HTTPException(status_code=404, detail="Cell not found")

    log_cell(
        db,
        cell_id=cell.id,
        action=AuditAction.CELL_UPDATE,
        period_year=cell.year,
        metadata=payload.model_dump(exclude_unset=True, exclude_none=True),
    )
    return success(_serialize(cell), message="Cell updated")


@router.delete("/{cell_id}")
def delete_cell(cell_id: int, db: Session = Depends(get_db)):
    cell = cell_repo.get_cell(db, cell_id)
    if not cell:
        raise HTTPException(status_code=404, detail="Cell not found")
    year, name = cell.year, cell.name
    cell_repo.delete_cell(db, cell_id)
    log_cell(db, cell_id=cell_id, action=AuditAction.CELL_DELETE, period_year=year, metadata={"name": name})
    return success(None, message="Cell deleted")


@router.put("/{cell_id}/members")
def sync_members(cell_id: int, payload: schemas.CellMembersSync, db: Session = Depends(get_db)):
    try:
        cell = cell_repo.sync_cell_members(db, cell_id, payload)
    except cell_repo.UnknownReference as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Memberships conflict with another cell")
    if not cell:
        raise HTTPException(status_code=404, detail="Cell not found")

    log_cell(
        db,
        cell_id=cell.id,
        action=AuditAction.CELL_MEMBERS_SYNC,
        period_year=cell.year,
        metadata={"size": len(payload.assignments())},
    )
    return success(_serialize(cell), message="Members saved")
