"""
Cell repository functions.

Implements CRUD for cells and the replace-semantics membership writes. A
person belongs to at most one cell per year; writing a person into a cell
moves them out of any other cell of the same year.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from cellboard.db import schemas, models

logger = logging.getLogger(__name__)


class UnknownReference(LookupError):
    """A cell or person id in the request does not exist."""


class MembershipConflict(ValueError):
    """The requested memberships would place someone twice in one year."""


def _require_people(db: Session, person_ids: Iterable[int]) -> None:
    wanted = {pid for pid in person_ids if pid is not None}
    if not wanted:
        return
    found = {p.id for p in db.query(models.Person.id).filter(models.Person.id.in_(wanted)).all()}
    missing = sorted(wanted - found)
    if missing:
        raise UnknownReference(f"Unknown person ids: {missing}")


def _replace_memberships(db: Session, cell: models.Cell, assignments: Sequence[Tuple[int, str]]) -> None:
    """Make ``assignments`` the complete membership of ``cell``; flushes, does not commit."""
    db.query(models.CellMembership).filter(models.CellMembership.cell_id == cell.id).delete()
    person_ids = [pid for pid, _ in assignments]
    if person_ids:
        moved = (
            db.query(models.CellMembership)
            .filter(
                models.CellMembership.year == cell.year,
                models.CellMembership.person_id.in_(person_ids),
            )
            .delete()
        )
        if moved:
            logger.debug("cell_memberships_moved: cell=%s count=%d", cell.id, moved)
    for position, (person_id, role) in enumerate(assignments):
        db.add(models.CellMembership(
            cell_id=cell.id,
            person_id=person_id,
            year=cell.year,
            role=role,
            position=position,
        ))
    db.flush()


def create_cell(db: Session, cell: schemas.CellCreate):
    _require_people(db, [cell.leader_id, cell.co_leader_id])
    db_cell = models.Cell(name=cell.name, year=cell.year)
    db.add(db_cell)
    db.flush()
    leadership = schemas.CellMembersSync(leader_id=cell.leader_id, co_leader_id=cell.co_leader_id)
    _replace_memberships(db, db_cell, leadership.assignments())
    db.commit()
    db.refresh(db_cell)
    return db_cell


def get_cell(db: Session, cell_id: int):
    return db.query(models.Cell).filter(models.Cell.id == cell_id).first()


def get_cells(db: Session, year: int, skip: int = 0, limit: Optional[int] = None) -> List[models.Cell]:
    query = db.query(models.Cell).filter(models.Cell.year == year).order_by(models.Cell.id).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def update_cell(db: Session, cell_id: int, cell: schemas.CellUpdate):
    db_cell = get_cell(db, cell_id)
    if not db_cell:
        return None
    update_data = cell.model_dump(exclude_unset=True, exclude_none=True)
    new_year = update_data.get("year")
    if new_year is not None and new_year != db_cell.year:
        person_ids = [m.person_id for m in db_cell.memberships]
        if person_ids:
            clash = (
                db.query(models.CellMembership)
                .filter(
                    models.CellMembership.year == new_year,
                    models.CellMembership.person_id.in_(person_ids),
                )
                .first()
            )
            if clash:
                raise MembershipConflict(
                    f"Person {clash.person_id} already belongs to cell {clash.cell_id} in {new_year}"
                )
        for membership in db_cell.memberships:
            membership.year = new_year
    for key, value in update_data.items():
        setattr(db_cell, key, value)
    db.commit()
    db.refresh(db_cell)
    return db_cell


def delete_cell(db: Session, cell_id: int) -> bool:
    db_cell = get_cell(db, cell_id)
    if db_cell:
        db.delete(db_cell)
        db.commit()
        return True
    return False


def sync_cell_members(db: Session, cell_id: int, members: schemas.CellMembersSync):
    db_cell = get_cell(db, cell_id)
    if not db_cell:
        return None
    assignments = members.assignments()
    _require_people(db, [pid for pid, _ in assignments])
    try:
        _replace_memberships(db, db_cell, assignments)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_cell)
    return db_cell


def apply_membership_batch(db: Session, batch: schemas.CellMemberBatchUpdate) -> List[models.Cell]:
    """Replace the membership of every listed cell in one transaction."""
    cell_ids = [u.cell_id for u in batch.cell_updates]
    duplicated_cells = sorted(cid for cid, n in Counter(cell_ids).items() if n > 1)
    if duplicated_cells:
        raise MembershipConflict(f"Cells listed more than once: {duplicated_cells}")
    cells = {c.id: c for c in db.query(models.Cell).filter(models.Cell.id.in_(cell_ids)).all()} if cell_ids else {}
    missing = sorted(set(cell_ids) - set(cells))
    if missing:
        raise UnknownReference(f"Unknown cell ids: {missing}")

    plan = [(cells[u.cell_id], u.assignments()) for u in batch.cell_updates]
    _require_people(db, [pid for _, assignments in plan for pid, _ in assignments])
    per_year: Counter = Counter()
    for cell, assignments in plan:
        per_year.update((cell.year, pid) for pid, _ in assignments)
    twice = sorted(pid for (_, pid), n in per_year.items() if n > 1)
    if twice:
        raise MembershipConflict(f"People assigned to more than one cell: {twice}")

    try:
        for cell, assignments in plan:
            _replace_memberships(db, cell, assignments)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("cell_membership_batch_applied: cells=%d", len(plan))
    return [cell for cell, _ in plan]


def activate_season(db: Session, year: int) -> int:
    """Mark the cells of ``year`` active and every other cell inactive; returns the active count."""
    activated = db.query(models.Cell).filter(models.Cell.year == year).update({models.Cell.active: True})
    db.query(models.Cell).filter(models.Cell.year != year).update({models.Cell.active: False})
    db.commit()
    return activated
