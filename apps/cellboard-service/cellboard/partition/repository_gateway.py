"""
In-process cell gateway over the SQLAlchemy repositories.

Used by scripts and tests that talk to the database directly instead of
going through the HTTP API. Each call opens its own session; calls are
serialized with a lock because the coordinator fans metadata updates out to
worker threads.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cellboard.audit import AuditAction, log_cell
from cellboard.db import schemas
from cellboard.db.repositories import cells as cell_repo
from cellboard.db.repositories import people as people_repo

from .errors import GatewayError
from .gateway import CellGateway, person_from_payload, snapshot_from_payload
from .models import GroupSnapshot, MembershipAssignment, Person

logger = logging.getLogger(__name__)


class RepositoryCellGateway(CellGateway):
    def __init__(self, session_factory: Optional[Callable[[], Session]] = None, *, audit: bool = True):
        if session_factory is None:
            from cellboard.db.database import SessionLocal, ensure_sqlite_schema
            ensure_sqlite_schema()
            session_factory = SessionLocal
        self.session_factory = session_factory
        self.audit = audit
        self._lock = threading.Lock()

    @contextmanager
    def _session(self):
        with self._lock:
            db = self.session_factory()
            try:
                yield db
            except cell_repo.UnknownReference as exc:
                db.rollback()
                raise GatewayError(str(exc), status_code=404) from exc
            except (cell_repo.MembershipConflict, IntegrityError) as exc:
                db.rollback()
                raise GatewayError(str(exc), status_code=422) from exc
            finally:
                db.close()

    def load_identity_pool(self, period_year: int) -> List[Person]:
        with self._session() as db:
            people = people_repo.get_identity_pool(db, period_year)
            return [person_from_payload(schemas.Person.model_validate(p).model_dump()) for p in people]

    def load_groups(self, period_year: int) -> List[GroupSnapshot]:
        with self._session() as db:
            cells = cell_repo.get_cells(db, year=period_year)
            return [snapshot_from_payload(schemas.Cell.model_validate(c).model_dump()) for c in cells]

    def create_group(
        self,
        name: str,
        period_year: int,
        leader_id: Optional[int] = None,
        co_leader_id: Optional[int] = None,
    ) -> int:
        payload = schemas.CellCreate(name=name, year=period_year, leader_id=leader_id, co_leader_id=co_leader_id)
        with self._session() as db:
            cell = cell_repo.create_cell(db, payload)
            if self.audit:
                log_cell(db, cell_id=cell.id, action=AuditAction.CELL_CREATE, period_year=cell.year,
                         metadata={"name": cell.name})
            return cell.id

    def update_group_metadata(self, group_id: int, *, name: Optional[str] = None, period_year: Optional[int] = None) -> None:
        payload = schemas.CellUpdate(name=name, year=period_year)
        with self._session() as db:
            cell = cell_repo.update_cell(db, group_id, payload)
            if cell is None:
                raise GatewayError(f"Cell {group_id} not found", status_code=404)
            if self.audit:
                log_cell(db, cell_id=cell.id, action=AuditAction.CELL_UPDATE, period_year=cell.year,
                         metadata=payload.model_dump(exclude_none=True))

    def submit_membership_batch(self, assignments: Sequence[MembershipAssignment]) -> None:
        batch = schemas.CellMemberBatchUpdate(cell_updates=[a.to_payload() for a in assignments])
        with self._session() as db:
            cell_repo.apply_membership_batch(db, batch)
            if self.audit:
                log_cell(db, cell_id=None, action=AuditAction.CELL_MEMBERS_BATCH,
                         metadata={"cell_ids": [a.group_id for a in assignments]})

    def delete_group(self, group_id: int) -> None:
        with self._session() as db:
            cell = cell_repo.get_cell(db, group_id)
            if cell is None:
                raise GatewayError(f"Cell {group_id} not found", status_code=404)
            year = cell.year
            cell_repo.delete_cell(db, group_id)
            if self.audit:
                log_cell(db, cell_id=group_id, action=AuditAction.CELL_DELETE, period_year=year)


__all__ = ["RepositoryCellGateway"]
