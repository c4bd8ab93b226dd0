"""
Member API endpoints.

Expose the identity pool of a period and the people still without a cell.
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cellboard.db.database import get_db
from cellboard.db import schemas
from cellboard.db.repositories import people as people_repo
from cellboard.api.envelope import success

router = APIRouter(prefix="/api/members", tags=["members"])


def _serialize(people) -> List[dict]:
    return [schemas.Person.model_validate(p).model_dump() for p in people]


@router.get("")
def list_identity_pool(year: int = Query(..., ge=1900, le=9999), db: Session = Depends(get_db)):
    return success(_serialize(people_repo.get_identity_pool(db, year)))


@router.get("/admin/unassigned")
def list_unassigned(year: int = Query(..., ge=1900, le=9999), db: Session = Depends(get_db)):
    return success(_serialize(people_repo.get_unassigned_people(db, year)))
