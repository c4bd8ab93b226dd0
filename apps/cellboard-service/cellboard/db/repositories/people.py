"""
People repository functions.

The identity pool of a period is everyone whose membership status is
eligible for cell placement, plus anyone already placed in a cell of that
period (so a placed person never drops out of the pool when their status
changes).
"""
from __future__ import annotations

import logging
import os
from typing import List, Tuple

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from cellboard.db import models

logger = logging.getLogger(__name__)

DEFAULT_ELIGIBLE_STATUSES: Tuple[str, ...] = ("NEWCOMER", "ACTIVE", "LONG_TERM_ABSENT")


def get_eligible_statuses() -> Tuple[str, ...]:
    raw = os.getenv("CELLBOARD_ELIGIBLE_STATUSES")
    if not raw:
        return DEFAULT_ELIGIBLE_STATUSES
    statuses = []
    for token in raw.split(","):
        value = token.strip().upper()
        if not value:
            continue
        if value not in models.MEMBER_STATUSES:
            logger.warning("Ignoring unknown member status '%s' in CELLBOARD_ELIGIBLE_STATUSES", value)
            continue
        statuses.append(value)
    return tuple(statuses) or DEFAULT_ELIGIBLE_STATUSES


def _placed_ids(year: int):
    return select(models.CellMembership.person_id).where(models.CellMembership.year == year)


def get_identity_pool(db: Session, year: int) -> List[models.Person]:
    placed = _placed_ids(year)
    return (
        db.query(models.Person)
        .filter(or_(models.Person.member_status.in_(get_eligible_statuses()), models.Person.id.in_(placed)))
        .order_by(models.Person.display_name, models.Person.id)
        .all()
    )


def get_unassigned_people(db: Session, year: int) -> List[models.Person]:
    placed = _placed_ids(year)
    return (
        db.query(models.Person)
        .filter(
            models.Person.member_status.in_(get_eligible_statuses()),
            ~models.Person.id.in_(placed),
        )
        .order_by(models.Person.display_name, models.Person.id)
        .all()
    )
