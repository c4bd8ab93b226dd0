"""
Domain-split SQLAlchemy models.

Exposes `Base`, `now_utc`, and all ORM classes from one import path.
"""

from .base import Base, now_utc  # re-export

from .people import Person, MEMBER_STATUSES
from .cells import Cell, CellMembership, CELL_ROLES
from .audit import AuditLog

__all__ = [
    # base
    "Base",
    "now_utc",
    # people
    "Person",
    "MEMBER_STATUSES",
    # cells
    "Cell",
    "CellMembership",
    "CELL_ROLES",
    # audit
    "AuditLog",
]
