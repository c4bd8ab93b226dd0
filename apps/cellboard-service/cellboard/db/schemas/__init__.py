"""
Domain-split Pydantic schemas, re-exported from one import path.
"""

from .people import PersonBase, Person
from .cells import (
    CellBase,
    CellCreate,
    CellUpdate,
    CellMembersSync,
    CellMemberUpdate,
    CellMemberBatchUpdate,
    Cell,
    CellCreated,
)
from .audits import AuditLogBase, AuditLogCreate, AuditLog

__all__ = [
    # People
    "PersonBase",
    "Person",
    # Cells
    "CellBase",
    "CellCreate",
    "CellUpdate",
    "CellMembersSync",
    "CellMemberUpdate",
    "CellMemberBatchUpdate",
    "Cell",
    "CellCreated",
    # Audits
    "AuditLogBase",
    "AuditLogCreate",
    "AuditLog",
]
