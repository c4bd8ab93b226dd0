"""
Audit logging helpers and enums.

Centralized helpers to persist normalized audit records for cell and
season mutations.
"""
from __future__ import annotations
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from cellboard.db import schemas
from cellboard.db.repositories import audits as audit_repo


class AuditAction(str, Enum):
    # Cells
    CELL_CREATE = "cell_create"
    CELL_UPDATE = "cell_update"
    CELL_DELETE = "cell_delete"
    # Membership
    CELL_MEMBERS_SYNC = "cell_members_sync"
    CELL_MEMBERS_BATCH = "cell_members_batch"
    # Season
    SEASON_ACTIVATE = "season_activate"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[int] = None,
    period_year: Optional[int] = None,
    reason: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> schemas.AuditLog:
    """Central audit logging helper."""
    # Persist plain string values, not Enum reprs
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        period_year=period_year,
        reason=reason,
        metadata=metadata or {},
    )
    return audit_repo.create_audit_log(db, audit_log=audit_log)


def log_cell(
    db: Session,
    *,
    cell_id: Optional[int],
    action: AuditAction,
    period_year: Optional[int] = None,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    reason: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
):
    return log(
        db,
        action=action,
        status=status,
        target_type="cell",
        target_id=cell_id,
        period_year=period_year,
        reason=reason,
        metadata=metadata,
    )


__all__ = ["AuditAction", "AuditStatus", "log", "log_cell"]
