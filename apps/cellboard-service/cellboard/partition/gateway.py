"""
Boundary contracts between the partition engine and persisted storage.

``CellGateway`` is the interface the synchronization coordinator and loaders
call. Payload normalization (server member lists that also contain the
leader, string dates) happens here so the engine only sees disjoint
leader/co-leader/member references.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import GroupSnapshot, MembershipAssignment, Person

logger = logging.getLogger(__name__)


@dataclass
class GatewayConfig:
    base_url: str = "http://localhost:8000"
    timeout: float = 30.0
    max_concurrency: int = 4

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        base_url = (os.getenv("CELLBOARD_API_BASE_URL") or cls.base_url).strip().rstrip("/")
        timeout_raw = os.getenv("CELLBOARD_API_TIMEOUT")
        concurrency_raw = os.getenv("CELLBOARD_SYNC_MAX_CONCURRENCY")
        timeout = cls.timeout
        if timeout_raw:
            try:
                timeout = float(timeout_raw)
            except ValueError:
                logger.warning("Invalid CELLBOARD_API_TIMEOUT '%s'; using %s", timeout_raw, cls.timeout)
        concurrency = cls.max_concurrency
        if concurrency_raw and concurrency_raw.isdigit() and int(concurrency_raw) > 0:
            concurrency = int(concurrency_raw)
        elif concurrency_raw:
            logger.warning("Invalid CELLBOARD_SYNC_MAX_CONCURRENCY '%s'; using %s", concurrency_raw, cls.max_concurrency)
        return cls(base_url=base_url, timeout=timeout, max_concurrency=concurrency)


class CellGateway:
    """Server-side operations the engine depends on."""

    def load_identity_pool(self, period_year: int) -> List[Person]:
        raise NotImplementedError

    def load_groups(self, period_year: int) -> List[GroupSnapshot]:
        raise NotImplementedError

    def create_group(
        self,
        name: str,
        period_year: int,
        leader_id: Optional[int] = None,
        co_leader_id: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def update_group_metadata(self, group_id: int, *, name: Optional[str] = None, period_year: Optional[int] = None) -> None:
        raise NotImplementedError

    def submit_membership_batch(self, assignments: Sequence[MembershipAssignment]) -> None:
        raise NotImplementedError

    def delete_group(self, group_id: int) -> None:
        raise NotImplementedError


def _parse_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.debug("Ignoring unparseable birth date %r", value)
        return None


def person_from_payload(data: Dict[str, Any]) -> Person:
    return Person(
        person_id=int(data["id"]),
        display_name=data.get("display_name") or "",
        contact_phone=data.get("phone") or "",
        birth_date=_parse_date(data.get("birth_date")),
        membership_status=data.get("member_status") or "ACTIVE",
    )


def _ref_id(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, dict):
        return int(value["id"]) if value.get("id") is not None else None
    return int(value)


def snapshot_from_payload(cell: Dict[str, Any]) -> GroupSnapshot:
    """Normalize a server cell payload into a snapshot with disjoint references."""
    leader_id = _ref_id(cell.get("leader"))
    co_leader_id = _ref_id(cell.get("co_leader"))
    leadership = {pid for pid in (leader_id, co_leader_id) if pid is not None}
    member_ids: List[int] = []
    for member in cell.get("members") or []:
        pid = _ref_id(member)
        if pid is None or pid in leadership or pid in member_ids:
            continue
        member_ids.append(pid)
    return GroupSnapshot(
        group_id=int(cell["id"]),
        name=cell.get("name") or "",
        period_year=int(cell["year"]),
        leader_id=leader_id,
        co_leader_id=co_leader_id,
        member_ids=tuple(member_ids),
        active=bool(cell.get("active", False)),
    )


def batch_payload(assignments: Iterable[MembershipAssignment]) -> Dict[str, Any]:
    return {"cell_updates": [a.to_payload() for a in assignments]}


__all__ = [
    "GatewayConfig",
    "CellGateway",
    "person_from_payload",
    "snapshot_from_payload",
    "batch_payload",
]
