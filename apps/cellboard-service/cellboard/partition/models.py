"""
In-memory records used by the partition engine and its boundary adapters.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Tuple

from .identifiers import GroupId

AUTO_NAME_TEMPLATE = "{display_name}'s cell"


def derive_group_name(display_name: str) -> str:
    return AUTO_NAME_TEMPLATE.format(display_name=display_name)


class Role(str, Enum):
    LEADER = "leader"
    CO_LEADER = "co_leader"
    MEMBER = "member"

    @property
    def is_leadership(self) -> bool:
        return self is not Role.MEMBER


@dataclass(frozen=True)
class Person:
    person_id: int
    display_name: str
    contact_phone: str = ""
    birth_date: Optional[date] = None
    membership_status: str = "ACTIVE"


@dataclass(frozen=True)
class Location:
    """Where a placed person sits: one group and one role."""

    group_id: GroupId
    role: Role


@dataclass
class Group:
    group_id: GroupId
    name: str
    period_year: int
    name_is_explicit: bool = False
    leader_id: Optional[int] = None
    co_leader_id: Optional[int] = None
    member_ids: List[int] = field(default_factory=list)

    def occupant(self, role: Role) -> Optional[int]:
        if role is Role.LEADER:
            return self.leader_id
        if role is Role.CO_LEADER:
            return self.co_leader_id
        raise ValueError("Members are a set, not a single slot")

    def role_of(self, person_id: int) -> Optional[Role]:
        if self.leader_id == person_id:
            return Role.LEADER
        if self.co_leader_id == person_id:
            return Role.CO_LEADER
        if person_id in self.member_ids:
            return Role.MEMBER
        return None

    def people(self) -> List[int]:
        """Leader, co-leader, then members in placement order."""
        ordered = [pid for pid in (self.leader_id, self.co_leader_id) if pid is not None]
        ordered.extend(self.member_ids)
        return ordered

    @property
    def is_empty(self) -> bool:
        return self.leader_id is None and self.co_leader_id is None and not self.member_ids

    @property
    def headcount(self) -> int:
        return len(self.people())


@dataclass(frozen=True)
class GroupSnapshot:
    """A persisted group as loaded through the gateway.

    Leader, co-leader and members are disjoint; adapters strip leaders out of
    server member lists before building a snapshot.
    """

    group_id: int
    name: str
    period_year: int
    leader_id: Optional[int] = None
    co_leader_id: Optional[int] = None
    member_ids: Tuple[int, ...] = ()
    active: bool = False


@dataclass(frozen=True)
class MembershipAssignment:
    """One entry of the consolidated membership batch."""

    group_id: int
    leader_id: Optional[int]
    co_leader_id: Optional[int]
    member_ids: Tuple[int, ...]

    def to_payload(self) -> dict:
        return {
            "cell_id": self.group_id,
            "leader_id": self.leader_id,
            "co_leader_id": self.co_leader_id,
            "member_ids": list(self.member_ids),
        }


__all__ = [
    "AUTO_NAME_TEMPLATE",
    "derive_group_name",
    "Role",
    "Person",
    "Location",
    "Group",
    "GroupSnapshot",
    "MembershipAssignment",
]
