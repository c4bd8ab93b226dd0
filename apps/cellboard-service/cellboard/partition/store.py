"""
Partition store.

Holds the groups of one period plus the implicit unassigned bucket and keeps a
person -> location index so every lookup is O(1). Read access is public;
mutation primitives are underscored and only called by the placement engine,
which is responsible for preserving the one-slot-per-person invariant.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional

from .errors import InvariantViolation, UnknownGroupError, UnknownPersonError
from .identifiers import GroupId, PersistentId, ProvisionalId, ProvisionalIdMinter
from .models import Group, GroupSnapshot, Location, Person, Role, derive_group_name

logger = logging.getLogger(__name__)


class PartitionStore:
    def __init__(self, period_year: int, people: Iterable[Person], *, minter: Optional[ProvisionalIdMinter] = None):
        self.period_year = period_year
        self._people: Dict[int, Person] = {}
        for person in people:
            if person.person_id in self._people:
                raise InvariantViolation(f"Person {person.person_id} listed twice in the identity pool")
            self._people[person.person_id] = person
        self._groups: Dict[GroupId, Group] = {}
        # dict keys double as an insertion-ordered set
        self._unassigned: Dict[int, None] = dict.fromkeys(self._people)
        self._locations: Dict[int, Location] = {}
        self._pending_deletions: List[PersistentId] = []
        self.minter = minter or ProvisionalIdMinter()

    @classmethod
    def hydrate(
        cls,
        period_year: int,
        people: Iterable[Person],
        snapshots: Iterable[GroupSnapshot],
        *,
        minter: Optional[ProvisionalIdMinter] = None,
    ) -> "PartitionStore":
        """Build a store from the identity pool and persisted groups of a period."""
        store = cls(period_year, people, minter=minter)
        for snap in snapshots:
            group_id = PersistentId(snap.group_id)
            if group_id in store._groups:
                raise InvariantViolation(f"Group {snap.group_id} loaded twice")
            leader = store._people.get(snap.leader_id) if snap.leader_id is not None else None
            name = (snap.name or "").strip()
            explicit = bool(name) and not (leader is not None and name == derive_group_name(leader.display_name))
            store._add_group(Group(
                group_id=group_id,
                name=snap.name,
                period_year=snap.period_year,
                name_is_explicit=explicit,
            ))
            placements = []
            if snap.leader_id is not None:
                placements.append((snap.leader_id, Role.LEADER))
            if snap.co_leader_id is not None:
                placements.append((snap.co_leader_id, Role.CO_LEADER))
            placements.extend((pid, Role.MEMBER) for pid in snap.member_ids)
            for person_id, role in placements:
                store._require_person(person_id)
                if person_id not in store._unassigned:
                    raise InvariantViolation(
                        f"Person {person_id} appears in more than one place while loading group {snap.group_id}"
                    )
                store._detach(person_id)
                store._attach(person_id, Location(group_id, role))
        store.check_invariants()
        logger.debug(
            "partition_hydrated: year=%s people=%d groups=%d unassigned=%d",
            period_year, len(store._people), len(store._groups), len(store._unassigned),
        )
        return store

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    def people(self) -> List[Person]:
        return list(self._people.values())

    def person(self, person_id: int) -> Person:
        return self._require_person(person_id)

    def groups(self) -> List[Group]:
        return list(self._groups.values())

    def group(self, group_id: GroupId) -> Group:
        return self._require_group(group_id)

    def has_group(self, group_id: GroupId) -> bool:
        return group_id in self._groups

    def provisional_groups(self) -> List[Group]:
        return [g for g in self._groups.values() if isinstance(g.group_id, ProvisionalId)]

    def persistent_groups(self) -> List[Group]:
        return [g for g in self._groups.values() if isinstance(g.group_id, PersistentId)]

    def unassigned_ids(self) -> List[int]:
        return list(self._unassigned)

    def unassigned(self) -> List[Person]:
        return [self._people[pid] for pid in self._unassigned]

    def is_unassigned(self, person_id: int) -> bool:
        self._require_person(person_id)
        return person_id in self._unassigned

    def location_of(self, person_id: int) -> Optional[Location]:
        """Return the person's group slot, or None when they are unassigned."""
        self._require_person(person_id)
        return self._locations.get(person_id)

    def find_unassigned_by_name(self, display_name: str) -> Optional[Person]:
        for person_id in self._unassigned:
            person = self._people[person_id]
            if person.display_name == display_name:
                return person
        return None

    def pending_deletions(self) -> List[PersistentId]:
        return list(self._pending_deletions)

    def stats(self) -> Dict[str, int]:
        return {
            "groups": len(self._groups),
            "assigned": len(self._locations),
            "unassigned": len(self._unassigned),
            "pending_deletions": len(self._pending_deletions),
        }

    def check_invariants(self) -> None:
        """Raise InvariantViolation unless every person sits in exactly one place."""
        seen: Counter = Counter(self._unassigned.keys())
        for group in self._groups.values():
            if group.leader_id is not None and group.leader_id == group.co_leader_id:
                raise InvariantViolation(f"Group {group.group_id} has the same leader and co-leader")
            for person_id in group.people():
                if person_id not in self._people:
                    raise InvariantViolation(f"Group {group.group_id} references unknown person {person_id}")
                seen[person_id] += 1
                location = self._locations.get(person_id)
                if location is None or location.group_id != group.group_id or group.role_of(person_id) != location.role:
                    raise InvariantViolation(f"Location index out of date for person {person_id}")
        duplicated = sorted(pid for pid, count in seen.items() if count > 1)
        if duplicated:
            raise InvariantViolation(f"People placed more than once: {duplicated}")
        missing = sorted(pid for pid in self._people if seen[pid] == 0)
        if missing:
            raise InvariantViolation(f"People missing from the partition: {missing}")
        if set(self._locations) & set(self._unassigned):
            raise InvariantViolation("A person is both placed and unassigned")

    # ------------------------------------------------------------------
    # Mutation primitives (placement engine only)
    # ------------------------------------------------------------------
    def _require_person(self, person_id: int) -> Person:
        try:
            return self._people[person_id]
        except (KeyError, TypeError):
            raise UnknownPersonError(person_id) from None

    def _require_group(self, group_id: GroupId) -> Group:
        try:
            return self._groups[group_id]
        except (KeyError, TypeError):
            raise UnknownGroupError(group_id) from None

    def _add_group(self, group: Group) -> None:
        self._groups[group.group_id] = group

    def _drop_group(self, group_id: GroupId) -> Group:
        group = self._groups.pop(group_id)
        if isinstance(group_id, PersistentId):
            self._pending_deletions.append(group_id)
        return group

    def _detach(self, person_id: int) -> Optional[Location]:
        """Take a person out of wherever they are; returns the previous slot."""
        location = self._locations.pop(person_id, None)
        if location is None:
            if person_id not in self._unassigned:
                raise InvariantViolation(f"Person {person_id} has no location")
            del self._unassigned[person_id]
            return None
        group = self._groups[location.group_id]
        if location.role is Role.LEADER:
            group.leader_id = None
        elif location.role is Role.CO_LEADER:
            group.co_leader_id = None
        else:
            group.member_ids.remove(person_id)
        return location

    def _attach(self, person_id: int, location: Optional[Location]) -> None:
        """Put a detached person into a slot, or the unassigned bucket when location is None."""
        if location is None:
            self._unassigned[person_id] = None
            return
        group = self._groups[location.group_id]
        if location.role is Role.LEADER:
            if group.leader_id is not None:
                raise InvariantViolation(f"Leader slot of group {group.group_id} is occupied")
            group.leader_id = person_id
        elif location.role is Role.CO_LEADER:
            if group.co_leader_id is not None:
                raise InvariantViolation(f"Co-leader slot of group {group.group_id} is occupied")
            group.co_leader_id = person_id
        else:
            group.member_ids.append(person_id)
        self._locations[person_id] = location


__all__ = ["PartitionStore"]
