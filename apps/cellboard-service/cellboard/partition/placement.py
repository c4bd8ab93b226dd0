"""
Placement engine: the only code path that mutates a PartitionStore.

Every operation either completes or raises before touching the store, so no
intermediate state is observable between calls.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from .identifiers import GroupId, ProvisionalId
from .models import Group, Location, Role, derive_group_name
from .store import PartitionStore

logger = logging.getLogger(__name__)


class PlacementEngine:
    def __init__(self, store: PartitionStore, *, check_invariants: bool = True):
        self.store = store
        self.check_invariants = check_invariants

    def _verify(self) -> None:
        if self.check_invariants:
            self.store.check_invariants()

    def place(self, person_id: int, group_id: GroupId, slot: Role) -> None:
        """Move a person into a slot of a group, displacing a different leader/co-leader."""
        slot = Role(slot)
        store = self.store
        person = store._require_person(person_id)
        group = store._require_group(group_id)
        target = Location(group_id, slot)
        if store.location_of(person_id) == target:
            return

        store._detach(person_id)
        if slot.is_leadership:
            occupant = group.occupant(slot)
            if occupant is not None:
                store._detach(occupant)
                store._attach(occupant, None)
                logger.debug("displaced: person=%s group=%s slot=%s", occupant, group_id, slot.value)
        store._attach(person_id, target)

        if slot is Role.LEADER and not group.name_is_explicit:
            group.name = derive_group_name(person.display_name)
        logger.debug("placed: person=%s group=%s slot=%s", person_id, group_id, slot.value)
        self._verify()

    def remove(self, person_id: int) -> None:
        """Send a person back to the unassigned bucket; the group keeps an empty slot."""
        store = self.store
        store._require_person(person_id)
        if store.location_of(person_id) is None:
            return
        previous = store._detach(person_id)
        store._attach(person_id, None)
        logger.debug("removed: person=%s from=%s", person_id, previous)
        self._verify()

    def create_group(self, name: Optional[str] = None, *, label: Optional[str] = None) -> GroupId:
        """Add an empty provisional group.

        ``name`` is operator-chosen and never overwritten; ``label`` is a
        placeholder that the next leader placement replaces.
        """
        store = self.store
        group_id = store.minter.mint()
        explicit = (name or "").strip()
        store._add_group(Group(
            group_id=group_id,
            name=explicit or (label or "").strip(),
            period_year=store.period_year,
            name_is_explicit=bool(explicit),
        ))
        logger.debug("group_created: id=%s name=%r", group_id, store.group(group_id).name)
        self._verify()
        return group_id

    def delete_group(self, group_id: GroupId) -> List[int]:
        """Sweep everyone in the group to the unassigned bucket, then drop the group.

        Returns the swept person ids (leader, co-leader, members). Persistent
        groups are queued for deletion on the server at the next save.
        """
        store = self.store
        group = store._require_group(group_id)
        swept = group.people()
        for person_id in swept:
            store._detach(person_id)
            store._attach(person_id, None)
        store._drop_group(group_id)
        logger.debug("group_deleted: id=%s swept=%d", group_id, len(swept))
        self._verify()
        return swept

    def rename_group(self, group_id: GroupId, name: Optional[str]) -> None:
        """Set an operator-chosen name; an empty name reverts to the derived one."""
        store = self.store
        group = store._require_group(group_id)
        label = (name or "").strip()
        if label:
            group.name = label
            group.name_is_explicit = True
        else:
            group.name_is_explicit = False
            if group.leader_id is not None:
                group.name = derive_group_name(store.person(group.leader_id).display_name)
            else:
                group.name = ""
        self._verify()

    def is_silently_deletable(self, group_id: GroupId) -> bool:
        """True for an untouched provisional group, which a UI may drop without confirmation."""
        group = self.store.group(group_id)
        return isinstance(group_id, ProvisionalId) and group.is_empty and not group.name_is_explicit


__all__ = ["PlacementEngine"]
