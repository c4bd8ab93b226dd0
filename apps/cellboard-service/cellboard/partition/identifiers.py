"""
Group identifiers.

A group is either provisional (minted locally, not yet known to the server) or
persistent (server-assigned). Keeping the two as distinct types lets callers
branch on ``isinstance`` instead of a sign-of-integer convention.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Iterator, Union


@dataclass(frozen=True, order=True)
class ProvisionalId:
    local: int

    def __str__(self) -> str:
        return f"provisional:{self.local}"


@dataclass(frozen=True, order=True)
class PersistentId:
    value: int

    def __post_init__(self) -> None:
        if self.value <= 0:
            raise ValueError(f"Persistent group ids are positive, got {self.value}")

    def __str__(self) -> str:
        return str(self.value)


GroupId = Union[ProvisionalId, PersistentId]


class ProvisionalIdMinter:
    """Hands out session-unique provisional ids."""

    def __init__(self, start: int = 1) -> None:
        self._counter: Iterator[int] = itertools.count(start)

    def mint(self) -> ProvisionalId:
        return ProvisionalId(next(self._counter))


def is_provisional(group_id: GroupId) -> bool:
    return isinstance(group_id, ProvisionalId)


__all__ = ["ProvisionalId", "PersistentId", "GroupId", "ProvisionalIdMinter", "is_provisional"]
