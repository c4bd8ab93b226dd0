from datetime import datetime
from typing import List
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .people import Person


def _check_distinct_leadership(leader_id, co_leader_id):
    if leader_id is not None and leader_id == co_leader_id:
        raise ValueError("leader_id and co_leader_id must differ")


class CellBase(BaseModel):
    name: str = ""
    year: int = Field(ge=1900, le=9999)


class CellCreate(CellBase):
    leader_id: int | None = None
    co_leader_id: int | None = None

    @model_validator(mode="after")
    def _distinct_leadership(self):
        _check_distinct_leadership(self.leader_id, self.co_leader_id)
        return self


class CellUpdate(BaseModel):
    name: str | None = None
    year: int | None = Field(default=None, ge=1900, le=9999)


class CellMembersSync(BaseModel):
    leader_id: int | None = None
    co_leader_id: int | None = None
    member_ids: List[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def _distinct_leadership(self):
        _check_distinct_leadership(self.leader_id, self.co_leader_id)
        return self

    def assignments(self) -> list[tuple[int, str]]:
        """(person_id, role) pairs, leadership first; members repeating a leader are dropped."""
        pairs: list[tuple[int, str]] = []
        if self.leader_id is not None:
            pairs.append((self.leader_id, "leader"))
        if self.co_leader_id is not None:
            pairs.append((self.co_leader_id, "co_leader"))
        seen = {pid for pid, _ in pairs}
        for pid in self.member_ids:
            if pid in seen:
                continue
            seen.add(pid)
            pairs.append((pid, "member"))
        return pairs


class CellMemberUpdate(CellMembersSync):
    cell_id: int


class CellMemberBatchUpdate(BaseModel):
    cell_updates: List[CellMemberUpdate] = Field(default_factory=list)


class Cell(CellBase):
    id: int
    active: bool
    leader: Person | None = None
    co_leader: Person | None = None
    members: List[Person] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class CellCreated(BaseModel):
    id: int
