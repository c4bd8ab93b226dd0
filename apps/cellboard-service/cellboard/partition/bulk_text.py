"""
Bulk text import of whole cells.

Accepts text pasted from a spreadsheet: each column is one prospective cell,
row 0 names its leader and the rows below name ordinary members. Names are
matched exactly against the unassigned bucket only, and each match consumes
the person, so a name that appears twice binds to its first occurrence
(column-major, then row-major).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from .identifiers import GroupId
from .models import Role
from .placement import PlacementEngine

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = "\t"


@dataclass(frozen=True)
class ResolutionMiss:
    row: int
    column: int
    text: str
    as_leader: bool


@dataclass
class BulkImportResult:
    group_ids: List[GroupId] = field(default_factory=list)
    matched_person_ids: List[int] = field(default_factory=list)
    misses: List[ResolutionMiss] = field(default_factory=list)

    @property
    def resolved_count(self) -> int:
        return len(self.matched_person_ids)


def split_grid(text: str, delimiter: str = DEFAULT_DELIMITER) -> List[List[str]]:
    """Split text into a rectangular grid of stripped cells, padding short rows."""
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    while lines and not lines[-1].strip():
        lines.pop()
    rows = [[cell.strip() for cell in line.split(delimiter)] for line in lines]
    width = max((len(r) for r in rows), default=0)
    return [r + [""] * (width - len(r)) for r in rows]


def import_bulk_text(engine: PlacementEngine, text: str, *, delimiter: str = DEFAULT_DELIMITER) -> BulkImportResult:
    store = engine.store
    grid = split_grid(text, delimiter)
    result = BulkImportResult()
    if not grid:
        return result
    width = len(grid[0])

    for column in range(width):
        header = grid[0][column]
        if not header:
            continue

        leader = store.find_unassigned_by_name(header)
        if leader is not None:
            group_id = engine.create_group()
            engine.place(leader.person_id, group_id, Role.LEADER)
            result.matched_person_ids.append(leader.person_id)
        else:
            group_id = engine.create_group(label=header)
            result.misses.append(ResolutionMiss(row=0, column=column, text=header, as_leader=True))
            logger.warning("bulk_import_leader_unresolved: column=%d name=%r", column, header)
        result.group_ids.append(group_id)

        for row in range(1, len(grid)):
            cell = grid[row][column]
            if not cell:
                continue
            member = store.find_unassigned_by_name(cell)
            if member is None:
                result.misses.append(ResolutionMiss(row=row, column=column, text=cell, as_leader=False))
                logger.warning("bulk_import_member_unresolved: row=%d column=%d name=%r", row, column, cell)
                continue
            engine.place(member.person_id, group_id, Role.MEMBER)
            result.matched_person_ids.append(member.person_id)

    logger.info(
        "bulk_import_done: groups=%d resolved=%d misses=%d",
        len(result.group_ids), result.resolved_count, len(result.misses),
    )
    return result


__all__ = ["ResolutionMiss", "BulkImportResult", "split_grid", "import_bulk_text", "DEFAULT_DELIMITER"]
