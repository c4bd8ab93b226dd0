import pytest
from pydantic import ValidationError

from cellboard.db import schemas


def test_members_sync_orders_leadership_first_and_drops_repeats():
    sync = schemas.CellMembersSync(leader_id=1, co_leader_id=2, member_ids=[3, 1, 4, 3])
    assert sync.assignments() == [(1, "leader"), (2, "co_leader"), (3, "member"), (4, "member")]


def test_leader_and_co_leader_must_differ():
    with pytest.raises(ValidationError):
        schemas.CellMembersSync(leader_id=5, co_leader_id=5)
    with pytest.raises(ValidationError):
        schemas.CellCreate(name="x", year=2025, leader_id=5, co_leader_id=5)


def test_cell_year_bounds():
    with pytest.raises(ValidationError):
        schemas.CellCreate(name="x", year=12)
    assert schemas.CellUpdate().model_dump(exclude_unset=True) == {}


def test_batch_update_parses_payload():
    batch = schemas.CellMemberBatchUpdate.model_validate(
        {"cell_updates": [{"cell_id": 3, "leader_id": None, "member_ids": [1, 2]}]}
    )
    update = batch.cell_updates[0]
    assert update.cell_id == 3
    assert update.assignments() == [(1, "member"), (2, "member")]
