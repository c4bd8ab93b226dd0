import pytest
from sqlalchemy.orm import Session

from cellboard.db import models


@pytest.fixture
def roster(make_person):
    """Eight eligible people plus one who has moved away, as {name: id}."""
    names = ["Alice", "Ben", "Chloe", "Daniel", "Esther", "Felix", "Grace", "Hannah"]
    people = {name: make_person(name).id for name in names}
    people["Moved"] = make_person("Moved", member_status="MOVED").id
    return people


@pytest.fixture
def membership_rows(db_session: Session):
    """Return {cell_id: [(person_id, role), ...]} for a year, read straight from the table."""

    def _rows(year):
        db_session.expire_all()
        rows = (
            db_session.query(models.CellMembership)
            .filter(models.CellMembership.year == year)
            .order_by(models.CellMembership.cell_id, models.CellMembership.position)
            .all()
        )
        result = {}
        for row in rows:
            result.setdefault(row.cell_id, []).append((row.person_id, row.role))
        return result

    return _rows
