import os

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("PYTEST_RUNNING", "1")

import cellboard.db.database as db_module  # noqa: E402
from cellboard.db import models  # noqa: E402
from cellboard.api.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def _clean_tables():
    """Every test starts and ends with empty tables in the shared in-memory database."""
    db_module.ensure_sqlite_schema()
    yield
    with db_module.engine.begin() as conn:
        for table in reversed(models.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db_session():
    session = db_module.SessionLocal()
    try:
        yield session
    finally:
        session.close()


# Backwards compatibility: some tests expect a 'db' fixture name
@pytest.fixture
def db(db_session):
    return db_session


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_person(db_session):
    """Insert a person row and return it."""

    def _make(display_name, member_status="ACTIVE", phone=None, birth_date=None):
        person = models.Person(
            display_name=display_name,
            member_status=member_status,
            phone=phone,
            birth_date=birth_date,
        )
        db_session.add(person)
        db_session.commit()
        db_session.refresh(person)
        return person

    return _make


@pytest.fixture
def make_cell(db_session):
    """Insert a cell with memberships given as (person_id, role) pairs and return its id."""

    def _make(name, year, memberships=(), active=False):
        cell = models.Cell(name=name, year=year, active=active)
        db_session.add(cell)
        db_session.flush()
        for position, (person_id, role) in enumerate(memberships):
            db_session.add(models.CellMembership(
                cell_id=cell.id,
                person_id=person_id,
                year=year,
                role=role,
                position=position,
            ))
        db_session.commit()
        return cell.id

    return _make
