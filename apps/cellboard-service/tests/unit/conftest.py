import threading

import pytest

from cellboard.partition import (
    CellGateway,
    GatewayError,
    GroupSnapshot,
    PartitionStore,
    Person,
    PlacementEngine,
)


class FakeCellGateway(CellGateway):
    """In-memory server double that records every call in order."""

    def __init__(self, people, cells=(), *, first_id=100):
        self.people = list(people)
        self.cells = {}
        for cell in cells:
            self.cells[cell["id"]] = {
                "name": cell.get("name", ""),
                "year": cell["year"],
                "leader_id": cell.get("leader_id"),
                "co_leader_id": cell.get("co_leader_id"),
                "member_ids": list(cell.get("member_ids", ())),
            }
        self.next_id = first_id
        self.calls = []
        self.create_count = 0
        self.fail_create_at = None
        self.fail_update_ids = set()
        self.fail_batch = False
        self.fail_delete_ids = set()
        self.load_failures = 0
        self._lock = threading.Lock()

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)

    def call_names(self):
        return [c[0] for c in self.calls]

    def load_identity_pool(self, period_year):
        self._record("load_identity_pool", period_year)
        if self.load_failures:
            self.load_failures -= 1
            raise GatewayError("reload unavailable", status_code=503)
        return list(self.people)

    def load_groups(self, period_year):
        self._record("load_groups", period_year)
        return [
            GroupSnapshot(
                group_id=cid,
                name=c["name"],
                period_year=c["year"],
                leader_id=c["leader_id"],
                co_leader_id=c["co_leader_id"],
                member_ids=tuple(c["member_ids"]),
            )
            for cid, c in sorted(self.cells.items())
            if c["year"] == period_year
        ]

    def create_group(self, name, period_year, leader_id=None, co_leader_id=None):
        self._record("create_group", name, period_year, leader_id, co_leader_id)
        with self._lock:
            self.create_count += 1
            if self.fail_create_at == self.create_count:
                raise GatewayError("create rejected", status_code=500)
            cell_id = self.next_id
            self.next_id += 1
            self.cells[cell_id] = {
                "name": name,
                "year": period_year,
                "leader_id": leader_id,
                "co_leader_id": co_leader_id,
                "member_ids": [],
            }
        return cell_id

    def update_group_metadata(self, group_id, *, name=None, period_year=None):
        self._record("update_group_metadata", group_id, name, period_year)
        if group_id in self.fail_update_ids:
            raise GatewayError("update rejected", status_code=500)
        cell = self.cells[group_id]
        if name is not None:
            cell["name"] = name
        if period_year is not None:
            cell["year"] = period_year

    def submit_membership_batch(self, assignments):
        self._record("submit_membership_batch", tuple(assignments))
        if self.fail_batch:
            raise GatewayError("batch rejected", status_code=500)
        for a in assignments:
            year = self.cells[a.group_id]["year"]
            listed = {pid for pid in (a.leader_id, a.co_leader_id, *a.member_ids) if pid is not None}
            for cid, cell in self.cells.items():
                if cid == a.group_id or cell["year"] != year:
                    continue
                if cell["leader_id"] in listed:
                    cell["leader_id"] = None
                if cell["co_leader_id"] in listed:
                    cell["co_leader_id"] = None
                cell["member_ids"] = [pid for pid in cell["member_ids"] if pid not in listed]
            self.cells[a.group_id].update(
                leader_id=a.leader_id,
                co_leader_id=a.co_leader_id,
                member_ids=list(a.member_ids),
            )

    def delete_group(self, group_id):
        self._record("delete_group", group_id)
        if group_id in self.fail_delete_ids:
            raise GatewayError("delete rejected", status_code=500)
        if group_id not in self.cells:
            raise GatewayError("cell not found", status_code=404)
        del self.cells[group_id]


NAMES = ["Alice", "Ben", "Chloe", "Daniel", "Esther", "Felix", "Grace", "Hannah"]


@pytest.fixture
def people():
    return [Person(person_id=i, display_name=name) for i, name in enumerate(NAMES, start=1)]


@pytest.fixture
def store(people):
    return PartitionStore(2025, people)


@pytest.fixture
def engine(store):
    return PlacementEngine(store)


@pytest.fixture
def fake_gateway_factory(people):
    def _make(cells=(), **kwargs):
        return FakeCellGateway(people, cells, **kwargs)

    return _make
