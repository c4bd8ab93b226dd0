"""
Unit tests for the synchronization coordinator against an in-memory gateway.
"""
import threading
import time

import pytest
pytest.importorskip("pytest_asyncio")

from cellboard.partition import (
    PersistentId,
    PlacementEngine,
    ProvisionalId,
    Role,
    SynchronizationCoordinator,
    SynchronizationError,
    SyncOutcome,
    SyncPhase,
    load_partition,
)


EXISTING = {"id": 10, "name": "Alice's cell", "year": 2025, "leader_id": 1, "member_ids": [2]}


def _view(store):
    return (
        [(g.group_id, g.name, g.leader_id, g.co_leader_id, list(g.member_ids)) for g in store.groups()],
        store.unassigned_ids(),
    )


@pytest.fixture
def gateway(fake_gateway_factory):
    return fake_gateway_factory([EXISTING])


@pytest.fixture
def edited(gateway):
    """A loaded period with two new groups added and the existing one renamed."""
    store = load_partition(gateway, 2025)
    engine = PlacementEngine(store)
    first = engine.create_group()
    engine.place(3, first, Role.LEADER)
    engine.place(4, first, Role.MEMBER)
    second = engine.create_group("Late night")
    engine.place(5, second, Role.CO_LEADER)
    engine.rename_group(PersistentId(10), "Renamed")
    gateway.calls.clear()
    return store, first, second


@pytest.mark.asyncio
async def test_phases_run_in_order(gateway, edited):
    store, first, second = edited
    coordinator = SynchronizationCoordinator(gateway)

    report = await coordinator.synchronize(store)

    assert gateway.call_names() == [
        "create_group",
        "create_group",
        "update_group_metadata",
        "submit_membership_batch",
        "load_identity_pool",
        "load_groups",
    ]
    creates = [c for c in gateway.calls if c[0] == "create_group"]
    assert creates[0][1:] == ("Chloe's cell", 2025, 3, None)
    assert creates[1][1:] == ("Late night", 2025, None, 5)

    (_, batch), = [c for c in gateway.calls if c[0] == "submit_membership_batch"]
    assert [a.group_id for a in batch] == [10, 100, 101]
    assert report.created == {first: PersistentId(100), second: PersistentId(101)}
    assert report.updated == [PersistentId(10)]
    assert report.batch_size == 3


@pytest.mark.asyncio
async def test_success_returns_reloaded_store(gateway, edited):
    store, first, _ = edited
    before = _view(store)
    report = await SynchronizationCoordinator(gateway).synchronize(store)

    fresh = report.store
    assert fresh is not store
    assert _view(store) == before
    assert all(isinstance(g.group_id, PersistentId) for g in fresh.groups())
    assert fresh.group(PersistentId(10)).name == "Renamed"
    assert fresh.group(PersistentId(100)).leader_id == 3
    assert fresh.group(PersistentId(100)).member_ids == [4]
    assert fresh.group(PersistentId(101)).co_leader_id == 5
    assert fresh.unassigned_ids() == [6, 7, 8]


@pytest.mark.asyncio
async def test_creates_never_overlap(fake_gateway_factory):
    gateway = fake_gateway_factory()
    in_flight = []
    lock = threading.Lock()
    original = gateway.create_group

    def slow_create(*args):
        with lock:
            in_flight.append(1)
            assert len(in_flight) == 1
        time.sleep(0.01)
        with lock:
            in_flight.pop()
        return original(*args)

    gateway.create_group = slow_create
    store = load_partition(gateway, 2025)
    engine = PlacementEngine(store)
    for _ in range(4):
        engine.create_group()

    report = await SynchronizationCoordinator(gateway, max_concurrency=4).synchronize(store)
    assert len(report.created) == 4


@pytest.mark.asyncio
async def test_create_failure_leaves_store_untouched_and_retry_does_not_duplicate(gateway, edited):
    store, first, second = edited
    before = _view(store)
    gateway.fail_create_at = 2
    coordinator = SynchronizationCoordinator(gateway)

    with pytest.raises(SynchronizationError) as info:
        await coordinator.synchronize(store)

    err = info.value
    assert err.phase is SyncPhase.MATERIALIZE
    assert err.outcome is SyncOutcome.PARTIALLY_SAVED
    assert err.retry_recommended
    assert err.materialized == {first: PersistentId(100)}
    assert "submit_membership_batch" not in gateway.call_names()
    assert _view(store) == before
    assert isinstance(store.group(first).group_id, ProvisionalId)

    gateway.fail_create_at = None
    gateway.calls.clear()
    report = await coordinator.synchronize(store)

    assert [c[1] for c in gateway.calls if c[0] == "create_group"] == ["Late night"]
    assert sorted(cid for cid, c in gateway.cells.items() if c["year"] == 2025) == [10, 100, 101]
    assert report.created == {first: PersistentId(100), second: PersistentId(101)}
    assert coordinator.materialized == {}


@pytest.mark.asyncio
async def test_group_deleted_after_partial_save_is_removed_from_server(gateway, edited):
    store, first, second = edited
    gateway.fail_create_at = 2
    coordinator = SynchronizationCoordinator(gateway)
    with pytest.raises(SynchronizationError):
        await coordinator.synchronize(store)
    assert 100 in gateway.cells

    PlacementEngine(store).delete_group(first)
    gateway.fail_create_at = None
    gateway.calls.clear()
    report = await coordinator.synchronize(store)

    assert gateway.call_names()[:2] == ["delete_group", "create_group"]
    assert gateway.calls[0] == ("delete_group", 100)
    assert 100 not in gateway.cells
    assert report.deleted == [PersistentId(100)]
    assert report.created == {second: PersistentId(101)}
    assert sorted(g.name for g in report.store.groups()) == ["Late night", "Renamed"]
    assert report.store.is_unassigned(3)
    assert report.store.is_unassigned(4)


@pytest.mark.asyncio
async def test_edits_after_partial_save_reach_already_created_group(gateway, edited):
    store, first, second = edited
    gateway.fail_create_at = 2
    coordinator = SynchronizationCoordinator(gateway)
    with pytest.raises(SynchronizationError):
        await coordinator.synchronize(store)

    engine = PlacementEngine(store)
    engine.rename_group(first, "Thursday")
    engine.place(6, first, Role.LEADER)
    gateway.fail_create_at = None
    gateway.calls.clear()
    report = await coordinator.synchronize(store)

    assert [c[1] for c in gateway.calls if c[0] == "create_group"] == ["Late night"]
    assert ("update_group_metadata", 100, "Thursday", 2025) in gateway.calls
    assert report.updated == [PersistentId(10), PersistentId(100)]
    assert gateway.cells[100]["name"] == "Thursday"
    assert gateway.cells[100]["leader_id"] == 6
    assert gateway.cells[100]["member_ids"] == [4]
    fresh = report.store.group(PersistentId(100))
    assert fresh.name == "Thursday"
    assert fresh.leader_id == 6
    assert report.store.is_unassigned(3)


@pytest.mark.asyncio
async def test_first_create_failure_means_nothing_saved(gateway, edited):
    store, _, _ = edited
    gateway.fail_create_at = 1
    with pytest.raises(SynchronizationError) as info:
        await SynchronizationCoordinator(gateway).synchronize(store)
    assert info.value.nothing_saved
    assert "Nothing was saved" in info.value.operator_message()


@pytest.mark.asyncio
async def test_metadata_failure_stops_before_batch(gateway):
    store = load_partition(gateway, 2025)
    PlacementEngine(store).rename_group(PersistentId(10), "Other")
    gateway.fail_update_ids = {10}
    gateway.calls.clear()

    with pytest.raises(SynchronizationError) as info:
        await SynchronizationCoordinator(gateway).synchronize(store)

    assert info.value.phase is SyncPhase.UPDATE_METADATA
    assert info.value.outcome is SyncOutcome.NOTHING_SAVED
    assert gateway.call_names() == ["update_group_metadata"]


@pytest.mark.asyncio
async def test_batch_failure_reports_partial_save(gateway, edited):
    store, _, _ = edited
    before = _view(store)
    gateway.fail_batch = True

    with pytest.raises(SynchronizationError) as info:
        await SynchronizationCoordinator(gateway).synchronize(store)

    err = info.value
    assert err.phase is SyncPhase.MEMBERSHIP_BATCH
    assert err.outcome is SyncOutcome.PARTIALLY_SAVED
    assert "may already be applied" in str(err)
    assert "load_identity_pool" not in gateway.call_names()
    assert _view(store) == before


@pytest.mark.asyncio
async def test_reload_failure_keeps_ledger(gateway, edited):
    store, first, second = edited
    gateway.load_failures = 1
    coordinator = SynchronizationCoordinator(gateway)

    with pytest.raises(SynchronizationError) as info:
        await coordinator.synchronize(store)

    assert info.value.phase is SyncPhase.RELOAD
    assert info.value.outcome is SyncOutcome.SAVED_RELOAD_FAILED
    assert coordinator.materialized == {first: PersistentId(100), second: PersistentId(101)}

    gateway.calls.clear()
    await coordinator.synchronize(store)
    assert "create_group" not in gateway.call_names()


@pytest.mark.asyncio
async def test_deleted_groups_are_removed_first(gateway):
    store = load_partition(gateway, 2025)
    engine = PlacementEngine(store)
    engine.delete_group(PersistentId(10))
    engine.create_group()
    gateway.calls.clear()

    report = await SynchronizationCoordinator(gateway).synchronize(store)

    assert gateway.call_names()[:2] == ["delete_group", "create_group"]
    assert report.deleted == [PersistentId(10)]
    assert 10 not in gateway.cells
    assert report.store.unassigned_ids()[:2] == [1, 2]


@pytest.mark.asyncio
async def test_delete_of_missing_group_is_tolerated(gateway):
    store = load_partition(gateway, 2025)
    PlacementEngine(store).delete_group(PersistentId(10))
    del gateway.cells[10]

    report = await SynchronizationCoordinator(gateway).synchronize(store)
    assert report.deleted == [PersistentId(10)]


@pytest.mark.asyncio
async def test_delete_failure_aborts(gateway):
    store = load_partition(gateway, 2025)
    PlacementEngine(store).delete_group(PersistentId(10))
    gateway.fail_delete_ids = {10}
    gateway.calls.clear()

    with pytest.raises(SynchronizationError) as info:
        await SynchronizationCoordinator(gateway).synchronize(store)

    assert info.value.phase is SyncPhase.DELETE
    assert info.value.nothing_saved
    assert gateway.call_names() == ["delete_group"]


@pytest.mark.asyncio
async def test_batch_replaces_membership_on_server(gateway):
    store = load_partition(gateway, 2025)
    PlacementEngine(store).remove(2)

    report = await SynchronizationCoordinator(gateway).synchronize(store)

    assert gateway.cells[10]["member_ids"] == []
    assert report.store.is_unassigned(2)


@pytest.mark.asyncio
async def test_ledger_resets_for_a_different_store(gateway, edited):
    store, _, _ = edited
    gateway.fail_create_at = 2
    coordinator = SynchronizationCoordinator(gateway)
    with pytest.raises(SynchronizationError):
        await coordinator.synchronize(store)
    assert coordinator.materialized

    gateway.fail_create_at = None
    other = load_partition(gateway, 2025)
    await coordinator.synchronize(other)
    assert coordinator.materialized == {}


def test_concurrency_must_be_positive(gateway):
    with pytest.raises(ValueError):
        SynchronizationCoordinator(gateway, max_concurrency=0)
