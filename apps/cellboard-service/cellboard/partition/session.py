"""
Editing session: one operator's working copy of a period.

Owns the current PartitionStore, the PlacementEngine bound to it and the
SynchronizationCoordinator that saves it. After a successful save the
session swaps in the reloaded store; after a failed save it keeps the old
store so the operator can retry.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .bulk_text import DEFAULT_DELIMITER, BulkImportResult, import_bulk_text
from .gateway import CellGateway
from .placement import PlacementEngine
from .store import PartitionStore
from .sync import SyncReport, SynchronizationCoordinator

logger = logging.getLogger(__name__)


def load_partition(gateway: CellGateway, period_year: int) -> PartitionStore:
    """Fetch the identity pool and persisted groups of a period into a fresh store."""
    people = gateway.load_identity_pool(period_year)
    snapshots = gateway.load_groups(period_year)
    store = PartitionStore.hydrate(period_year, people, snapshots)
    logger.info("partition_loaded: year=%s %s", period_year, store.stats())
    return store


class EditingSession:
    def __init__(
        self,
        gateway: CellGateway,
        period_year: int,
        *,
        max_concurrency: int = 4,
        check_invariants: bool = True,
    ):
        self.gateway = gateway
        self.check_invariants = check_invariants
        self.coordinator = SynchronizationCoordinator(gateway, max_concurrency=max_concurrency)
        self.last_report: Optional[SyncReport] = None
        self._bind(load_partition(gateway, period_year))

    def _bind(self, store: PartitionStore) -> None:
        self.store = store
        self.engine = PlacementEngine(store, check_invariants=self.check_invariants)

    @property
    def period_year(self) -> int:
        return self.store.period_year

    def switch_period(self, period_year: int) -> PartitionStore:
        """Discard unsaved edits and load another period."""
        self._bind(load_partition(self.gateway, period_year))
        return self.store

    def reload(self) -> PartitionStore:
        return self.switch_period(self.period_year)

    def import_text(self, text: str, *, delimiter: str = DEFAULT_DELIMITER) -> BulkImportResult:
        return import_bulk_text(self.engine, text, delimiter=delimiter)

    async def save(self) -> SyncReport:
        """Synchronize the working copy; on success the reloaded store replaces it."""
        report = await self.coordinator.synchronize(self.store)
        self._bind(report.store)
        self.last_report = report
        return report

    def save_blocking(self) -> SyncReport:
        return asyncio.run(self.save())


__all__ = ["load_partition", "EditingSession"]
