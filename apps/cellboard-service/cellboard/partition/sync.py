"""
Synchronization coordinator.

Flushes a PartitionStore to the server in phases:

0. delete persistent groups removed locally (sequential)
1. create provisional groups one at a time, mapping provisional -> server ids
2. update name/period of pre-existing groups concurrently
3. submit one membership batch covering every group (replace semantics)

then reloads the period from the server and returns a fresh store. On failure
the store passed in is never modified. Groups created before a failure are
remembered, so a retry with the same store does not create them twice.
"""
from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from .errors import GatewayError, SynchronizationError, SyncOutcome, SyncPhase
from .gateway import CellGateway
from .identifiers import GroupId, PersistentId, ProvisionalId
from .models import Group, MembershipAssignment
from .store import PartitionStore

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    store: PartitionStore
    created: Dict[ProvisionalId, PersistentId] = field(default_factory=dict)
    updated: List[PersistentId] = field(default_factory=list)
    deleted: List[PersistentId] = field(default_factory=list)
    batch_size: int = 0


class SynchronizationCoordinator:
    def __init__(self, gateway: CellGateway, *, max_concurrency: int = 4):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.gateway = gateway
        self.max_concurrency = max_concurrency
        self._ledger_owner: Optional[PartitionStore] = None
        self._materialized: Dict[ProvisionalId, PersistentId] = {}
        self._deleted: Set[PersistentId] = set()

    @property
    def materialized(self) -> Dict[ProvisionalId, PersistentId]:
        return dict(self._materialized)

    def _reset_ledger(self, store: Optional[PartitionStore]) -> None:
        self._ledger_owner = store
        self._materialized = {}
        self._deleted = set()

    def _real_id(self, group_id: GroupId) -> int:
        if isinstance(group_id, PersistentId):
            return group_id.value
        return self._materialized[group_id].value

    async def synchronize(self, store: PartitionStore) -> SyncReport:
        if self._ledger_owner is not store:
            self._reset_ledger(store)

        loop = asyncio.get_running_loop()
        created_now: Dict[ProvisionalId, PersistentId] = {}
        updated: List[PersistentId] = []
        progressed = bool(self._materialized or self._deleted)

        with ThreadPoolExecutor(max_workers=self.max_concurrency) as executor:

            async def call(fn: Callable[..., Any], *args, **kwargs) -> Any:
                return await loop.run_in_executor(executor, functools.partial(fn, *args, **kwargs))

            def fail(phase: SyncPhase, exc: BaseException, message: str) -> SynchronizationError:
                outcome = SyncOutcome.PARTIALLY_SAVED if progressed else SyncOutcome.NOTHING_SAVED
                logger.error("sync_failed: phase=%s outcome=%s error=%s", phase.value, outcome.value, exc)
                return SynchronizationError(
                    message, phase=phase, outcome=outcome, materialized=self._materialized, cause=exc
                )

            # Phase 0: queued deletions, plus groups created by an earlier
            # attempt and deleted locally since
            orphaned = {
                provisional: persistent
                for provisional, persistent in self._materialized.items()
                if not store.has_group(provisional)
            }
            targets = list(store.pending_deletions()) + list(orphaned.values())
            for group_id in targets:
                if group_id in self._deleted:
                    continue
                try:
                    await call(self.gateway.delete_group, group_id.value)
                except GatewayError as exc:
                    if not exc.not_found:
                        raise fail(SyncPhase.DELETE, exc, f"Deleting group {group_id} failed: {exc}") from exc
                    logger.info("sync_delete_already_gone: group=%s", group_id)
                except Exception as exc:
                    raise fail(SyncPhase.DELETE, exc, f"Deleting group {group_id} failed: {exc}") from exc
                self._deleted.add(group_id)
                progressed = True
            for provisional in orphaned:
                del self._materialized[provisional]

            # Phase 1: materialize provisional groups, strictly one after another
            for group in store.provisional_groups():
                if group.group_id in self._materialized:
                    continue
                try:
                    real = await call(
                        self.gateway.create_group,
                        group.name,
                        group.period_year,
                        group.leader_id,
                        group.co_leader_id,
                    )
                except Exception as exc:
                    raise fail(
                        SyncPhase.MATERIALIZE, exc,
                        f"Creating group {group.name!r} failed after {len(created_now)} of "
                        f"{len(store.provisional_groups())} new groups were created: {exc}",
                    ) from exc
                persistent = PersistentId(int(real))
                self._materialized[group.group_id] = persistent
                created_now[group.group_id] = persistent
                progressed = True
                logger.info("sync_group_created: provisional=%s id=%s", group.group_id, persistent)

            # Phase 2: metadata of groups that already existed on the server
            existing = [
                g for g in store.groups()
                if isinstance(g.group_id, PersistentId) or (g.group_id in self._materialized and g.group_id not in created_now)
            ]
            if existing:
                results = await asyncio.gather(
                    *[
                        call(self.gateway.update_group_metadata, self._real_id(g.group_id), name=g.name, period_year=g.period_year)
                        for g in existing
                    ],
                    return_exceptions=True,
                )
                failures = []
                for group, result in zip(existing, results):
                    if isinstance(result, BaseException):
                        failures.append((group, result))
                    else:
                        updated.append(PersistentId(self._real_id(group.group_id)))
                        progressed = True
                if failures:
                    group, exc = failures[0]
                    raise fail(
                        SyncPhase.UPDATE_METADATA, exc,
                        f"Updating {len(failures)} of {len(existing)} groups failed (first: {group.name!r}): {exc}",
                    ) from exc
                logger.info("sync_metadata_updated: groups=%d", len(updated))

            # Phase 3: one consolidated membership batch
            assignments = [self._assignment(g) for g in store.groups()]
            try:
                await call(self.gateway.submit_membership_batch, assignments)
            except Exception as exc:
                raise fail(
                    SyncPhase.MEMBERSHIP_BATCH, exc,
                    "Saving memberships failed; group creations and updates may already be applied on the server: "
                    f"{exc}",
                ) from exc
            logger.info("sync_membership_batch_submitted: groups=%d", len(assignments))

            created_total = dict(self._materialized)
            deleted_total = sorted(self._deleted)

            # Reload: the server copy is the new baseline
            try:
                people = await call(self.gateway.load_identity_pool, store.period_year)
                snapshots = await call(self.gateway.load_groups, store.period_year)
            except Exception as exc:
                logger.error("sync_reload_failed: error=%s", exc)
                raise SynchronizationError(
                    f"Changes were saved but reloading period {store.period_year} failed: {exc}",
                    phase=SyncPhase.RELOAD,
                    outcome=SyncOutcome.SAVED_RELOAD_FAILED,
                    materialized=created_total,
                    cause=exc,
                ) from exc

        fresh = PartitionStore.hydrate(store.period_year, people, snapshots)
        self._reset_ledger(None)
        return SyncReport(
            store=fresh,
            created=created_total,
            updated=updated,
            deleted=deleted_total,
            batch_size=len(assignments),
        )

    def _assignment(self, group: Group) -> MembershipAssignment:
        return MembershipAssignment(
            group_id=self._real_id(group.group_id),
            leader_id=group.leader_id,
            co_leader_id=group.co_leader_id,
            member_ids=tuple(group.member_ids),
        )


__all__ = ["SyncReport", "SynchronizationCoordinator"]
