"""
Sync Reconciler
===============

Converges the durable local crop set with the remote store.

Algorithm (one run, serialized per local store across all reconcilers):
1. Offline -> no-op (the normal state for an offline-first client)
2. Fetch the remote set
3. merge_strategy(local, remote)   - local overlay wins by default
4. Replay the pending log on top, in append order
5. Write the result to the remote store
6. Only after the remote write succeeds: write it locally, drop the replayed
   operations by id and stamp the last-sync time (one local transaction)

A failed remote read or write is not raised; it is reported in the SyncResult
and the pending log is kept for the next attempt.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from cropsync.config import SYNC_STALENESS_SECONDS
from cropsync.models import Crop
from cropsync.storage.local_store import DurableLocalStore
from cropsync.storage.remote_store import RemoteCropStore, RemoteStoreError
from cropsync.sync.merge import MergeStrategy, local_overlay_wins, replay_operations
from cropsync.utils.connectivity import is_online as default_is_online
from cropsync.utils.logger import logger


class SyncStatus(Enum):
    SYNCED = "synced"
    OFFLINE = "offline"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SyncResult:
    status: SyncStatus
    crops: List[Crop] = field(default_factory=list)
    operations_replayed: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "savedCrops": [crop.to_dict() for crop in self.crops],
            "operationsReplayed": self.operations_replayed,
            "error": self.error,
        }


class SyncReconciler:
    """
    Drives reconciliation between DurableLocalStore and RemoteCropStore.

    Triggers: app resume, explicit "sync now", or staleness (no successful
    sync within staleness_seconds) combined with connectivity.
    """

    def __init__(
        self,
        local_store: DurableLocalStore,
        remote_store: RemoteCropStore,
        user_id: str,
        is_online: Callable[[], bool] = default_is_online,
        merge_strategy: MergeStrategy = local_overlay_wins,
        staleness_seconds: float = SYNC_STALENESS_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.local_store = local_store
        self.remote_store = remote_store
        self.user_id = user_id
        self.is_online = is_online
        self.merge_strategy = merge_strategy
        self.staleness_seconds = staleness_seconds
        self._clock = clock

    def is_sync_needed(self) -> bool:
        """True if never synced or the last sync is older than the staleness threshold."""
        last_sync = self.local_store.get_last_sync_time()
        if last_sync is None:
            return True
        return self._clock() - last_sync > self.staleness_seconds

    def maybe_sync(self) -> SyncResult:
        """Sync only when stale (connectivity is still checked by sync())."""
        if not self.is_sync_needed():
            logger.info("Sync Reconciler: last sync is fresh, skipping")
            return SyncResult(SyncStatus.SKIPPED, crops=self.local_store.read_all())
        return self.sync()

    def sync_now(self) -> SyncResult:
        return self.sync()

    def on_app_resume(self) -> SyncResult:
        return self.sync()

    def sync(self) -> SyncResult:
        """Run one reconciliation. Never raises for remote failures."""
        with self.local_store.sync_lock:
            if not self.is_online():
                logger.info("Sync Reconciler: offline, keeping local changes pending")
                return SyncResult(SyncStatus.OFFLINE, crops=self.local_store.read_all())

            try:
                remote = self.remote_store.get_saved_crops(self.user_id)
            except RemoteStoreError as e:
                logger.warning(f"Sync Reconciler: could not fetch remote crops: {e}")
                return SyncResult(SyncStatus.FAILED, crops=self.local_store.read_all(), error=str(e))

            local = self.local_store.read_all()
            operations = self.local_store.pending_log.drain()

            merged = self.merge_strategy(local, remote)
            final = replay_operations(merged, operations)
            logger.info(
                f"Sync Reconciler: merged {len(local)} local + {len(remote)} remote crops, "
                f"replayed {len(operations)} operations -> {len(final)} crops"
            )

            try:
                self.remote_store.set_saved_crops(self.user_id, final)
            except RemoteStoreError as e:
                logger.warning(f"Sync Reconciler: remote write failed, {len(operations)} operations kept: {e}")
                return SyncResult(SyncStatus.FAILED, crops=local, error=str(e))

            committed = self.local_store.commit_sync(final, operations)
            logger.info(f"Sync Reconciler: sync complete for {self.user_id}")
            return SyncResult(SyncStatus.SYNCED, crops=committed, operations_replayed=len(operations))
