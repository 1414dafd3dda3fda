"""
Durable Local Store
===================

Offline-first storage for the user's saved crops, backed by diskcache
(SQLite on local disk), so it survives restarts and works without network.

Keys in the cache directory:
- offline_saved_crops : list of crop records
- sync_pending        : ordered pending operation log
- last_sync           : unix timestamp of the last successful sync

Every local mutation writes the crop set and appends to the pending log inside
one diskcache transaction: both commit or neither does.
"""

import time
from threading import Lock, RLock
from typing import Callable, List, Optional

import diskcache

from cropsync.config import LOCAL_STORE_DIR
from cropsync.models import AddResult, Crop, OperationType, PendingOperation
from cropsync.sync.merge import replay_operations
from cropsync.utils.logger import logger


OFFLINE_CROPS_KEY = "offline_saved_crops"
SYNC_PENDING_KEY = "sync_pending"
LAST_SYNC_KEY = "last_sync"


class PendingOperationLog:
    """
    Append-only journal of local mutations awaiting replay on the remote store.

    Shares the store's cache and lock. Entries are removed only by
    acknowledge() after a confirmed remote write, or by clear(). Acknowledgement
    matches entries by id, so operations appended after a snapshot are never
    dropped by it.
    """

    def __init__(self, cache: diskcache.Cache, lock: RLock):
        self._cache = cache
        self._lock = lock

    def _read(self) -> List[dict]:
        return list(self._cache.get(SYNC_PENDING_KEY, default=[]))

    def _append_unlocked(self, op: PendingOperation):
        """Caller must hold the lock and an open transaction."""
        pending = self._read()
        pending.append(op.to_dict())
        self._cache.set(SYNC_PENDING_KEY, pending)
        logger.info(f"Pending Log: added {op.type.value} ({len(pending)} pending)")

    def append(self, op: PendingOperation):
        with self._lock, self._cache.transact():
            self._append_unlocked(op)

    def drain(self) -> List[PendingOperation]:
        """Ordered snapshot of all pending operations, oldest first."""
        with self._lock:
            return [PendingOperation.from_dict(item) for item in self._read()]

    def acknowledge(self, operations: List[PendingOperation]):
        """Drop the given operations after they reached the remote store."""
        with self._lock, self._cache.transact():
            self._acknowledge_unlocked(operations)

    def _acknowledge_unlocked(self, operations: List[PendingOperation]) -> List[PendingOperation]:
        synced = {op.op_id for op in operations}
        remaining = [item for item in self._read() if item.get("id") not in synced]
        self._cache.set(SYNC_PENDING_KEY, remaining)
        return [PendingOperation.from_dict(item) for item in remaining]

    def clear(self):
        with self._lock:
            self._cache.set(SYNC_PENDING_KEY, [])
        logger.info("Pending Log: cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._read())


class DurableLocalStore:
    """
    Saved crop set persisted on local disk.

    Reads and writes never touch the network. Mutations are serialized per
    process by an RLock and made atomic with their pending-log entry by a
    diskcache transaction.
    """

    def __init__(self, directory: str = LOCAL_STORE_DIR, clock: Callable[[], float] = time.time):
        self._cache = diskcache.Cache(directory)
        self._lock = RLock()
        # Held for a whole reconciliation run by every reconciler using this store
        self.sync_lock = Lock()
        self._clock = clock
        self.pending_log = PendingOperationLog(self._cache, self._lock)

    def _read_crops(self) -> List[Crop]:
        return [Crop.from_dict(item) for item in self._cache.get(OFFLINE_CROPS_KEY, default=[])]

    def _write_crops(self, crops: List[Crop]):
        self._cache.set(OFFLINE_CROPS_KEY, [crop.to_dict() for crop in crops])

    def read_all(self) -> List[Crop]:
        with self._lock:
            crops = self._read_crops()
        logger.info(f"Local Store: retrieved {len(crops)} saved crops")
        return crops

    def add(self, crop: Crop) -> AddResult:
        """
        Save a crop.

        Returns:
            AddResult.DUPLICATE (nothing written) if a crop with the same id or
            name is already saved, else AddResult.ADDED
        """
        with self._lock, self._cache.transact():
            crops = self._read_crops()
            if any(existing.matches(crop.identity_key) or existing.matches(crop.name) for existing in crops):
                logger.info(f"Local Store: crop already saved: {crop.name}")
                return AddResult.DUPLICATE

            crops.append(crop)
            self._write_crops(crops)
            self.pending_log._append_unlocked(
                PendingOperation(OperationType.ADD, crop=crop, timestamp=self._clock())
            )

        logger.info(f"Local Store: crop added: {crop.name}")
        return AddResult.ADDED

    def delete(self, crop_id: str) -> bool:
        """Remove a crop by id or name. Returns True if a saved crop was removed."""
        with self._lock, self._cache.transact():
            crops = self._read_crops()
            remaining = [crop for crop in crops if not crop.matches(crop_id)]
            self._write_crops(remaining)
            self.pending_log._append_unlocked(
                PendingOperation(OperationType.DELETE, crop_id=crop_id, timestamp=self._clock())
            )

        removed = len(remaining) < len(crops)
        logger.info(f"Local Store: crop deleted: {crop_id} (removed={removed})")
        return removed

    def clear(self):
        """Remove every saved crop."""
        with self._lock, self._cache.transact():
            self._write_crops([])
            self.pending_log._append_unlocked(
                PendingOperation(OperationType.CLEAR, timestamp=self._clock())
            )
        logger.info("Local Store: all saved crops cleared")

    def replace_all(self, crops: List[Crop]):
        """Overwrite the saved set without journaling (used by reconciliation)."""
        with self._lock:
            self._write_crops(crops)

    def commit_sync(self, crops: List[Crop], synced: List[PendingOperation]) -> List[Crop]:
        """
        Record a successful sync in one transaction.

        Drops the `synced` pending operations (those replayed on the remote
        store), re-applies any operations appended while the sync ran on
        top of the reconciled set, writes the result and stamps the sync time.

        Returns:
            The saved crop set after the commit
        """
        with self._lock, self._cache.transact():
            remaining = self.pending_log._acknowledge_unlocked(synced)
            final = replay_operations(crops, remaining)
            self._write_crops(final)
            self._cache.set(LAST_SYNC_KEY, self._clock())

        logger.info(f"Local Store: sync committed, {len(final)} crops, {len(remaining)} still pending")
        return final

    def get_last_sync_time(self) -> Optional[float]:
        return self._cache.get(LAST_SYNC_KEY, default=None)

    def set_last_sync_time(self, timestamp: float = None):
        self._cache.set(LAST_SYNC_KEY, self._clock() if timestamp is None else timestamp)

    def close(self):
        self._cache.close()
