"""
Merge strategies and pending-operation replay for saved crop sets.

A merge strategy is any callable (local, remote) -> merged taking and
returning lists of Crop keyed by identity. Swap strategies on the reconciler
to change conflict policy without touching the sync algorithm.
"""

from typing import Callable, Dict, List

from cropsync.models import Crop, OperationType, PendingOperation


MergeStrategy = Callable[[List[Crop], List[Crop]], List[Crop]]


def _overlay(base: List[Crop], top: List[Crop]) -> List[Crop]:
    merged: Dict[str, Crop] = {crop.identity_key: crop for crop in base}
    for crop in top:
        merged[crop.identity_key] = crop
    return list(merged.values())


def local_overlay_wins(local: List[Crop], remote: List[Crop]) -> List[Crop]:
    """
    Start from the remote set and overlay the local set.

    Local wins on identity collisions since it may hold unsynced edits. A remote
    edit made elsewhere between fetch and write-back can be lost; there is no
    version comparison.
    """
    return _overlay(remote, local)


def remote_overlay_wins(local: List[Crop], remote: List[Crop]) -> List[Crop]:
    """Start from the local set and overlay the remote set."""
    return _overlay(local, remote)


def replay_operations(crops: List[Crop], operations: List[PendingOperation]) -> List[Crop]:
    """
    Apply pending operations in append order.

    ADD inserts or overwrites by identity key, DELETE removes by id or name,
    CLEAR empties the set, so nothing before the last CLEAR matters.
    """
    start = 0
    result: Dict[str, Crop] = {crop.identity_key: crop for crop in crops}

    for index, op in enumerate(operations):
        if op.type == OperationType.CLEAR:
            start = index + 1
    if start:
        result = {}

    for op in operations[start:]:
        if op.type == OperationType.ADD and op.crop is not None:
            result = {key: crop for key, crop in result.items() if not crop.matches(op.crop.name)}
            result[op.crop.identity_key] = op.crop
        elif op.type == OperationType.DELETE and op.crop_id:
            result = {key: crop for key, crop in result.items() if not crop.matches(op.crop_id)}

    return list(result.values())
