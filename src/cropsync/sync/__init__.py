"""
Offline sync: merge strategies, pending-operation replay and the reconciler.

Import the reconciler from cropsync.sync.reconciler; this package init stays
free of imports so the local store can use cropsync.sync.merge directly.
"""
