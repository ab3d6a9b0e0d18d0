"""Storage domain - snapshot persistence of the queue state."""
from courtqueue.domain.storage.snapshot import SnapshotStore

__all__ = ["SnapshotStore"]
