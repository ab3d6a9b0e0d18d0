"""Queue domain - participants, groups, courts and the allocation engine."""
from courtqueue.domain.queue.engine import AllocationEngine
from courtqueue.domain.queue.models import (
    GROUP_SIZE,
    Category,
    DeclineReason,
    Outcome,
    Participant,
    Station,
    Status,
    Tier,
)
from courtqueue.domain.queue.store import EntityStore

__all__ = [
    "GROUP_SIZE",
    "AllocationEngine",
    "Category",
    "DeclineReason",
    "EntityStore",
    "Outcome",
    "Participant",
    "Station",
    "Status",
    "Tier",
]
