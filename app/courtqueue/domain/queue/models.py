"""
Queue models - Players, courts and the outcome of allocation operations.
"""
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Every court hosts exactly this many players; groups stage up to this many.
GROUP_SIZE = 4


class Status(str, Enum):
    """Where a participant currently lives."""

    POOL = "pool"
    STAGED = "staged"  # In a ready group
    ACTIVE = "active"  # On a court


class Category(str, Enum):
    """Categorical attribute shown next to a participant."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Tier(str, Enum):
    """Skill tier. Ordered: NOVICE < INTERMEDIATE < ADVANCED."""

    NOVICE = "novice"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def rank(self) -> int:
        return TIER_RANK[self]


TIER_RANK = {
    Tier.NOVICE: 1,
    Tier.INTERMEDIATE: 2,
    Tier.ADVANCED: 3,
}


class DeclineReason(str, Enum):
    """Why an engine operation left the state untouched."""

    NO_CAPACITY = "no_capacity"
    UNKNOWN_PARTICIPANT = "unknown_participant"
    NOT_IN_POOL = "not_in_pool"
    UNKNOWN_GROUP = "unknown_group"
    GROUP_NOT_FULL = "group_not_full"
    UNKNOWN_STATION = "unknown_station"
    STATION_BUSY = "station_busy"
    STATION_IDLE = "station_idle"
    EMPTY_SLOT = "empty_slot"
    NOTHING_TO_FILL = "nothing_to_fill"


@dataclass(frozen=True)
class Outcome:
    """
    Result of an engine operation.

    Either applied, or declined with a reason. Truthy iff applied, so
    callers can write `if engine.promote(pid): ...`.
    """

    applied: bool
    reason: DeclineReason | None = None

    @classmethod
    def ok(cls) -> "Outcome":
        return cls(applied=True)

    @classmethod
    def declined(cls, reason: DeclineReason) -> "Outcome":
        return cls(applied=False, reason=reason)

    def __bool__(self) -> bool:
        return self.applied

    def __str__(self) -> str:
        if self.applied:
            return "applied"
        return f"declined ({self.reason.value})"


def new_id(prefix: str = "id") -> str:
    """Generate an opaque unique id like 'p_3f9a1c2e'."""
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


@dataclass
class Participant:
    """A player waiting for, staged for, or playing on a court."""

    id: str
    name: str
    category: Category = Category.OTHER
    tier: Tier = Tier.NOVICE
    sessions: int = 0  # Completed court sessions
    status: Status = Status.POOL

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "tier": self.tier.value,
            "sessions": self.sessions,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Participant":
        sessions = int(data.get("sessions", 0))
        if sessions < 0:
            raise ValueError(f"Negative session count for {data.get('id')}")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            category=Category(data.get("category", Category.OTHER.value)),
            tier=Tier(data.get("tier", Tier.NOVICE.value)),
            sessions=sessions,
            status=Status(data.get("status", Status.POOL.value)),
        )


@dataclass
class Station:
    """A court. Occupancy is either empty or exactly GROUP_SIZE ids."""

    id: str
    name: str
    occupants: list[str] = field(default_factory=list)
    started_at: float | None = None  # Epoch seconds, set iff occupied

    @property
    def is_idle(self) -> bool:
        return not self.occupants

    def elapsed(self, now: float) -> float | None:
        """Seconds since the current session started, or None when idle."""
        if self.started_at is None:
            return None
        return max(0.0, now - self.started_at)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "occupants": list(self.occupants),
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Station":
        occupants = [str(pid) for pid in data.get("occupants", [])]
        if len(occupants) not in (0, GROUP_SIZE):
            raise ValueError(f"Station {data.get('id')} has {len(occupants)} occupants")
        started_at = data.get("started_at")
        if occupants and started_at is None:
            raise ValueError(f"Station {data.get('id')} is occupied without a start time")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            occupants=occupants,
            started_at=float(started_at) if occupants else None,
        )
