"""
Queue Service - The command surface used by front ends.

Wraps the AllocationEngine with the bookkeeping that runs around every
command:
1. Sanitize groups whenever the participant list changes
2. Re-run fill_all after every applied change while auto-fill is armed
3. Persist a snapshot after every applied change
"""
import random

from courtqueue.config import Settings
from courtqueue.domain.queue.commands import parse_draft, parse_edit
from courtqueue.domain.queue.engine import AllocationEngine
from courtqueue.domain.queue.models import (
    Category,
    DeclineReason,
    Outcome,
    Participant,
    Station,
    Status,
    Tier,
)
from courtqueue.domain.queue.store import EntityStore
from courtqueue.domain.storage.snapshot import SnapshotStore
from courtqueue.logging_config import get_logger

logger = get_logger(__name__)


class QueueService:
    """
    Owns one EntityStore and its engine for the lifetime of a session.

    Args:
        store: State to operate on.
        engine: Engine bound to `store` (built from `store` if omitted).
        snapshots: Persistence collaborator; None keeps everything in memory.
        auto_fill: Start armed, as if `start()` had been called.
    """

    def __init__(
        self,
        store: EntityStore | None = None,
        engine: AllocationEngine | None = None,
        snapshots: SnapshotStore | None = None,
        auto_fill: bool = False,
    ):
        self.store = store if store is not None else EntityStore()
        self.engine = engine or AllocationEngine(self.store)
        self.snapshots = snapshots
        self.armed = auto_fill

    @classmethod
    def from_settings(cls, settings: Settings) -> "QueueService":
        """Restore the last saved state and clean up anything it left dangling."""
        snapshots = SnapshotStore(settings)
        store = snapshots.load()
        engine = AllocationEngine(store, rng=random.Random(settings.random_seed))
        engine.sanitize()
        engine.dedupe_memberships()
        engine.reconcile_statuses()
        logger.info(
            f"Loaded {len(store.participants)} players, {len(store.stations)} courts, "
            f"{len(store.groups)} groups"
        )
        return cls(store=store, engine=engine, snapshots=snapshots, auto_fill=settings.auto_fill)

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def create_participant(
        self,
        name: str,
        category: Category | str = Category.MALE,
        tier: Tier | str = Tier.NOVICE,
    ) -> Participant:
        """Register a new pool participant. Raises CommandError on a blank name."""
        participant = parse_draft(name=name, category=category, tier=tier).to_participant()
        self.store.add_participant(participant)
        logger.info(f"Added {participant.name}", extra={"participant_id": participant.id})
        self._after(Outcome.ok(), participants_changed=True)
        return participant

    def edit_participant(self, participant_id: str, **fields) -> Outcome:
        """Change name, category or tier. Raises CommandError on invalid values."""
        edit = parse_edit(**fields)
        participant = self.store.get_participant(participant_id)
        if participant is None:
            return Outcome.declined(DeclineReason.UNKNOWN_PARTICIPANT)

        edit.apply_to(participant)
        self.store.update_participant(participant)
        return self._after(Outcome.ok(), participants_changed=True)

    def delete_participant(self, participant_id: str) -> Outcome:
        return self._after(self.engine.delete_participant(participant_id), participants_changed=True)

    def search_pool(self, query: str = "") -> list[Participant]:
        """Pool participants whose name contains `query`, case-insensitive."""
        needle = query.strip().lower()
        pool = [p for p in self.store.participants if p.status == Status.POOL]
        if not needle:
            return pool
        return [p for p in pool if needle in p.name.lower()]

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def promote(self, participant_id: str) -> Outcome:
        return self._after(self.engine.promote(participant_id))

    def fill_all(self) -> Outcome:
        return self._after(self.engine.fill_all())

    def start(self) -> Outcome:
        """Arm auto-fill and fill every group now."""
        self.armed = True
        logger.info("Auto-fill armed", extra={"event_type": "start"})
        return self.fill_all()

    def stop(self) -> None:
        self.armed = False
        logger.info("Auto-fill disarmed", extra={"event_type": "stop"})

    def create_group(self) -> Outcome:
        return self._after(self.engine.add_group())

    def remove_group(self, group_index: int) -> Outcome:
        return self._after(self.engine.remove_group(group_index))

    def swap_member(self, group_index: int, slot_index: int, pool_participant_id: str) -> Outcome:
        return self._after(
            self.engine.swap_group_member(group_index, slot_index, pool_participant_id)
        )

    # ------------------------------------------------------------------
    # Stations
    # ------------------------------------------------------------------

    def create_station(self, name: str | None = None) -> Station:
        station = self.engine.add_station(name)
        self._after(Outcome.ok())
        return station

    def remove_station(self, station_id: str) -> Outcome:
        return self._after(self.engine.remove_station(station_id))

    def assign_group(self, group_index: int, station_id: str) -> Outcome:
        return self._after(self.engine.assign_group_to_station(group_index, station_id))

    def end_session(self, station_id: str) -> Outcome:
        return self._after(self.engine.end_station_session(station_id))

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def _after(self, outcome: Outcome, participants_changed: bool = False) -> Outcome:
        if not outcome:
            return outcome

        if participants_changed:
            self.engine.sanitize()
        if self.armed:
            self.engine.fill_all()
        if self.snapshots is not None:
            self.snapshots.save(self.store)
        return outcome
