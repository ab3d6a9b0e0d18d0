"""
Allocation Engine - Moves players between the pool, ready groups and courts.

This is the only component that changes participant status. Every public
operation either applies completely or declines and leaves the store as it
was; nothing here raises for an unmet precondition.

Lifecycle:
    pool --promote/fill_all--> group --assign_group_to_station--> court
    court --end_station_session--> pool (session counter + 1)
"""
import random
import time
from typing import Callable

from courtqueue.domain.queue.models import (
    GROUP_SIZE,
    DeclineReason,
    Outcome,
    Participant,
    Station,
    Status,
    new_id,
)
from courtqueue.domain.queue.selection import selection_queue
from courtqueue.domain.queue.store import EntityStore
from courtqueue.logging_config import get_logger, log_declined, log_transition

logger = get_logger(__name__)


def distribute_fill(
    groups: list[list[str]],
    queue: list[str],
    capacity: int = GROUP_SIZE,
) -> tuple[list[list[str]], list[str]]:
    """
    Pour queued ids into groups, first group first.

    Each group is topped up to `capacity` before moving on. No group is
    created and no existing member moves.

    Returns:
        (new groups, ids consumed from the queue in order)
    """
    result = [list(g) for g in groups]
    remaining = list(queue)
    used: list[str] = []
    for group in result:
        while len(group) < capacity and remaining:
            pid = remaining.pop(0)
            group.append(pid)
            used.append(pid)
    return result, used


def shift_groups_after_assign(groups: list[list[str]], index: int) -> list[list[str]]:
    """Drop the assigned group so later ones move up, then append an empty group."""
    result = [list(g) for g in groups]
    result.pop(index)
    result.append([])
    return result


class AllocationEngine:
    """
    Owns every transition between the pool, groups and courts.

    Args:
        store: The entity store to mutate in place.
        rng: Randomness source for the first-round shuffle (seed it in tests).
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        store: EntityStore,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.rng = rng or random.Random()
        self.clock = clock

    # ------------------------------------------------------------------
    # Pool -> groups
    # ------------------------------------------------------------------

    def first_open_group(self) -> int | None:
        """Index of the first group with a free slot, scanning in order."""
        for idx, group in enumerate(self.store.groups):
            if len(group) < GROUP_SIZE:
                return idx
        return None

    def promote(self, participant_id: str) -> Outcome:
        """Move one pool participant into the first group with room."""
        participant = self.store.get_participant(participant_id)
        if participant is None:
            return self._decline("promote", DeclineReason.UNKNOWN_PARTICIPANT)
        if participant.status != Status.POOL:
            return self._decline("promote", DeclineReason.NOT_IN_POOL)

        target = self.first_open_group()
        if target is None:
            return self._decline("promote", DeclineReason.NO_CAPACITY)

        self.store.replace_group(target, self.store.groups[target] + [participant_id])
        participant.status = Status.STAGED

        log_transition(
            logger,
            "promote",
            f"{participant.name} -> group {target}",
            participant_id=participant_id,
            group_index=target,
        )
        return Outcome.ok()

    def fill_all(self) -> Outcome:
        """
        Fill every existing group from the pool in selection order.

        Only adds; members already staged are never removed or reordered.
        """
        queue = selection_queue(self.store.participants, self.rng)
        if not queue:
            return self._decline("fill_all", DeclineReason.NOTHING_TO_FILL)

        groups, used = distribute_fill(self.store.groups, queue)
        if not used:
            return self._decline("fill_all", DeclineReason.NOTHING_TO_FILL)

        self.store.replace_groups(groups)
        self._set_status(used, Status.STAGED)

        log_transition(logger, "fill_all", f"Staged {len(used)} players", count=len(used))
        return Outcome.ok()

    def add_group(self) -> Outcome:
        self.store.add_group()
        log_transition(
            logger,
            "add_group",
            "Added empty group",
            group_index=len(self.store.groups) - 1,
        )
        return Outcome.ok()

    def remove_group(self, group_index: int) -> Outcome:
        """Delete a group; its members go back to the pool with counters untouched."""
        if not self._valid_group_index(group_index):
            return self._decline("remove_group", DeclineReason.UNKNOWN_GROUP)

        removed = self.store.remove_group(group_index)
        self._set_status(removed, Status.POOL)

        log_transition(
            logger,
            "remove_group",
            f"Removed group {group_index} ({len(removed)} back to pool)",
            group_index=group_index,
            count=len(removed),
        )
        return Outcome.ok()

    def swap_group_member(self, group_index: int, slot_index: int, pool_participant_id: str) -> Outcome:
        """
        Replace the member at one slot with a pool participant.

        The slot must already be occupied; an empty slot is not a swap target.
        """
        if not self._valid_group_index(group_index):
            return self._decline("swap", DeclineReason.UNKNOWN_GROUP)

        group = self.store.groups[group_index]
        if not 0 <= slot_index < len(group):
            return self._decline("swap", DeclineReason.EMPTY_SLOT)

        incoming = self.store.get_participant(pool_participant_id)
        if incoming is None:
            return self._decline("swap", DeclineReason.UNKNOWN_PARTICIPANT)
        if incoming.status != Status.POOL:
            return self._decline("swap", DeclineReason.NOT_IN_POOL)

        outgoing_id = group[slot_index]
        members = list(group)
        members[slot_index] = pool_participant_id
        self.store.replace_group(group_index, members)

        self._set_status([outgoing_id], Status.POOL)
        incoming.status = Status.STAGED

        log_transition(
            logger,
            "swap",
            f"Slot {slot_index}: {outgoing_id} -> {pool_participant_id}",
            participant_id=pool_participant_id,
            group_index=group_index,
        )
        return Outcome.ok()

    # ------------------------------------------------------------------
    # Groups -> courts -> pool
    # ------------------------------------------------------------------

    def add_station(self, name: str | None = None) -> Station:
        """Create an idle court, named 'Court N' unless a name is given."""
        station = Station(
            id=new_id("c"),
            name=name or f"Court {len(self.store.stations) + 1}",
        )
        self.store.add_station(station)
        log_transition(logger, "add_station", f"Added {station.name}", station_id=station.id)
        return station

    def assign_group_to_station(self, group_index: int, station_id: str) -> Outcome:
        """Send a full group to an idle court and rotate the group sequence."""
        if not self._valid_group_index(group_index):
            return self._decline("assign", DeclineReason.UNKNOWN_GROUP)

        members = self.store.groups[group_index]
        if len(members) != GROUP_SIZE or not all(
            self._has_status(pid, Status.STAGED) for pid in members
        ):
            return self._decline("assign", DeclineReason.GROUP_NOT_FULL)

        station = self.store.get_station(station_id)
        if station is None:
            return self._decline("assign", DeclineReason.UNKNOWN_STATION)
        if not station.is_idle:
            return self._decline("assign", DeclineReason.STATION_BUSY)

        station.occupants = list(members)
        station.started_at = self.clock()
        self._set_status(members, Status.ACTIVE)
        self.store.replace_groups(shift_groups_after_assign(self.store.groups, group_index))
        self.store.first_assignment_done = True

        log_transition(
            logger,
            "assign",
            f"Group {group_index} now playing on {station.name}",
            station_id=station_id,
            group_index=group_index,
        )
        return Outcome.ok()

    def end_station_session(self, station_id: str) -> Outcome:
        """Finish the game on a court; every occupant returns to the pool with one more session."""
        station = self.store.get_station(station_id)
        if station is None:
            return self._decline("end_session", DeclineReason.UNKNOWN_STATION)
        if station.is_idle:
            return self._decline("end_session", DeclineReason.STATION_IDLE)

        self._complete_session(station)
        return Outcome.ok()

    def remove_station(self, station_id: str) -> Outcome:
        station = self.store.get_station(station_id)
        if station is None:
            return self._decline("remove_station", DeclineReason.UNKNOWN_STATION)

        if not station.is_idle:
            self._complete_session(station)
        self.store.remove_station(station_id)

        log_transition(logger, "remove_station", f"Removed {station.name}", station_id=station_id)
        return Outcome.ok()

    # ------------------------------------------------------------------
    # Participant lifecycle
    # ------------------------------------------------------------------

    def delete_participant(self, participant_id: str) -> Outcome:
        """
        Remove a participant and every reference to them.

        Deletion is not a completed session, so no counter moves. If they
        were on court, that game is abandoned: the other three go back to
        the pool and the court becomes idle.
        """
        participant = self.store.get_participant(participant_id)
        if participant is None:
            return self._decline("delete", DeclineReason.UNKNOWN_PARTICIPANT)

        for idx, group in enumerate(self.store.groups):
            if participant_id in group:
                self.store.replace_group(idx, [pid for pid in group if pid != participant_id])

        for station in self.store.stations:
            if participant_id in station.occupants:
                others = [pid for pid in station.occupants if pid != participant_id]
                self._set_status(others, Status.POOL)
                station.occupants = []
                station.started_at = None
                logger.warning(
                    f"Session on {station.name} abandoned: {participant.name} was deleted",
                    extra={"event_type": "session_abandoned", "station_id": station.id},
                )

        self.store.remove_participant(participant_id)
        log_transition(
            logger,
            "delete",
            f"Deleted {participant.name}",
            participant_id=participant_id,
        )
        return Outcome.ok()

    def sanitize(self) -> int:
        """
        Strip group ids that no longer resolve to a participant.

        Returns:
            Number of stale ids removed.
        """
        known = {p.id for p in self.store.participants}
        removed = 0
        cleaned: list[list[str]] = []
        for group in self.store.groups:
            kept = [pid for pid in group if pid in known]
            removed += len(group) - len(kept)
            cleaned.append(kept)

        if removed:
            self.store.replace_groups(cleaned)
            logger.info(
                f"Sanitize dropped {removed} stale group entries",
                extra={"event_type": "sanitize", "count": removed},
            )
        return removed

    def dedupe_memberships(self) -> int:
        """
        Drop group entries that duplicate another membership.

        Snapshot pieces are saved one by one, so a failed groups write can
        leave a group that was already sent to a court. A group id that is
        also on a court is dropped, and an id listed in several groups keeps
        only its first slot. Returns the number of entries removed.
        """
        seen = {pid for station in self.store.stations for pid in station.occupants}
        removed = 0
        cleaned: list[list[str]] = []
        for group in self.store.groups:
            kept = []
            for pid in group:
                if pid in seen:
                    removed += 1
                    continue
                seen.add(pid)
                kept.append(pid)
            cleaned.append(kept)

        if removed:
            self.store.replace_groups(cleaned)
            logger.warning(
                f"Dropped {removed} duplicated group entries",
                extra={"event_type": "dedupe", "count": removed},
            )
        return removed

    def reconcile_statuses(self) -> int:
        """
        Reset statuses that disagree with collection membership.

        Run after loading a snapshot where one piece fell back to its
        default: a STAGED player with no group, or an ACTIVE player on no
        court, goes back to the pool. Returns the number of fixes.
        """
        staged = {pid for group in self.store.groups for pid in group}
        active = {pid for station in self.store.stations for pid in station.occupants}
        fixed = 0
        for participant in self.store.participants:
            if participant.id in active:
                expected = Status.ACTIVE
            elif participant.id in staged:
                expected = Status.STAGED
            else:
                expected = Status.POOL
            if participant.status != expected:
                participant.status = expected
                fixed += 1

        if fixed:
            logger.warning(
                f"Reconciled {fixed} participant statuses",
                extra={"event_type": "reconcile", "count": fixed},
            )
        return fixed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _complete_session(self, station: Station) -> None:
        for pid in station.occupants:
            participant = self.store.get_participant(pid)
            if participant is not None:
                participant.sessions += 1
                participant.status = Status.POOL

        log_transition(
            logger,
            "end_session",
            f"Session on {station.name} finished",
            station_id=station.id,
            count=len(station.occupants),
        )
        station.occupants = []
        station.started_at = None

    def _set_status(self, participant_ids: list[str], status: Status) -> None:
        wanted = set(participant_ids)
        for participant in self.store.participants:
            if participant.id in wanted:
                participant.status = status

    def _has_status(self, participant_id: str, status: Status) -> bool:
        participant: Participant | None = self.store.get_participant(participant_id)
        return participant is not None and participant.status == status

    def _valid_group_index(self, group_index: int) -> bool:
        return 0 <= group_index < len(self.store.groups)

    def _decline(self, operation: str, reason: DeclineReason) -> Outcome:
        log_declined(logger, operation, reason.value)
        return Outcome.declined(reason)
