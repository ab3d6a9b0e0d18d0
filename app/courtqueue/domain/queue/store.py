"""
Entity store - the authoritative holder of participants, courts and groups.

Only mutation primitives live here. All derived logic (capacity checks,
status transitions, selection order) belongs to the AllocationEngine.
"""
from dataclasses import dataclass, field

from courtqueue.domain.queue.models import Participant, Station


@dataclass
class EntityStore:
    """
    Current collections of the queue.

    `groups` is an ordered sequence of staging groups, each an ordered list
    of participant ids. It is never empty.
    """

    participants: list[Participant] = field(default_factory=list)
    stations: list[Station] = field(default_factory=list)
    groups: list[list[str]] = field(default_factory=lambda: [[]])
    first_assignment_done: bool = False

    def __post_init__(self) -> None:
        if not self.groups:
            self.groups = [[]]

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def get_participant(self, participant_id: str) -> Participant | None:
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        return None

    def add_participant(self, participant: Participant) -> None:
        """Add a participant at the front of the listing (newest first)."""
        self.participants.insert(0, participant)

    def update_participant(self, participant: Participant) -> None:
        for idx, existing in enumerate(self.participants):
            if existing.id == participant.id:
                self.participants[idx] = participant
                return

    def remove_participant(self, participant_id: str) -> None:
        self.participants = [p for p in self.participants if p.id != participant_id]

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def add_group(self, members: list[str] | None = None) -> None:
        self.groups.append(list(members or []))

    def replace_group(self, index: int, members: list[str]) -> None:
        self.groups[index] = list(members)

    def remove_group(self, index: int) -> list[str]:
        """Remove and return a group; an empty group is left if none remain."""
        removed = self.groups.pop(index)
        if not self.groups:
            self.groups.append([])
        return removed

    def replace_groups(self, groups: list[list[str]]) -> None:
        self.groups = [list(g) for g in groups] or [[]]

    # ------------------------------------------------------------------
    # Stations
    # ------------------------------------------------------------------

    def get_station(self, station_id: str) -> Station | None:
        for station in self.stations:
            if station.id == station_id:
                return station
        return None

    def add_station(self, station: Station) -> None:
        self.stations.append(station)

    def update_station(self, station: Station) -> None:
        for idx, existing in enumerate(self.stations):
            if existing.id == station.id:
                self.stations[idx] = station
                return

    def remove_station(self, station_id: str) -> None:
        self.stations = [s for s in self.stations if s.id != station_id]
