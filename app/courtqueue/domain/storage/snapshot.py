"""
Snapshot Store - Loads and saves the queue state as four JSON files.

Each piece of state (participants, courts, groups, first-assignment flag) is
read and written on its own. A missing or malformed file only costs that one
piece, which falls back to its empty default. Save failures are logged and
swallowed: the in-memory state stays correct, it just won't survive a
restart.

Every read and write holds an fcntl lock on a `<name>.lock` file beside the
snapshot, so two front ends sharing one state directory never read a
half-written file. Locks are advisory.
"""

import fcntl
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Generator, TypeVar

from courtqueue.config import Settings
from courtqueue.domain.queue.models import GROUP_SIZE, Participant, Station
from courtqueue.domain.queue.store import EntityStore
from courtqueue.exceptions import StorageError
from courtqueue.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def decode_participants(data: Any) -> list[Participant]:
    if not isinstance(data, list):
        raise StorageError("bad_participants", "participants snapshot is not a list")
    try:
        participants = [Participant.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise StorageError("bad_participants", str(e)) from e

    seen: set[str] = set()
    for participant in participants:
        if participant.id in seen:
            raise StorageError("bad_participants", f"duplicate participant id {participant.id}")
        seen.add(participant.id)
    return participants


def decode_stations(data: Any) -> list[Station]:
    if not isinstance(data, list):
        raise StorageError("bad_stations", "stations snapshot is not a list")
    try:
        return [Station.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise StorageError("bad_stations", str(e)) from e


def decode_groups(data: Any) -> list[list[str]]:
    if not isinstance(data, list) or not all(isinstance(g, list) for g in data):
        raise StorageError("bad_groups", "groups snapshot is not a list of lists")
    groups = [[str(pid) for pid in g] for g in data]
    if any(len(g) > GROUP_SIZE for g in groups):
        raise StorageError("bad_groups", f"a group holds more than {GROUP_SIZE} players")
    return groups or [[]]


def decode_flag(data: Any) -> bool:
    if not isinstance(data, bool):
        raise StorageError("bad_flag", "first-assignment flag is not a boolean")
    return data


@contextmanager
def snapshot_lock(path: Path, exclusive: bool = True) -> Generator[None, None, None]:
    """
    Hold an advisory lock on one snapshot file.

    Shared for reads, exclusive for writes. The lock lives in a separate
    `.lock` file so it survives the snapshot being rewritten.
    """
    lock_path = path.with_name(path.name + ".lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_type = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH

    with open(lock_path, "w") as lock_file:
        logger.debug(f"Locking {path.name} ({'exclusive' if exclusive else 'shared'})")
        fcntl.flock(lock_file.fileno(), lock_type)
        try:
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


class SnapshotStore:
    """Persistence collaborator for the EntityStore."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def load(self) -> EntityStore:
        """Load every piece independently, falling back per piece."""
        return EntityStore(
            participants=self._load(self.settings.participants_path, decode_participants, list),
            stations=self._load(self.settings.stations_path, decode_stations, list),
            groups=self._load(self.settings.groups_path, decode_groups, lambda: [[]]),
            first_assignment_done=self._load(
                self.settings.first_assignment_path, decode_flag, lambda: False
            ),
        )

    def save(self, store: EntityStore) -> None:
        """Write every piece independently. Never raises."""
        self._save(self.settings.participants_path, [p.to_dict() for p in store.participants])
        self._save(self.settings.stations_path, [s.to_dict() for s in store.stations])
        self._save(self.settings.groups_path, store.groups)
        self._save(self.settings.first_assignment_path, store.first_assignment_done)

    def _load(self, path: Path, decode: Callable[[Any], T], fallback: Callable[[], T]) -> T:
        if not path.exists():
            return fallback()

        try:
            with snapshot_lock(path, exclusive=False):
                raw = path.read_text(encoding="utf-8")
            return decode(json.loads(raw))
        except (OSError, ValueError, StorageError) as e:
            logger.warning(f"Ignoring unreadable snapshot {path.name}: {e}")
            return fallback()

    def _save(self, path: Path, payload: Any) -> None:
        try:
            text = json.dumps(payload, indent=2)
            with snapshot_lock(path, exclusive=True):
                path.write_text(text, encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Could not persist {path.name}: {e}")
