"""
Builders and invariant checks shared by the queue tests.
"""
from courtqueue.domain.queue.models import GROUP_SIZE, Participant, Station, Status, Tier
from courtqueue.domain.queue.store import EntityStore

FIXED_NOW = 1_700_000_000.0


def make_participant(
    pid: str,
    name: str | None = None,
    sessions: int = 0,
    tier: Tier = Tier.NOVICE,
    status: Status = Status.POOL,
) -> Participant:
    """Create a participant with a readable id."""
    return Participant(id=pid, name=name or pid, tier=tier, sessions=sessions, status=status)


def add_pool(store: EntityStore, *pids: str, sessions: int = 0) -> list[Participant]:
    """Append pool participants in the given order."""
    created = [make_participant(pid, sessions=sessions) for pid in pids]
    store.participants.extend(created)
    return created


def stage(store: EntityStore, groups: list[list[str]]) -> None:
    """Put existing participants into groups and mark them STAGED."""
    store.replace_groups(groups)
    staged = {pid for group in groups for pid in group}
    for participant in store.participants:
        if participant.id in staged:
            participant.status = Status.STAGED


def make_station(sid: str, name: str | None = None) -> Station:
    return Station(id=sid, name=name or sid)


def statuses(store: EntityStore) -> dict[str, Status]:
    return {p.id: p.status for p in store.participants}


def assert_consistent(store: EntityStore) -> None:
    """Check every structural invariant of the queue state."""
    assert len(store.groups) >= 1, "group sequence must never be empty"

    in_groups = [pid for group in store.groups for pid in group]
    on_courts = [pid for station in store.stations for pid in station.occupants]
    assert len(in_groups) == len(set(in_groups)), "duplicate id across groups"
    assert len(on_courts) == len(set(on_courts)), "duplicate id across courts"
    assert not set(in_groups) & set(on_courts), "id both staged and on court"

    for group in store.groups:
        assert 0 <= len(group) <= GROUP_SIZE

    for station in store.stations:
        assert len(station.occupants) in (0, GROUP_SIZE)
        assert (station.started_at is None) == station.is_idle

    for participant in store.participants:
        if participant.status == Status.STAGED:
            assert in_groups.count(participant.id) == 1
            assert participant.id not in on_courts
        elif participant.status == Status.ACTIVE:
            assert on_courts.count(participant.id) == 1
            assert participant.id not in in_groups
        else:
            assert participant.id not in in_groups
            assert participant.id not in on_courts
