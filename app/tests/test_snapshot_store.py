"""
Tests for snapshot persistence.

These tests verify that:
1. A saved state loads back unchanged
2. Each of the four snapshot files falls back on its own when missing or malformed
3. Save failures never raise
"""

import json

from courtqueue.config import Settings
from courtqueue.domain.queue.models import Category, Station, Status, Tier
from courtqueue.domain.queue.store import EntityStore
from courtqueue.domain.storage.snapshot import (
    SnapshotStore,
    decode_flag,
    decode_groups,
    decode_participants,
    snapshot_lock,
)
from courtqueue.exceptions import StorageError
from tests.helpers import make_participant


def make_saved_state() -> EntityStore:
    store = EntityStore()
    store.participants.extend([
        make_participant("p1", name="Ana", sessions=2, tier=Tier.ADVANCED, status=Status.STAGED),
        make_participant("p2", name="Ben", status=Status.ACTIVE),
        make_participant("p3", name="Cal", status=Status.ACTIVE),
        make_participant("p4", name="Dee", status=Status.ACTIVE),
        make_participant("p5", name="Eve", status=Status.ACTIVE),
    ])
    store.participants[0].category = Category.FEMALE
    store.replace_groups([["p1"], []])
    store.add_station(Station(id="c1", name="Court 1", occupants=["p2", "p3", "p4", "p5"], started_at=100.0))
    store.add_station(Station(id="c2", name="Court 2"))
    store.first_assignment_done = True
    return store


class TestRoundTrip:
    """A saved state loads back as the same state."""

    def test_save_then_load(self, settings):
        snapshots = SnapshotStore(settings)
        original = make_saved_state()

        snapshots.save(original)
        loaded = snapshots.load()

        assert loaded == original

    def test_writes_four_independent_files(self, settings):
        SnapshotStore(settings).save(make_saved_state())

        assert json.loads(settings.groups_path.read_text()) == [["p1"], []]
        assert json.loads(settings.first_assignment_path.read_text()) is True
        participants = json.loads(settings.participants_path.read_text())
        assert participants[0] == {
            "id": "p1",
            "name": "Ana",
            "category": "female",
            "tier": "advanced",
            "sessions": 2,
            "status": "staged",
        }
        stations = json.loads(settings.stations_path.read_text())
        assert stations[1] == {"id": "c2", "name": "Court 2", "occupants": [], "started_at": None}


class TestFallbacks:
    """Every piece falls back on its own."""

    def test_missing_directory_gives_defaults(self, settings):
        loaded = SnapshotStore(settings).load()

        assert loaded.participants == []
        assert loaded.stations == []
        assert loaded.groups == [[]]
        assert loaded.first_assignment_done is False

    def test_malformed_groups_only_resets_groups(self, settings):
        snapshots = SnapshotStore(settings)
        snapshots.save(make_saved_state())
        settings.groups_path.write_text("{not json")

        loaded = snapshots.load()

        assert loaded.groups == [[]]
        assert len(loaded.participants) == 5
        assert len(loaded.stations) == 2
        assert loaded.first_assignment_done is True

    def test_empty_group_list_becomes_single_empty_group(self, settings):
        snapshots = SnapshotStore(settings)
        settings.groups_path.parent.mkdir(parents=True)
        settings.groups_path.write_text("[]")

        assert snapshots.load().groups == [[]]

    def test_wrong_shape_participants_fall_back(self, settings):
        settings.participants_path.parent.mkdir(parents=True)
        settings.participants_path.write_text(json.dumps({"id": "p1"}))

        assert SnapshotStore(settings).load().participants == []

    def test_unknown_tier_falls_back(self, settings):
        settings.participants_path.parent.mkdir(parents=True)
        settings.participants_path.write_text(
            json.dumps([{"id": "p1", "name": "A", "tier": "legend"}])
        )

        assert SnapshotStore(settings).load().participants == []

    def test_partial_court_falls_back(self, settings):
        settings.stations_path.parent.mkdir(parents=True)
        settings.stations_path.write_text(
            json.dumps([{"id": "c1", "name": "Court 1", "occupants": ["a", "b"], "started_at": 1.0}])
        )

        assert SnapshotStore(settings).load().stations == []

    def test_non_boolean_flag_falls_back(self, settings):
        settings.first_assignment_path.parent.mkdir(parents=True)
        settings.first_assignment_path.write_text('"yes"')

        assert SnapshotStore(settings).load().first_assignment_done is False


class TestDecoders:
    """Direct decoder checks."""

    def test_oversized_group_rejected(self):
        try:
            decode_groups([["a", "b", "c", "d", "e"]])
        except StorageError as e:
            assert e.code == "bad_groups"
        else:
            raise AssertionError("expected StorageError")

    def test_flag_accepts_booleans_only(self):
        assert decode_flag(False) is False
        try:
            decode_flag(0)
        except StorageError:
            pass
        else:
            raise AssertionError("expected StorageError")

    def test_duplicate_participant_ids_rejected(self):
        rows = [make_participant("p1", name="Ana").to_dict(), make_participant("p1", name="Ben").to_dict()]

        try:
            decode_participants(rows)
        except StorageError as e:
            assert e.code == "bad_participants"
        else:
            raise AssertionError("expected StorageError")

    def test_duplicate_ids_fall_back_to_empty_roster(self, settings):
        row = make_participant("p1", name="Ana").to_dict()
        settings.participants_path.parent.mkdir(parents=True)
        settings.participants_path.write_text(json.dumps([row, row]))

        assert SnapshotStore(settings).load().participants == []


class TestSaveFailures:
    """Persistence failures are logged and swallowed."""

    def test_unwritable_state_dir_does_not_raise(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file where a directory should be")
        settings = Settings(state_dir=str(blocker / "state"))

        SnapshotStore(settings).save(make_saved_state())

        assert not (blocker / "state").exists()


class TestSnapshotLock:
    """Advisory locking around snapshot reads and writes."""

    def test_lock_file_created_beside_snapshot(self, tmp_path):
        target = tmp_path / "groups.json"

        with snapshot_lock(target):
            assert (tmp_path / "groups.json.lock").exists()

    def test_lock_creates_parent_directories(self, tmp_path):
        target = tmp_path / "state" / "nested" / "stations.json"

        with snapshot_lock(target):
            assert target.parent.is_dir()

    def test_lock_released_on_exception(self, tmp_path):
        target = tmp_path / "groups.json"

        try:
            with snapshot_lock(target):
                raise ValueError("boom")
        except ValueError:
            pass

        with snapshot_lock(target, exclusive=True):
            target.write_text("[[]]")  # No deadlock

        assert target.read_text() == "[[]]"

    def test_save_leaves_lock_files(self, settings):
        SnapshotStore(settings).save(make_saved_state())

        assert settings.groups_path.with_name("groups.json.lock").exists()
        assert settings.participants_path.with_name("participants.json.lock").exists()
