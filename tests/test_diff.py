"""Unit tests for song differencing and reconciliation."""

import pytest

from conftest import make_song
from music_stream_monitor.core.diff import apply_diff, diff_songs, reconcile
from music_stream_monitor.models.events import (
    ChangeType,
    DiffOp,
    FieldChange,
    FieldDiff,
    SongInserted,
    SongRemoved,
    SongReplaced,
)


def fetch_from(songs):
    """Detail lookup over a dict of id -> song (None if missing)."""
    return lambda song_id: songs.get(song_id)


class TestDiffSongs:
    """Test the flattened field diff."""

    def test_identical_songs(self):
        """Test that equal records have no differences."""
        assert diff_songs(make_song("1"), make_song("1")) == []

    def test_key_order_is_not_a_change(self):
        """Test that reordering fields is not reported."""
        song = make_song("1")
        reordered = dict(reversed(list(song.items())))

        assert diff_songs(song, reordered) == []

    def test_changed_times(self):
        """Test the elapsed/remaining time update of a playing song."""
        previous = make_song("1", time_passed=255, time_remaining=32)
        current = make_song("1", time_passed=275, time_remaining=12)

        assert diff_songs(previous, current) == [
            FieldDiff(DiffOp.REPLACE, "time_passed", 275),
            FieldDiff(DiffOp.REPLACE, "time_remaining", 12),
        ]

    def test_removed_field_has_no_value(self):
        """Test that a vanished field is reported without a value."""
        previous = make_song("1")
        current = make_song("1")
        del current["album"]

        diff = diff_songs(previous, current)

        assert diff == [FieldDiff(DiffOp.REMOVE, "album")]
        assert diff[0].has_value is False
        assert diff[0].as_dict() == {"op": "remove", "path": "album"}

    def test_added_field_comes_after_changes(self):
        """Test that new fields follow changes to existing ones."""
        previous = make_song("1")
        current = make_song("1", genre="Rock", time_passed=256)

        assert diff_songs(previous, current) == [
            FieldDiff(DiffOp.REPLACE, "time_passed", 256),
            FieldDiff(DiffOp.ADD, "genre", "Rock"),
        ]

    def test_type_change_is_a_value_change(self):
        """Test that number to string (and int to bool) count as changes."""
        previous = make_song("1", track_number=9, explicit=1)
        current = make_song("1", track_number="9", explicit=True)

        assert diff_songs(previous, current) == [
            FieldDiff(DiffOp.REPLACE, "track_number", "9"),
            FieldDiff(DiffOp.REPLACE, "explicit", True),
        ]

    def test_nested_object(self):
        """Test that nested fields are flattened into a path."""
        previous = make_song("1", meta={"label": "A", "year": 2000})
        current = make_song("1", meta={"label": "B", "year": 2000})

        assert diff_songs(previous, current) == [FieldDiff(DiffOp.REPLACE, "meta/label", "B")]

    def test_object_replaced_by_scalar(self):
        """Test that a nested object turning into a scalar is one change."""
        previous = make_song("1", meta={"label": "A"})
        current = make_song("1", meta=None)

        assert diff_songs(previous, current) == [FieldDiff(DiffOp.REPLACE, "meta", None)]

    def test_array_shrinks(self):
        """Test that surplus elements are removed from the end."""
        previous = make_song("1", tags=["a", "b", "c"])
        current = make_song("1", tags=["a"])

        assert diff_songs(previous, current) == [
            FieldDiff(DiffOp.REMOVE, "tags/2"),
            FieldDiff(DiffOp.REMOVE, "tags/1"),
        ]

    def test_array_grows(self):
        """Test that new elements are added by index."""
        previous = make_song("1", tags=["a"])
        current = make_song("1", tags=["x", "b", "c"])

        assert diff_songs(previous, current) == [
            FieldDiff(DiffOp.REPLACE, "tags/0", "x"),
            FieldDiff(DiffOp.ADD, "tags/1", "b"),
            FieldDiff(DiffOp.ADD, "tags/2", "c"),
        ]

    def test_keys_with_separator_are_escaped(self):
        """Test that '/' and '~' in keys do not break the path."""
        previous = {"id": "1", "a/b": 1, "x~y": 1}
        current = {"id": "1", "a/b": 2, "x~y": 2}

        assert [d.path for d in diff_songs(previous, current)] == ["a~1b", "x~0y"]

    def test_values_are_copies(self):
        """Test that reported values do not alias the current record."""
        current = make_song("1", meta={"label": "B"})
        diff = diff_songs(make_song("1"), current)

        diff[0].value["label"] = "changed"

        assert current["meta"] == {"label": "B"}


class TestApplyDiff:
    """Test that a diff reproduces the current record."""

    @pytest.mark.parametrize("previous, current", [
        (make_song("1"), make_song("1", time_passed=275, time_remaining=12)),
        (make_song("1", meta={"label": "A", "year": 2000}), make_song("1", meta={"label": "B"})),
        (make_song("1", tags=["a", "b", "c", "d"]), make_song("1", tags=["b"])),
        (make_song("1", tags=[{"n": 1}]), make_song("1", tags=[{"n": 2}, {"n": 3}])),
        (make_song("1", extra={"a/b": {"x~y": 1}}), make_song("1", extra={"a/b": {"x~y": 2}})),
        (make_song("1", meta=[1, 2]), make_song("1", meta={"one": 1})),
        ({"id": "1", "album": "A", "genre": "Pop"}, {"id": "1", "name": "New"}),
    ])
    def test_round_trip(self, previous, current):
        """Test that applying diff_songs(a, b) to a gives b."""
        assert apply_diff(previous, diff_songs(previous, current)) == current

    def test_base_is_untouched(self):
        """Test that apply_diff works on a copy."""
        previous = make_song("1", tags=["a", "b"])
        current = make_song("1", tags=["a"], time_passed=1)

        apply_diff(previous, diff_songs(previous, current))

        assert previous == make_song("1", tags=["a", "b"])


class TestReconcile:
    """Test insert/replace/remove classification."""

    def test_insert_new_song(self):
        """Test that an unknown id produces exactly one insert."""
        song = make_song("1")

        result = reconcile({}, ["1"], fetch_from({"1": song}))

        assert len(result.events) == 1
        event = result.events[0]
        assert isinstance(event, SongInserted)
        assert event.change_type is ChangeType.INSERT
        assert event.song == song
        assert result.songs == {"1": song}

    def test_replace_changed_song(self):
        """Test that a changed record produces one replace with its diff."""
        previous = make_song("1", time_passed=255, time_remaining=32)
        current = make_song("1", time_passed=275, time_remaining=12)

        result = reconcile({"1": previous}, ["1"], fetch_from({"1": current}))

        assert len(result.events) == 1
        event = result.events[0]
        assert isinstance(event, SongReplaced)
        assert event.previous == previous
        assert event.current == current
        assert [(d.path, d.value) for d in event.diff] == [("time_passed", 275), ("time_remaining", 12)]
        assert event.field_changes() == [
            FieldChange("1", "time_passed", 275),
            FieldChange("1", "time_remaining", 12),
        ]
        assert result.songs["1"] == current

    def test_unchanged_song_has_no_event(self):
        """Test that re-fetching an identical record is silent."""
        song = make_song("1")

        result = reconcile({"1": song}, ["1"], fetch_from({"1": make_song("1")}))

        assert result.events == []
        assert result.songs == {"1": song}

    def test_remove_missing_song(self):
        """Test that a song absent from the playlist is removed."""
        songs = {song_id: make_song(song_id) for song_id in ("1", "2", "3")}

        result = reconcile(songs, ["2", "3"], fetch_from(songs))

        assert len(result.events) == 1
        assert isinstance(result.events[0], SongRemoved)
        assert result.events[0].song_id == "1"
        assert list(result.songs) == ["2", "3"]

    def test_removals_follow_inserts_and_replaces(self):
        """Test the two-pass event order."""
        previous = {song_id: make_song(song_id) for song_id in ("1", "2", "3")}
        details = {"4": make_song("4"), "2": make_song("2", time_passed=300)}

        result = reconcile(previous, ["4", "2"], fetch_from(details))

        assert [(e.change_type, e.song_id) for e in result.events] == [
            (ChangeType.INSERT, "4"),
            (ChangeType.REPLACE, "2"),
            (ChangeType.REMOVE, "1"),
            (ChangeType.REMOVE, "3"),
        ]
        assert set(result.songs) == {"2", "4"}

    def test_inserts_follow_playlist_order(self):
        """Test that inserts are emitted in listing order."""
        details = {song_id: make_song(song_id) for song_id in ("1", "2", "3")}

        result = reconcile({}, ["3", "1", "2"], fetch_from(details))

        assert [e.song_id for e in result.events] == ["3", "1", "2"]

    def test_replace_keeps_position(self):
        """Test that a replaced song keeps its place in the song set."""
        previous = {song_id: make_song(song_id) for song_id in ("1", "2")}
        details = {"1": make_song("1", time_passed=1), "2": make_song("2")}

        result = reconcile(previous, ["2", "1"], fetch_from(details))

        assert list(result.songs) == ["1", "2"]

    def test_unavailable_detail_is_skipped(self):
        """Test that a song whose detail is missing is neither changed nor removed."""
        previous = {"1": make_song("1")}

        result = reconcile(previous, ["1", "2"], fetch_from({}))

        assert result.events == []
        assert result.skipped == ["1", "2"]
        assert result.songs == previous

    def test_previous_is_not_modified(self):
        """Test that reconcile returns a new song set."""
        previous = {"1": make_song("1"), "2": make_song("2")}
        snapshot = {key: dict(value) for key, value in previous.items()}

        reconcile(previous, ["1"], fetch_from({"1": make_song("1", time_passed=0)}))

        assert previous == snapshot

    def test_events_carry_copies(self):
        """Test that listeners cannot change the song set through an event."""
        result = reconcile({}, ["1"], fetch_from({"1": make_song("1")}))

        result.events[0].song["name"] = "Tampered"

        assert result.songs["1"]["name"] == "Song 1"

    def test_duplicate_ids_fetched_once(self):
        """Test that a repeated id is only processed once."""
        calls = []

        def fetch(song_id):
            calls.append(song_id)
            return make_song(song_id)

        result = reconcile({}, ["1", "1"], fetch)

        assert calls == ["1"]
        assert len(result.events) == 1


class TestFieldChange:
    """Test the loggable rendering of single field changes."""

    def test_plain_field(self):
        assert FieldChange("1", "time_passed", 275).as_dict() == {"id": "1", "time_passed": 275}

    def test_removed_field(self):
        change = FieldChange("1", "album", op=DiffOp.REMOVE)

        assert change.as_dict() == {"id": "1", "removed": "album"}

    def test_id_type_change_is_kept(self):
        previous = {"id": 1, "name": "Song 1"}
        current = {"id": "1", "name": "Song 1"}
        event = SongReplaced(previous, current, tuple(diff_songs(previous, current)))

        assert [change.as_dict() for change in event.field_changes()] == [
            {"id": "1", "changed": {"id": "1"}},
        ]

    @pytest.mark.parametrize("path", ["removed", "changed"])
    def test_reserved_field_names_are_nested(self, path):
        assert FieldChange("1", path, True).as_dict() == {"id": "1", "changed": {path: True}}
