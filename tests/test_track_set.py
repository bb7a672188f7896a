from __future__ import annotations

import pytest
from _tracks import RecordingTrack

from structrack.tracking import NOT_MATCHED, TrackSet, apply_assignments


def test_new_labels_append_tracks_in_arrival_order() -> None:
    track_set = TrackSet(RecordingTrack)
    track_set.add_detections([("d0", "b"), ("d1", "a")])

    assert len(track_set) == 2
    assert track_set.labels == {"b": 0, "a": 1}
    assert track_set.tracks[0].events == [("update", "d0")]
    assert track_set.tracks[1].events == [("update", "d1")]


def test_known_labels_update_and_untouched_tracks_propagate() -> None:
    track_set = TrackSet(RecordingTrack)
    track_set.add_detections([("d0", "a"), ("d1", "b")])
    track_set.add_detections([("d2", "b"), ("d3", "c")])

    track_a, track_b, track_c = track_set.tracks
    assert track_a.events == [("update", "d0"), ("propagate", None)]
    assert track_b.events == [("update", "d1"), ("update", "d2")]
    # A track created during a step is not propagated in that same step.
    assert track_c.events == [("update", "d3")]
    assert track_set.labels == {"a": 0, "b": 1, "c": 2}


def test_empty_step_propagates_every_track() -> None:
    track_set = TrackSet(RecordingTrack)
    track_set.add_detections([("d0", 7), ("d1", 9)])
    track_set.add_detections([])

    assert [track.events[-1] for track in track_set.tracks] == [
        ("propagate", None),
        ("propagate", None),
    ]


def test_indices_never_change() -> None:
    track_set = TrackSet(RecordingTrack)
    track_set.add_detections([("d0", "a")])
    track_set.add_detections([("d1", "b")])
    track_set.add_detections([("d2", "c"), ("d3", "a")])
    track_set.add_detections([])

    assert track_set.labels == {"a": 0, "b": 1, "c": 2}
    assert track_set.tracks[0].events[-2] == ("update", "d3")


def test_correspondence_labels_use_current_map_without_mutation() -> None:
    track_set = TrackSet(RecordingTrack)
    track_set.add_detections([("d0", "a"), ("d1", "b")])

    labels = track_set.correspondence_labels([("d2", "b"), ("d3", "z")])

    assert labels == [1, NOT_MATCHED]
    assert len(track_set) == 2
    assert "z" not in track_set.labels


def test_snapshot_is_isolated_from_later_updates() -> None:
    track_set = TrackSet(RecordingTrack)
    track_set.add_detections([("d0", "a")])
    snapshot = track_set.snapshot()

    track_set.add_detections([("d1", "a")])

    assert snapshot[0].events == [("update", "d0")]
    assert track_set.tracks[0].events == [("update", "d0"), ("update", "d1")]


def test_duplicate_labels_within_a_step_are_rejected() -> None:
    track_set = TrackSet(RecordingTrack)
    with pytest.raises(ValueError, match="unique"):
        track_set.add_detections([("d0", "a"), ("d1", "a")])


def test_apply_assignments_rejects_invalid_indices() -> None:
    tracks = [RecordingTrack()]
    with pytest.raises(ValueError, match="out of range"):
        apply_assignments(tracks, ["d0"], [3], RecordingTrack)
    with pytest.raises(ValueError, match="more than one"):
        apply_assignments(tracks, ["d0", "d1"], [0, 0], RecordingTrack)
    with pytest.raises(ValueError, match="same length"):
        apply_assignments(tracks, ["d0"], [], RecordingTrack)
