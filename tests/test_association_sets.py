from __future__ import annotations

from _tracks import RecordingTrack

from structrack.tracking import (
    NOT_MATCHED,
    build_association_dataset,
    convert_history_to_association_sets,
    is_track_association_problem,
)


def test_empty_and_single_step_histories_yield_nothing() -> None:
    assert convert_history_to_association_sets([], RecordingTrack) == ([], [])

    samples, labels = convert_history_to_association_sets([[("d0", 1), ("d1", 2)]], RecordingTrack)
    assert samples == []
    assert labels == []


def test_reference_scenario() -> None:
    history = [
        [("d0", "a"), ("d1", "b")],
        [("d2", "a")],
        [("d3", "c")],
    ]
    samples, labels = convert_history_to_association_sets(history, RecordingTrack)

    assert len(samples) == 2
    assert labels == [[0], [NOT_MATCHED]]

    step1, step2 = samples
    assert step1.detections == ["d2"]
    assert [track.events for track in step1.tracks] == [
        [("update", "d0")],
        [("update", "d1")],
    ]

    assert step2.detections == ["d3"]
    assert step2.num_tracks == 2
    assert [track.events for track in step2.tracks] == [
        [("update", "d0"), ("update", "d2")],
        [("update", "d1"), ("propagate", None)],
    ]


def test_unique_labels_are_never_matched_and_tracks_accumulate() -> None:
    history = [
        [("d0", 0)],
        [("d1", 1), ("d2", 2)],
        [],
        [("d3", 3)],
    ]
    samples, labels = convert_history_to_association_sets(history, RecordingTrack)

    assert labels == [[NOT_MATCHED, NOT_MATCHED], [], [NOT_MATCHED]]
    assert [sample.num_tracks for sample in samples] == [1, 3, 3]


def test_label_skipping_a_step_resolves_to_first_index() -> None:
    history = [
        [("d0", "x"), ("d1", "y")],
        [("d2", "y")],
        [("d3", "z"), ("d4", "x")],
        [("d5", "z")],
    ]
    samples, labels = convert_history_to_association_sets(history, RecordingTrack)

    assert labels == [[1], [NOT_MATCHED, 0], [2]]
    # x was propagated at step 1, not removed or renumbered.
    assert samples[1].tracks[0].events == [("update", "d0"), ("propagate", None)]
    # z was first seen at step 2 and resolves against the track created there.
    assert samples[2].num_tracks == 3


def test_emitted_tracks_are_independent_snapshots() -> None:
    history = [[("d0", "a")], [("d1", "a")], [("d2", "a")]]
    samples, _ = convert_history_to_association_sets(history, RecordingTrack)

    assert samples[0].tracks[0] is not samples[1].tracks[0]
    assert samples[0].tracks[0].events == [("update", "d0")]
    assert samples[1].tracks[0].events == [("update", "d0"), ("update", "d1")]


def test_aggregator_preserves_history_major_order() -> None:
    histories = [
        [[("a0", 1)], [("a1", 1)], [("a2", 2)]],
        [[("b0", 1)]],
        [[("c0", 5)], [("c1", 6), ("c2", 5)]],
    ]
    samples, labels = build_association_dataset(histories, RecordingTrack)

    per_history = [convert_history_to_association_sets(h, RecordingTrack) for h in histories]
    assert len(samples) == sum(len(s) for s, _ in per_history) == 3
    assert [sample.detections for sample in samples] == [["a1"], ["a2"], ["c1", "c2"]]
    assert labels == [[0], [NOT_MATCHED], [NOT_MATCHED, 0]]


def test_histories_do_not_share_track_state() -> None:
    histories = [
        [[("a0", "same")], [("a1", "same")]],
        [[("b0", "other")], [("b1", "same")]],
    ]
    _, labels = build_association_dataset(histories, RecordingTrack)

    assert labels == [[0], [NOT_MATCHED]]


def test_is_track_association_problem() -> None:
    good = [[[("d0", 1)], [("d1", 1)]]]
    assert is_track_association_problem(good)
    assert is_track_association_problem([[[], []]])
    assert is_track_association_problem([[[("d0", 1)]], [[("d1", 1)], []]])

    assert not is_track_association_problem([])
    assert not is_track_association_problem("not histories")
    # Single-step and empty histories are valid; they only yield no samples.
    assert is_track_association_problem([[[("d0", 1)]]])
    assert is_track_association_problem([[]])
    assert not is_track_association_problem([[[("d0", 1), ("d1", 1)], []]])
    assert not is_track_association_problem([[[("d0", [1])], []]])
    assert not is_track_association_problem([[[("d0", (1, [2]))], []]])
    assert not is_track_association_problem([[["d0"], []]])
    assert not is_track_association_problem([[[("d0", 1, 2)], []]])
    assert not is_track_association_problem([[None, []]])
