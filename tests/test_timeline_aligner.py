"""Unit tests for merging tracks onto one timeline."""

import pytest

from leadsheet.errors import MisalignedLyricError, OverlappingHarmonyError, OverlappingRepeatError
from leadsheet.pitch import Pitch, PitchClass
from leadsheet.sheet_models import (
    Annotation,
    HarmonyEvent,
    LyricEvent,
    MelodyEvent,
    Quality,
    RawTracks,
    RepeatBlock,
    SectionLabel,
    Track,
    VoltaEnding,
)
from leadsheet.timeline_aligner import align


def _note(start: int, duration: int = 4) -> MelodyEvent:
    return MelodyEvent(start=start, duration=duration, pitch=Pitch(PitchClass(0), 4))


def _chord(start: int, duration: int = 4, annotation: Annotation = Annotation.NONE) -> HarmonyEvent:
    return HarmonyEvent(
        start=start,
        duration=duration,
        root=PitchClass(0),
        quality=Quality.MAJ,
        annotation=annotation,
    )


def test_lyric_without_note_is_rejected() -> None:
    tracks = RawTracks(
        melody=(_note(0), _note(4), _note(8)),
        lyrics=(LyricEvent(time=5, text="me"),),
    )
    with pytest.raises(MisalignedLyricError) as exc_info:
        align(tracks)
    assert exc_info.value.time == 5


def test_identical_harmony_spans_are_rejected() -> None:
    tracks = RawTracks(harmony=(_chord(0), _chord(0)))
    with pytest.raises(OverlappingHarmonyError) as exc_info:
        align(tracks)
    assert exc_info.value.time == 0


def test_partially_overlapping_harmony_is_rejected() -> None:
    tracks = RawTracks(harmony=(_chord(0), _chord(2)))
    with pytest.raises(OverlappingHarmonyError) as exc_info:
        align(tracks)
    assert exc_info.value.time == 2


def test_parenthesized_chords_form_their_own_sub_track() -> None:
    tracks = RawTracks(harmony=(_chord(0), _chord(0, annotation=Annotation.PARENTHESIZED)))
    timeline = align(tracks)
    assert len(timeline.on_track(Track.HARMONY)) == 2


def test_harmony_gaps_are_legal() -> None:
    tracks = RawTracks(
        harmony=(_chord(0), _chord(8)),
        melody=tuple(_note(t) for t in (0, 4, 8)),
    )
    timeline = align(tracks)
    assert [entry.time for entry in timeline.on_track(Track.HARMONY)] == [0, 8]
    assert timeline.end_time == 12


def test_same_time_entries_follow_draw_order() -> None:
    tracks = RawTracks(
        lyrics=(LyricEvent(time=0, text="All"),),
        melody=(_note(0),),
        harmony=(_chord(0),),
        labels=(SectionLabel(time=0, text="A"),),
    )
    timeline = align(tracks)
    assert [entry.track for entry in timeline.entries] == [
        Track.LABEL,
        Track.HARMONY,
        Track.MELODY,
        Track.LYRIC,
    ]


def test_ties_within_a_track_keep_input_order() -> None:
    tracks = RawTracks(labels=(SectionLabel(0, "Intro"), SectionLabel(0, "A")))
    timeline = align(tracks)
    assert [entry.event.text for entry in timeline.entries] == ["Intro", "A"]  # type: ignore[union-attr]


def test_entries_are_time_ordered() -> None:
    tracks = RawTracks(melody=(_note(8), _note(0), _note(4)))
    assert [entry.time for entry in align(tracks).entries] == [0, 4, 8]


def test_earliest_violation_is_reported_first() -> None:
    late_overlap = RawTracks(
        harmony=(_chord(4), _chord(6)),
        melody=(_note(0),),
        lyrics=(LyricEvent(time=2, text="of"),),
    )
    with pytest.raises(MisalignedLyricError):
        align(late_overlap)

    early_overlap = RawTracks(
        harmony=(_chord(0), _chord(1)),
        melody=(_note(0),),
        lyrics=(LyricEvent(time=2, text="of"),),
    )
    with pytest.raises(OverlappingHarmonyError):
        align(early_overlap)


def test_overlapping_repeats_are_rejected() -> None:
    tracks = RawTracks(
        repeats=(
            RepeatBlock(0, 4, (VoltaEnding(4, 6),)),
            RepeatBlock(5, 8, (VoltaEnding(8, 9),)),
        )
    )
    with pytest.raises(OverlappingRepeatError) as exc_info:
        align(tracks)
    assert exc_info.value.time == 5


def test_timeline_keeps_repeats_sorted() -> None:
    second = RepeatBlock(8, 12, (VoltaEnding(12, 14),))
    first = RepeatBlock(0, 4, (VoltaEnding(4, 6),))
    timeline = align(RawTracks(repeats=(second, first)))
    assert timeline.repeats == (first, second)
    assert timeline.end_time == 14


def test_repeat_block_rejects_detached_endings() -> None:
    with pytest.raises(ValueError):
        RepeatBlock(0, 8, (VoltaEnding(9, 10),))
    with pytest.raises(ValueError):
        RepeatBlock(8, 8)


def test_events_reject_zero_duration() -> None:
    with pytest.raises(ValueError):
        _chord(0, duration=0)
    with pytest.raises(ValueError):
        _note(0, duration=0)
