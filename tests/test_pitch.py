"""Unit tests for pitch-class arithmetic and transposition."""

import pytest

from leadsheet.pitch import (
    Key,
    Mode,
    Pitch,
    PitchClass,
    Spelling,
    parse_pitch,
    parse_pitch_class,
    transpose,
    transpose_event,
    transpose_key,
    transpose_pitch,
)
from leadsheet.sheet_models import HarmonyEvent, LyricEvent, MelodyEvent, Quality, SectionLabel


def test_pitch_class_wraps_modulo_twelve() -> None:
    assert PitchClass(13).value == 1
    assert PitchClass(-1).value == 11


def test_pitch_class_rejects_non_integers() -> None:
    with pytest.raises(ValueError):
        PitchClass(1.5)  # type: ignore[arg-type]


def test_spelling_does_not_affect_equality() -> None:
    assert PitchClass(1, Spelling.SHARP) == PitchClass(1, Spelling.FLAT)


def test_pitch_class_names() -> None:
    assert PitchClass(3).name() == "Eb"
    assert PitchClass(6).name() == "F#"
    assert PitchClass(1, Spelling.SHARP).name() == "C#"
    assert PitchClass(10, Spelling.SHARP).name(Key(PitchClass(5))) == "A#"


def test_key_spelling_bias() -> None:
    assert Key(PitchClass(5)).prefers_flats  # F major
    assert not Key(PitchClass(7)).prefers_flats  # G major
    assert Key(PitchClass(2), Mode.MINOR).prefers_flats  # D minor
    assert not Key(PitchClass(4), Mode.MINOR).prefers_flats  # E minor
    assert Key(PitchClass(6, Spelling.FLAT)).prefers_flats  # Gb major
    assert not Key(PitchClass(6, Spelling.SHARP)).prefers_flats  # F# major


def test_key_name() -> None:
    assert Key(PitchClass(10)).name() == "Bb"
    assert Key(PitchClass(9), Mode.MINOR).name() == "Am"


def test_transpose_follows_key_spelling() -> None:
    assert transpose(PitchClass(0), 3, Key(PitchClass(5))).name() == "Eb"
    assert transpose(PitchClass(0), 3, Key(PitchClass(7))).name() == "D#"


def test_transpose_without_key_keeps_spelling() -> None:
    moved = transpose(PitchClass(1, Spelling.SHARP), 2)
    assert moved.value == 3
    assert moved.name() == "D#"


def test_transpose_by_zero_is_identity() -> None:
    pc = PitchClass(4, Spelling.FLAT)
    assert transpose(pc, 0, Key(PitchClass(7))) is pc


def test_parse_pitch_class() -> None:
    assert parse_pitch_class("Bb") == PitchClass(10)
    assert parse_pitch_class("Bb").spelling is Spelling.FLAT
    assert parse_pitch_class("E♭").value == 3
    assert parse_pitch_class("f#").spelling is Spelling.SHARP
    assert parse_pitch_class("c").spelling is None
    assert parse_pitch_class("Cb").value == 11


@pytest.mark.parametrize("text", ["", "H", "C#b", "X4"])
def test_parse_pitch_class_rejects_garbage(text: str) -> None:
    with pytest.raises(ValueError):
        parse_pitch_class(text)


def test_parse_pitch() -> None:
    assert parse_pitch("C4").midi == 60
    low = parse_pitch("F#-1")
    assert low.octave == -1
    assert low.pitch_class.value == 6
    assert low.name() == "F#-1"


def test_parse_pitch_requires_octave() -> None:
    with pytest.raises(ValueError):
        parse_pitch("C")


def test_transpose_pitch_carries_octave() -> None:
    assert transpose_pitch(Pitch(PitchClass(11), 4), 1) == Pitch(PitchClass(0), 5)
    assert transpose_pitch(Pitch(PitchClass(0), 4), -1) == Pitch(PitchClass(11), 3)


def test_transpose_key_keeps_flat_preference_for_f_sharp_tonic() -> None:
    assert transpose_key(Key(PitchClass(5)), 1).name() == "Gb"
    assert transpose_key(Key(PitchClass(7)), -1).name() == "F#"


def test_transpose_event_moves_only_pitches() -> None:
    chord = HarmonyEvent(
        start=4,
        duration=2,
        root=PitchClass(0),
        quality=Quality.DOMINANT7,
        extensions=("b9",),
        bass=PitchClass(4),
    )
    moved = transpose_event(chord, 5)
    assert moved.root == PitchClass(5)
    assert moved.bass == PitchClass(9)
    assert (moved.start, moved.duration, moved.quality, moved.extensions) == (
        4,
        2,
        Quality.DOMINANT7,
        ("b9",),
    )


def test_transpose_event_leaves_lyrics_and_labels() -> None:
    syllable = LyricEvent(time=0, text="All")
    label = SectionLabel(time=0, text="A")
    assert transpose_event(syllable, 3) is syllable
    assert transpose_event(label, 3) is label


def test_transpose_round_trip_restores_every_note() -> None:
    notes = [
        MelodyEvent(start=i, duration=1, pitch=Pitch(PitchClass(i), 4), tie_to_next=i % 2 == 0)
        for i in range(12)
    ]
    key = Key(PitchClass(3))
    for interval in range(-11, 12):
        restored = [transpose_event(transpose_event(n, interval, key), -interval, key) for n in notes]
        assert restored == notes


def test_transpose_key_respells_tonic_for_new_signature() -> None:
    assert transpose_key(Key(PitchClass(0)), 10).name() == "Bb"
    assert transpose_key(Key(PitchClass(5)), 6).name() == "B"
