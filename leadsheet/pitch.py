"""Pitch-class arithmetic and transposition for lead sheet tracks."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TypeVar

SEMITONES_PER_OCTAVE = 12

SHARP_NAMES: list[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
FLAT_NAMES: list[str] = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]
# Lead-sheet default when neither the pitch nor a key expresses a preference.
NEUTRAL_NAMES: list[str] = ["C", "Db", "D", "Eb", "E", "F", "F#", "G", "Ab", "A", "Bb", "B"]

_LETTER_TO_PC: dict[str, int] = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}

# Relative-major tonics whose key signatures use flats.
_FLAT_MAJOR_TONICS: frozenset[int] = frozenset({1, 3, 5, 8, 10})


class Spelling(str, Enum):
    """Accidental preference used only when displaying a pitch class."""

    SHARP = "sharp"
    FLAT = "flat"


class Mode(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    OTHER = "other"


@dataclass(frozen=True)
class PitchClass:
    """
    A chromatic step above C (0-11) with an optional display spelling.

    The spelling never takes part in equality: ``PitchClass(1, SHARP)`` and
    ``PitchClass(1, FLAT)`` are the same pitch class.
    """

    value: int
    spelling: Spelling | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"Pitch class must be an integer, got {self.value!r}.")
        object.__setattr__(self, "value", self.value % SEMITONES_PER_OCTAVE)

    def name(self, key: Key | None = None) -> str:
        """Display name, e.g. 'Eb'. Own spelling wins over the key's bias."""
        spelling = self.spelling
        if spelling is None and key is not None:
            spelling = key.spelling
        if spelling is Spelling.SHARP:
            return SHARP_NAMES[self.value]
        if spelling is Spelling.FLAT:
            return FLAT_NAMES[self.value]
        return NEUTRAL_NAMES[self.value]


@dataclass(frozen=True)
class Pitch:
    """A sounding pitch: pitch class plus scientific octave (C4 = middle C)."""

    pitch_class: PitchClass
    octave: int

    @property
    def midi(self) -> int:
        return (self.octave + 1) * SEMITONES_PER_OCTAVE + self.pitch_class.value

    def name(self, key: Key | None = None) -> str:
        return f"{self.pitch_class.name(key)}{self.octave}"


@dataclass(frozen=True)
class Key:
    """Tonic and mode; only used to bias accidental spelling."""

    tonic: PitchClass
    mode: Mode = Mode.MAJOR

    @property
    def prefers_flats(self) -> bool:
        relative_major = self.tonic.value
        if self.mode is Mode.MINOR:
            relative_major = (relative_major + 3) % SEMITONES_PER_OCTAVE
        if relative_major == 6:
            # F# major / Gb major: no winner, follow the tonic's own spelling.
            return self.tonic.spelling is Spelling.FLAT
        return relative_major in _FLAT_MAJOR_TONICS

    @property
    def spelling(self) -> Spelling:
        return Spelling.FLAT if self.prefers_flats else Spelling.SHARP

    def name(self) -> str:
        suffix = "m" if self.mode is Mode.MINOR else ""
        return f"{self.tonic.name(self)}{suffix}"


def parse_pitch_class(text: str) -> PitchClass:
    """
    Parse a note name like 'Bb', 'F#' or 'E♭' into a PitchClass.

    An explicit accidental sets the spelling bias; a natural leaves it unset.

    Raises:
        ValueError: If the text is not a note name.
    """
    raw = (text or "").strip().replace("♭", "b").replace("♯", "#")
    if not raw or raw[0].upper() not in _LETTER_TO_PC:
        raise ValueError(f"Unknown note name '{text}'.")
    value = _LETTER_TO_PC[raw[0].upper()]
    accidentals = raw[1:]
    if accidentals and set(accidentals) == {"#"}:
        return PitchClass(value + len(accidentals), Spelling.SHARP)
    if accidentals and set(accidentals) == {"b"}:
        return PitchClass(value - len(accidentals), Spelling.FLAT)
    if accidentals:
        raise ValueError(f"Unknown note name '{text}'.")
    return PitchClass(value)


def parse_pitch(text: str) -> Pitch:
    """Parse 'C4', 'Bb3' or 'F#-1' into a Pitch."""
    raw = (text or "").strip()
    idx = len(raw)
    while idx > 0 and (raw[idx - 1].isdigit() or raw[idx - 1] == "-"):
        idx -= 1
    octave_text = raw[idx:]
    if not octave_text or octave_text in {"-"}:
        raise ValueError(f"Pitch '{text}' has no octave.")
    try:
        octave = int(octave_text)
    except ValueError as exc:
        raise ValueError(f"Pitch '{text}' has an invalid octave.") from exc
    return Pitch(parse_pitch_class(raw[:idx]), octave)


# ------------------------------------------------------------------
# Transposition
# ------------------------------------------------------------------


def transpose(pitch: PitchClass, interval: int, key: Key | None = None) -> PitchClass:
    """
    Move a pitch class by a signed number of semitones.

    With an active key the result is spelled the way that key spells
    accidentals; otherwise the pitch keeps its own bias. Transposing by 0
    returns the input unchanged.
    """
    if interval == 0:
        return pitch
    spelling = key.spelling if key is not None else pitch.spelling
    return PitchClass(pitch.value + interval, spelling)


def transpose_pitch(pitch: Pitch, interval: int, key: Key | None = None) -> Pitch:
    """Transpose a sounding pitch, carrying the octave across C."""
    if interval == 0:
        return pitch
    octave_shift, _ = divmod(pitch.pitch_class.value + interval, SEMITONES_PER_OCTAVE)
    return Pitch(transpose(pitch.pitch_class, interval, key), pitch.octave + octave_shift)


def transpose_key(key: Key, interval: int) -> Key:
    """
    Move a key's tonic and respell it for the new key signature.

    The old key's sharp/flat preference only decides the F#/Gb tonic.
    """
    if interval == 0:
        return key
    value = key.tonic.value + interval
    moved = Key(PitchClass(value, key.spelling), key.mode)
    return Key(PitchClass(value, moved.spelling), key.mode)


EventT = TypeVar("EventT")


def transpose_event(event: EventT, interval: int, key: Key | None = None) -> EventT:
    """
    Return a copy of a track event with its pitches transposed.

    Harmony roots and bass notes and melody pitches move; timing, duration,
    quality and extensions never change. Events without pitch (lyrics,
    labels) come back as-is.
    """
    from leadsheet.sheet_models import HarmonyEvent, MelodyEvent

    if interval == 0:
        return event
    if isinstance(event, HarmonyEvent):
        bass = transpose(event.bass, interval, key) if event.bass is not None else None
        return replace(event, root=transpose(event.root, interval, key), bass=bass)  # type: ignore[return-value]
    if isinstance(event, MelodyEvent):
        return replace(event, pitch=transpose_pitch(event.pitch, interval, key))  # type: ignore[return-value]
    return event
