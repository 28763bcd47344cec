"""Data models for lead sheet tracks, timelines and renderable output."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from leadsheet.pitch import Key, Pitch, PitchClass


class Quality(str, Enum):
    MAJ = "maj"
    MIN = "min"
    DOMINANT7 = "dominant7"
    MIN7 = "min7"
    MAJ7 = "maj7"
    MIN_MAJ7 = "min_maj7"
    DIM = "dim"
    DIM7 = "dim7"
    HALF_DIM = "half_dim"
    AUG = "aug"
    SUS2 = "sus2"
    SUS4 = "sus4"
    MAJ6 = "maj6"
    MIN6 = "min6"
    DOMINANT9 = "dominant9"
    POWER = "power"


class Annotation(str, Enum):
    NONE = "none"
    PARENTHESIZED = "parenthesized"


class Track(str, Enum):
    LABEL = "label"
    HARMONY = "harmony"
    MELODY = "melody"
    LYRIC = "lyric"


#: Draw order for entries sharing a timestamp: labels first, lyrics last.
TRACK_ORDER: dict[Track, int] = {
    Track.LABEL: 0,
    Track.HARMONY: 1,
    Track.MELODY: 2,
    Track.LYRIC: 3,
}


def _check_duration(duration: int, what: str) -> None:
    if duration < 1:
        raise ValueError(f"{what} duration must be at least 1 time unit, got {duration}.")


@dataclass(frozen=True)
class HarmonyEvent:
    """
    A time-spanning chord on the harmony track.

    Attributes:
        start:      Start time in timeline units.
        duration:   Length in timeline units (>= 1).
        root:       Chord root.
        quality:    Chord quality.
        extensions: Interval alteration tokens in authoring order, e.g. ("b9", "#11").
        annotation: ``PARENTHESIZED`` marks an optional/substitute chord.
        bass:       Slash-chord bass note, if any.
    """

    start: int
    duration: int
    root: PitchClass
    quality: Quality
    extensions: tuple[str, ...] = ()
    annotation: Annotation = Annotation.NONE
    bass: PitchClass | None = None

    def __post_init__(self) -> None:
        _check_duration(self.duration, "Harmony event")
        object.__setattr__(self, "extensions", tuple(self.extensions))

    @property
    def end(self) -> int:
        return self.start + self.duration


@dataclass(frozen=True)
class MelodyEvent:
    """A single melody note."""

    start: int
    duration: int
    pitch: Pitch
    tie_to_next: bool = False
    tuplet_group: str | None = None

    def __post_init__(self) -> None:
        _check_duration(self.duration, "Melody event")

    @property
    def end(self) -> int:
        return self.start + self.duration


@dataclass(frozen=True)
class LyricEvent:
    """A sung syllable attached to the melody note starting at ``time``."""

    time: int
    text: str
    hyphenated: bool = False


@dataclass(frozen=True)
class SectionLabel:
    time: int
    text: str


@dataclass(frozen=True)
class VoltaEnding:
    """The written span of one repeat alternative."""

    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class RepeatBlock:
    """
    A repeated body [start, end) followed by its volta endings.

    Endings are written back to back after the body: ending 1 starts at
    ``end`` and every following ending starts where the previous one stops.
    One ending plays per pass, so the pass count equals the ending count.
    """

    start: int
    end: int
    alternatives: tuple[VoltaEnding, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "alternatives", tuple(self.alternatives))
        if self.end <= self.start:
            raise ValueError(f"Repeat block must end after it starts ({self.start}..{self.end}).")
        cursor = self.end
        for number, ending in enumerate(self.alternatives, start=1):
            if ending.start != cursor or ending.end <= ending.start:
                raise ValueError(
                    f"Ending {number} of the repeat at {self.start} must span from {cursor} "
                    f"onwards, got {ending.start}..{ending.end}."
                )
            cursor = ending.end

    @property
    def written_end(self) -> int:
        """Where written content continues after the last ending."""
        if not self.alternatives:
            return self.end
        return self.alternatives[-1].end


TrackEvent = Union[HarmonyEvent, MelodyEvent, LyricEvent, SectionLabel]


@dataclass(frozen=True)
class TimelineEntry:
    """
    One event placed on the shared time axis.

    ``display`` is filled in by the assembler with the content a renderer
    prints (chord symbol, pitch name, syllable or label text).
    ``pass_number`` is set on entries played inside a repeat once the
    timeline has been unrolled.
    """

    time: int
    track: Track
    event: TrackEvent
    display: str | None = None
    pass_number: int | None = None


@dataclass(frozen=True)
class BracketSpan:
    """A graphical repeat bar pair (``kind="repeat"``) or volta bracket (``kind="ending"``)."""

    start: int
    end: int
    kind: str
    number: int


@dataclass(frozen=True)
class Timeline:
    entries: tuple[TimelineEntry, ...]
    repeats: tuple[RepeatBlock, ...] = ()
    brackets: tuple[BracketSpan, ...] = ()
    end_time: int = 0

    def on_track(self, track: Track) -> tuple[TimelineEntry, ...]:
        return tuple(entry for entry in self.entries if entry.track is track)


@dataclass(frozen=True)
class RawTracks:
    """Already-decoded input tracks for one song."""

    harmony: tuple[HarmonyEvent, ...] = ()
    melody: tuple[MelodyEvent, ...] = ()
    lyrics: tuple[LyricEvent, ...] = ()
    labels: tuple[SectionLabel, ...] = ()
    repeats: tuple[RepeatBlock, ...] = ()

    def __post_init__(self) -> None:
        for name in ("harmony", "melody", "lyrics", "labels", "repeats"):
            object.__setattr__(self, name, tuple(getattr(self, name)))


@dataclass(frozen=True)
class SongInput:
    """One song as handed over by the parser: title, written key and tracks."""

    title: str
    tracks: RawTracks
    key: Key | None = None


@dataclass(frozen=True)
class AssemblyWarning:
    """A survivable problem reported alongside a successful result."""

    time: int
    message: str


@dataclass(frozen=True)
class RenderableLeadSheet:
    """Neutral lead sheet consumed by rendering backends."""

    title: str
    key: Key | None
    transposition: str
    entries: tuple[TimelineEntry, ...]
    brackets: tuple[BracketSpan, ...] = ()
    warnings: tuple[AssemblyWarning, ...] = field(default_factory=tuple)

    def displays(self, track: Track) -> list[str | None]:
        """Display content of every entry on ``track``, in order."""
        return [entry.display for entry in self.entries if entry.track is track]
