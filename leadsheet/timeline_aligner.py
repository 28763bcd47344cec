"""TimelineAligner: Merges harmony, melody and lyric tracks onto one time axis."""

from __future__ import annotations

from leadsheet.errors import (
    LeadSheetError,
    MisalignedLyricError,
    OverlappingHarmonyError,
    OverlappingRepeatError,
)
from leadsheet.sheet_models import (
    Annotation,
    HarmonyEvent,
    LyricEvent,
    RawTracks,
    Timeline,
    TimelineEntry,
    Track,
    TRACK_ORDER,
    TrackEvent,
)


def _merged_entries(tracks: RawTracks) -> list[TimelineEntry]:
    """All events as entries, ordered by time, then track draw order, then input order."""
    tagged: list[tuple[int, int, int, TimelineEntry]] = []

    def add(track: Track, time: int, event: TrackEvent) -> None:
        entry = TimelineEntry(time=time, track=track, event=event)
        tagged.append((time, TRACK_ORDER[track], len(tagged), entry))

    for label in tracks.labels:
        add(Track.LABEL, label.time, label)
    for chord in tracks.harmony:
        add(Track.HARMONY, chord.start, chord)
    for note in tracks.melody:
        add(Track.MELODY, note.start, note)
    for syllable in tracks.lyrics:
        add(Track.LYRIC, syllable.time, syllable)

    tagged.sort(key=lambda item: item[:3])
    return [entry for *_, entry in tagged]


def _repeat_overlap(tracks: RawTracks) -> OverlappingRepeatError | None:
    blocks = sorted(tracks.repeats, key=lambda block: block.start)
    for previous, current in zip(blocks, blocks[1:]):
        if current.start < previous.written_end:
            return OverlappingRepeatError(
                f"Repeat starting at t={current.start} overlaps the repeat "
                f"{previous.start}..{previous.written_end}.",
                time=current.start,
                data=(previous, current),
            )
    return None


def _check_chord(chord: HarmonyEvent, sub_track_ends: dict[Annotation, HarmonyEvent]) -> None:
    previous = sub_track_ends.get(chord.annotation)
    if previous is not None and chord.start < previous.end:
        raise OverlappingHarmonyError(
            f"Chord at t={chord.start} overlaps the chord spanning "
            f"{previous.start}..{previous.end}.",
            time=chord.start,
            data=(previous, chord),
        )
    sub_track_ends[chord.annotation] = chord


def _check_syllable(syllable: LyricEvent, note_starts: set[int]) -> None:
    if syllable.time not in note_starts:
        raise MisalignedLyricError(
            f"Syllable '{syllable.text}' at t={syllable.time} has no melody note "
            "starting at that time.",
            time=syllable.time,
            data=syllable,
        )


def align(tracks: RawTracks) -> Timeline:
    """
    Merge raw tracks into a single validated Timeline.

    Entries are checked in timeline order, so the violation reported is
    always the earliest one.

    Raises:
        OverlappingHarmonyError: If two chords on the same sub-track overlap.
            Primary and parenthesized chords are separate sub-tracks.
        MisalignedLyricError: If a syllable's time matches no melody note start.
        OverlappingRepeatError: If repeat blocks share timeline positions.
    """
    entries = _merged_entries(tracks)
    note_starts = {note.start for note in tracks.melody}
    sub_track_ends: dict[Annotation, HarmonyEvent] = {}
    pending: LeadSheetError | None = _repeat_overlap(tracks)

    for entry in entries:
        if pending is not None and pending.time is not None and pending.time < entry.time:
            raise pending
        if isinstance(entry.event, HarmonyEvent):
            _check_chord(entry.event, sub_track_ends)
        elif isinstance(entry.event, LyricEvent):
            _check_syllable(entry.event, note_starts)

    if pending is not None:
        raise pending

    end_candidates = [0]
    end_candidates += [chord.end for chord in tracks.harmony]
    end_candidates += [note.end for note in tracks.melody]
    end_candidates += [block.written_end for block in tracks.repeats]
    end_candidates += [label.time for label in tracks.labels]

    return Timeline(
        entries=tuple(entries),
        repeats=tuple(sorted(tracks.repeats, key=lambda block: block.start)),
        end_time=max(end_candidates),
    )
