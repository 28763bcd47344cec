"""LeadSheetAssembler: Runs transposition, alignment, chord naming and expansion."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace

from leadsheet.chord_resolver import NO_CHORD_SYMBOL, ChordResolver, ExceptionsTable, suppress_repeats
from leadsheet.config import AssemblyConfig
from leadsheet.errors import LeadSheetError
from leadsheet.pitch import Key, transpose_event, transpose_key
from leadsheet.sheet_models import (
    HarmonyEvent,
    LyricEvent,
    MelodyEvent,
    RawTracks,
    RenderableLeadSheet,
    SectionLabel,
    SongInput,
    Timeline,
    TimelineEntry,
    TrackEvent,
)
from leadsheet.structure_expander import ExpansionMode, expand
from leadsheet.timeline_aligner import align

logger = logging.getLogger(__name__)


def transpose_tracks(tracks: RawTracks, interval: int, key: Key | None = None) -> RawTracks:
    """Transpose every pitched event; timing and structure are untouched."""
    if interval == 0:
        return tracks
    return replace(
        tracks,
        harmony=tuple(transpose_event(chord, interval, key) for chord in tracks.harmony),
        melody=tuple(transpose_event(note, interval, key) for note in tracks.melody),
    )


def _plain_display(event: TrackEvent, key: Key | None) -> str:
    if isinstance(event, MelodyEvent):
        return event.pitch.name(key)
    if isinstance(event, LyricEvent):
        return f"{event.text}-" if event.hyphenated else event.text
    if isinstance(event, SectionLabel):
        return event.text
    raise TypeError(f"Unexpected timeline event {event!r}.")


def resolve_displays(
    timeline: Timeline,
    resolver: ChordResolver,
    key: Key | None = None,
    change_suppression: bool = True,
) -> Timeline:
    """Return a new timeline whose entries carry their printed content."""
    chords = [entry.event for entry in timeline.entries if isinstance(entry.event, HarmonyEvent)]
    symbols = iter(resolver.resolve_track(chords, key, change_suppression))  # type: ignore[arg-type]

    entries: list[TimelineEntry] = []
    for entry in timeline.entries:
        if isinstance(entry.event, HarmonyEvent):
            display = next(symbols)
        else:
            display = _plain_display(entry.event, key)
        entries.append(replace(entry, display=display))
    return replace(timeline, entries=tuple(entries))


def suppress_changes(timeline: Timeline) -> Timeline:
    """
    Blank chord displays that repeat the last printed chord, in entry order.

    Run on the expanded timeline so an unrolled second pass compares against
    the chord actually played before it, not the one written before it.
    """
    positions = [i for i, entry in enumerate(timeline.entries) if isinstance(entry.event, HarmonyEvent)]
    chords = [timeline.entries[i].event for i in positions]
    symbols = [timeline.entries[i].display or NO_CHORD_SYMBOL for i in positions]
    shown = suppress_repeats(chords, symbols)  # type: ignore[arg-type]

    entries = list(timeline.entries)
    for i, display in zip(positions, shown):
        entries[i] = replace(entries[i], display=display)
    return replace(timeline, entries=tuple(entries))


def assemble(
    raw_tracks: RawTracks,
    transpose_interval: int = 0,
    exceptions_table: ExceptionsTable | None = None,
    key: Key | None = None,
    *,
    change_suppression: bool = True,
    expansion: ExpansionMode = ExpansionMode.UNROLL,
    title: str = "",
    transposition_text: str | None = None,
) -> RenderableLeadSheet:
    """
    Build a renderable lead sheet from decoded tracks.

    Stages run in order: transpose, align, resolve chord symbols, expand
    repeats. Change suppression is applied last, over the rendering order
    (playback order when unrolled, written order for brackets). The first
    failing stage's error propagates unchanged and no partial sheet is
    produced.

    Args:
        raw_tracks:         Decoded harmony, melody, lyric, label and repeat data.
        transpose_interval: Signed semitones to move every pitched event.
        exceptions_table:   Chord naming overrides (see ``build_exceptions_table``).
        key:                Written key; biases accidental spelling.
        change_suppression: Blank chord symbols that repeat the last printed one.
        expansion:          Unroll repeats or annotate them as brackets.
        title:              Song title carried through to the output.
        transposition_text: Instrument label; defaults to "Concert" or the interval.

    Raises:
        LeadSheetError: Any of its subclasses, from the stage that failed.
    """
    active_key = transpose_key(key, transpose_interval) if key is not None else None
    if transposition_text is None:
        transposition_text = "Concert" if transpose_interval == 0 else f"{transpose_interval:+d}"

    tracks = transpose_tracks(raw_tracks, transpose_interval, active_key)
    timeline = align(tracks)
    logger.debug("Aligned %d entries for '%s'.", len(timeline.entries), title)

    resolver = ChordResolver(exceptions_table)
    timeline = resolve_displays(timeline, resolver, active_key, change_suppression=False)
    expansion_result = expand(timeline, expansion)
    laid_out = expansion_result.timeline
    if change_suppression:
        laid_out = suppress_changes(laid_out)

    return RenderableLeadSheet(
        title=title,
        key=active_key,
        transposition=transposition_text,
        entries=laid_out.entries,
        brackets=laid_out.brackets,
        warnings=expansion_result.warnings,
    )


def assemble_song(song: SongInput, config: AssemblyConfig) -> RenderableLeadSheet:
    """Assemble one song with a shared configuration."""
    return assemble(
        song.tracks,
        config.transpose_interval,
        config.exceptions_table,
        config.key if config.key is not None else song.key,
        change_suppression=config.change_suppression,
        expansion=config.expansion,
        title=song.title,
        transposition_text=config.transposition_text,
    )


@dataclass(frozen=True)
class BookEntry:
    """Outcome for one song of a book: a sheet or the error that stopped it."""

    title: str
    sheet: RenderableLeadSheet | None = None
    error: LeadSheetError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def assemble_book(songs: Iterable[SongInput], config: AssemblyConfig) -> list[BookEntry]:
    """
    Assemble many songs independently, sorted by title.

    A song that fails is recorded with its error; the rest still assemble.
    """
    results: list[BookEntry] = []
    for song in sorted(songs, key=lambda s: s.title):
        try:
            sheet = assemble_song(song, config)
        except LeadSheetError as exc:
            logger.warning("Skipping '%s': %s", song.title, exc)
            results.append(BookEntry(title=song.title, error=exc))
            continue
        logger.info("Assembled '%s' (%d entries).", song.title, len(sheet.entries))
        results.append(BookEntry(title=song.title, sheet=sheet))
    return results
