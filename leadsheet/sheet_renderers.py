"""Renderer implementations for lead sheet output formats."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from leadsheet.chord_resolver import NO_CHORD_SYMBOL
from leadsheet.sheet_models import (
    Annotation,
    HarmonyEvent,
    MelodyEvent,
    RenderableLeadSheet,
    TimelineEntry,
    Track,
)


class SheetRenderer(ABC):
    """Abstract lead sheet renderer."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(self, sheet: RenderableLeadSheet) -> str:
        """Render output into a file content string."""


class JsonSheetRenderer(SheetRenderer):
    """Serialize a lead sheet into the JSON payload read by layout backends."""

    @property
    def default_extension(self) -> str:
        return ".json"

    def _entry_payload(self, entry: TimelineEntry) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "time": entry.time,
            "track": entry.track.value,
            "display": entry.display,
        }
        event = entry.event
        if isinstance(event, HarmonyEvent):
            payload["duration"] = event.duration
            payload["printed"] = entry.display != NO_CHORD_SYMBOL
            payload["parenthesized"] = event.annotation is Annotation.PARENTHESIZED
        elif isinstance(event, MelodyEvent):
            payload["duration"] = event.duration
            payload["midi"] = event.pitch.midi
            payload["tie"] = event.tie_to_next
            payload["tuplet"] = event.tuplet_group
        if entry.pass_number is not None:
            payload["pass"] = entry.pass_number
        return payload

    def payload(self, sheet: RenderableLeadSheet) -> dict[str, Any]:
        return {
            "title": sheet.title,
            "key": sheet.key.name() if sheet.key is not None else None,
            "transposition": sheet.transposition,
            "entries": [self._entry_payload(entry) for entry in sheet.entries],
            "brackets": [
                {"start": b.start, "end": b.end, "kind": b.kind, "number": b.number}
                for b in sheet.brackets
            ],
            "warnings": [{"time": w.time, "message": w.message} for w in sheet.warnings],
        }

    def render(self, sheet: RenderableLeadSheet) -> str:
        return json.dumps(self.payload(sheet), ensure_ascii=False, indent=2) + "\n"


class TextChartRenderer(SheetRenderer):
    """
    Render a plain-text proof chart with one column per onset.

    Rows are drawn top to bottom in track draw order: labels, chords,
    melody, lyrics. Every column is as wide as its widest cell.
    """

    _ROWS: tuple[tuple[Track, str], ...] = (
        (Track.LABEL, "Section"),
        (Track.HARMONY, "Chords"),
        (Track.MELODY, "Melody"),
        (Track.LYRIC, "Lyrics"),
    )
    _WRAP: int = 16  # columns per system

    @property
    def default_extension(self) -> str:
        return ".txt"

    def _cells(self, sheet: RenderableLeadSheet) -> tuple[list[int], dict[tuple[int, Track], str]]:
        times: list[int] = []
        cells: dict[tuple[int, Track], str] = {}
        for entry in sheet.entries:
            if entry.time not in times:
                times.append(entry.time)
            text = entry.display or ""
            slot = (entry.time, entry.track)
            cells[slot] = f"{cells[slot]} {text}".strip() if slot in cells else text
        return times, cells

    def _system(self, times: list[int], cells: dict[tuple[int, Track], str]) -> list[str]:
        widths = [
            max(len(cells.get((time, track), "")) for track, _ in self._ROWS) for time in times
        ]
        label_width = max(len(name) for _, name in self._ROWS)
        lines = []
        for track, name in self._ROWS:
            row = [cells.get((time, track), "").ljust(width) for time, width in zip(times, widths)]
            if any(cell.strip() for cell in row):
                lines.append(f"{name.ljust(label_width)} | " + " ".join(row).rstrip())
        return lines

    def render(self, sheet: RenderableLeadSheet) -> str:
        heading = sheet.title or "Untitled"
        key_text = f", key of {sheet.key.name()}" if sheet.key is not None else ""
        lines = [f"{heading} ({sheet.transposition}{key_text})", ""]

        times, cells = self._cells(sheet)
        for index in range(0, len(times), self._WRAP):
            lines.extend(self._system(times[index : index + self._WRAP], cells))
            lines.append("")

        for bracket in sheet.brackets:
            if bracket.kind == "repeat":
                lines.append(f"Repeat {bracket.start}-{bracket.end} x{bracket.number}")
            else:
                lines.append(f"  Ending {bracket.number}: {bracket.start}-{bracket.end}")
        for warning in sheet.warnings:
            lines.append(f"WARNING t={warning.time}: {warning.message}")
        return "\n".join(lines).rstrip() + "\n"
