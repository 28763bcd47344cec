"""Decoding of the parser's event-stream JSON into typed tracks."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, TypeVar

from leadsheet.errors import EventStreamError
from leadsheet.pitch import Key, Mode, parse_pitch, parse_pitch_class
from leadsheet.sheet_models import (
    Annotation,
    HarmonyEvent,
    LyricEvent,
    MelodyEvent,
    Quality,
    RawTracks,
    RepeatBlock,
    SectionLabel,
    SongInput,
    VoltaEnding,
)

T = TypeVar("T")


def _field(d: dict[str, Any], name: str, where: str) -> Any:
    if name not in d:
        raise EventStreamError(f"{where}: missing '{name}'.", data=d)
    return d[name]


def _int(d: dict[str, Any], name: str, where: str) -> int:
    value = _field(d, name, where)
    if isinstance(value, bool) or not isinstance(value, int):
        raise EventStreamError(f"{where}: '{name}' must be an integer, got {value!r}.", data=d)
    return value


def _harmony_from_dict(d: dict[str, Any], where: str) -> HarmonyEvent:
    bass = d.get("bass")
    return HarmonyEvent(
        start=_int(d, "start", where),
        duration=_int(d, "duration", where),
        root=parse_pitch_class(str(_field(d, "root", where))),
        quality=Quality(_field(d, "quality", where)),
        extensions=tuple(str(token) for token in d.get("extensions") or ()),
        annotation=Annotation(d.get("annotation", "none")),
        bass=parse_pitch_class(str(bass)) if bass else None,
    )


def _melody_from_dict(d: dict[str, Any], where: str) -> MelodyEvent:
    tuplet = d.get("tuplet")
    return MelodyEvent(
        start=_int(d, "start", where),
        duration=_int(d, "duration", where),
        pitch=parse_pitch(str(_field(d, "pitch", where))),
        tie_to_next=bool(d.get("tie", False)),
        tuplet_group=str(tuplet) if tuplet is not None else None,
    )


def _lyric_from_dict(d: dict[str, Any], where: str) -> LyricEvent:
    return LyricEvent(
        time=_int(d, "time", where),
        text=str(_field(d, "text", where)),
        hyphenated=bool(d.get("hyphenated", False)),
    )


def _label_from_dict(d: dict[str, Any], where: str) -> SectionLabel:
    return SectionLabel(time=_int(d, "time", where), text=str(_field(d, "text", where)))


def _repeat_from_dict(d: dict[str, Any], where: str) -> RepeatBlock:
    endings = []
    for index, span in enumerate(d.get("endings") or []):
        if not isinstance(span, (list, tuple)) or len(span) != 2:
            raise EventStreamError(f"{where}: each ending must be a [start, end] pair.", data=d)
        bounds = dict(zip(("start", "end"), span))
        ending_where = f"{where}.endings[{index}]"
        endings.append(
            VoltaEnding(_int(bounds, "start", ending_where), _int(bounds, "end", ending_where))
        )
    return RepeatBlock(
        start=_int(d, "start", where),
        end=_int(d, "end", where),
        alternatives=tuple(endings),
    )


def _decode_list(
    doc: dict[str, Any], name: str, decode: Callable[[dict[str, Any], str], T]
) -> tuple[T, ...]:
    items = doc.get(name) or []
    if not isinstance(items, list):
        raise EventStreamError(f"'{name}' must be a list.", data=items)
    decoded: list[T] = []
    for index, item in enumerate(items):
        where = f"{name}[{index}]"
        if not isinstance(item, dict):
            raise EventStreamError(f"{where}: expected an object.", data=item)
        try:
            decoded.append(decode(item, where))
        except (ValueError, TypeError) as exc:
            # Bad note names, enum values and model invariants all land here.
            raise EventStreamError(
                f"{where}: {exc}",
                time=item.get("start", item.get("time")),
                data=item,
            ) from exc
    return tuple(decoded)


def _key_from_dict(d: Any) -> Key | None:
    if d is None:
        return None
    if not isinstance(d, dict) or "tonic" not in d:
        raise EventStreamError("'key' must be an object with a 'tonic'.", data=d)
    try:
        return Key(parse_pitch_class(str(d["tonic"])), Mode(d.get("mode", "major")))
    except ValueError as exc:
        raise EventStreamError(f"key: {exc}", data=d) from exc


def song_from_dict(doc: dict[str, Any], default_title: str = "") -> SongInput:
    """
    Decode one event-stream document.

    Raises:
        EventStreamError: Naming the offending field if the document is malformed.
    """
    if not isinstance(doc, dict):
        raise EventStreamError("Event stream must be a JSON object.", data=doc)
    tracks = RawTracks(
        harmony=_decode_list(doc, "harmony", _harmony_from_dict),
        melody=_decode_list(doc, "melody", _melody_from_dict),
        lyrics=_decode_list(doc, "lyrics", _lyric_from_dict),
        labels=_decode_list(doc, "labels", _label_from_dict),
        repeats=_decode_list(doc, "repeats", _repeat_from_dict),
    )
    return SongInput(
        title=str(doc.get("title") or default_title),
        tracks=tracks,
        key=_key_from_dict(doc.get("key")),
    )


def load_song(path: str | Path) -> SongInput:
    """
    Read an event-stream JSON file. The title defaults to the file stem.

    Raises:
        EventStreamError: If the file is not valid JSON or is malformed.
        OSError: If the file cannot be read.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as fh:
        try:
            doc = json.load(fh)
        except json.JSONDecodeError as exc:
            raise EventStreamError(f"{path.name}: invalid JSON ({exc}).") from exc
    return song_from_dict(doc, default_title=path.stem.replace("_", " "))
