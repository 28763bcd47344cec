"""Assembly configuration: instrument presets and naming-exception loading."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from leadsheet.chord_resolver import EMPTY_EXCEPTIONS, ExceptionsTable, build_exceptions_table
from leadsheet.pitch import Key
from leadsheet.sheet_models import Quality
from leadsheet.structure_expander import ExpansionMode


@dataclass(frozen=True)
class Transposition:
    """How a book is written for one instrument."""

    display_text: str
    interval: int


TRANSPOSITIONS: Final[dict[str, Transposition]] = {
    "c": Transposition("Concert", 0),
    "bb": Transposition("Bb", 2),
    "eb": Transposition("Eb", -3),
    "testing-f": Transposition("Testing", 7),
}


def transposition_for(name: str) -> Transposition:
    """
    Look up an instrument preset by name (case-insensitive).

    Raises:
        ValueError: If the name is not a known preset.
    """
    preset = TRANSPOSITIONS.get(name.strip().lower())
    if preset is None:
        supported = ", ".join(TRANSPOSITIONS)
        raise ValueError(f"Unable to parse transpose input of [{name}]. Use one of: {supported}.")
    return preset


def load_exceptions_table(path: str | Path) -> ExceptionsTable:
    """
    Read a naming-exception table from JSON.

    The file holds a list of objects::

        [{"quality": "min7", "extensions": [], "symbol": "-7"}]

    Raises:
        ValueError: If an entry is malformed or names an unknown quality.
        OSError: If the file cannot be read.
    """
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, list):
        raise ValueError(f"Exceptions table '{path}' must be a JSON list.")

    entries: list[tuple[Quality, tuple[str, ...], str]] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or "quality" not in item or "symbol" not in item:
            raise ValueError(f"Exceptions entry {index} needs 'quality' and 'symbol'.")
        try:
            quality = Quality(item["quality"])
        except ValueError as exc:
            raise ValueError(f"Exceptions entry {index}: unknown quality '{item['quality']}'.") from exc
        extensions = item.get("extensions") or []
        if not isinstance(extensions, list) or not all(isinstance(t, str) for t in extensions):
            raise ValueError(f"Exceptions entry {index}: 'extensions' must be a list of strings.")
        entries.append((quality, tuple(extensions), str(item["symbol"])))
    return build_exceptions_table(entries)


@dataclass(frozen=True)
class AssemblyConfig:
    """
    Everything ``assemble`` needs besides the song itself.

    Attributes:
        exceptions_table:   Immutable naming overrides, shared read-only.
        change_suppression: Blank chord symbols that repeat the last printed one.
        key:                Key override; ``None`` uses each song's own key.
        transpose_interval: Signed semitones applied to every pitched event.
        transposition_text: Instrument label shown on the sheet.
        expansion:          Unroll repeats or describe them as brackets.
    """

    exceptions_table: ExceptionsTable = field(default_factory=lambda: EMPTY_EXCEPTIONS)
    change_suppression: bool = True
    key: Key | None = None
    transpose_interval: int = 0
    transposition_text: str = "Concert"
    expansion: ExpansionMode = ExpansionMode.UNROLL

    @classmethod
    def for_instrument(cls, preset: str, **kwargs: object) -> AssemblyConfig:
        """Config for a named instrument preset such as ``"bb"``."""
        transposition = transposition_for(preset)
        return cls(
            transpose_interval=transposition.interval,
            transposition_text=transposition.display_text,
            **kwargs,  # type: ignore[arg-type]
        )
