"""ChordResolver: Maps harmony events to printed chord symbols."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from functools import reduce
from types import MappingProxyType
from typing import Final

from leadsheet.errors import UnresolvedChordError
from leadsheet.pitch import Key
from leadsheet.sheet_models import Annotation, HarmonyEvent, Quality

#: Emitted in place of a chord symbol that repeats the last printed one.
NO_CHORD_SYMBOL: Final[str] = ""

ExceptionsTable = Mapping[tuple[Quality, tuple[str, ...]], str]

DEFAULT_QUALITY_SYMBOLS: Final[Mapping[Quality, str]] = MappingProxyType(
    {
        Quality.MAJ: "maj",
        Quality.MIN: "m",
        Quality.DOMINANT7: "7",
        Quality.MIN7: "m7",
        Quality.MAJ7: "maj7",
        Quality.MIN_MAJ7: "m(maj7)",
        Quality.DIM: "dim",
        Quality.DIM7: "dim7",
        Quality.HALF_DIM: "m7b5",
        Quality.AUG: "aug",
        Quality.SUS2: "sus2",
        Quality.SUS4: "sus4",
        Quality.MAJ6: "6",
        Quality.MIN6: "m6",
        Quality.DOMINANT9: "9",
        Quality.POWER: "5",
    }
)

# Qualities whose fifth is already altered (or absent from the symbol's meaning).
_ALTERED_FIFTH_QUALITIES: Final[frozenset[Quality]] = frozenset(
    {Quality.DIM, Quality.DIM7, Quality.HALF_DIM, Quality.AUG, Quality.POWER}
)

# Extension groups, in print order.
ALTERATION, TENSION, ADDED, OMISSION = range(4)
_UNKNOWN_GROUP = 9

_TOKEN_RE = re.compile(r"^(add|no)?([b#])?(\d{1,2})$")
_VALID_DEGREES: Final[dict[int, frozenset[int]]] = {
    ALTERATION: frozenset({5, 9, 11, 13}),
    TENSION: frozenset({6, 9, 11, 13}),
    ADDED: frozenset({2, 4, 6, 9, 11, 13}),
    OMISSION: frozenset({3, 5}),
}


@dataclass(frozen=True)
class _Extension:
    token: str
    group: int
    degree: int


def _parse_extension(token: str) -> _Extension | None:
    """Classify an extension token, or None if the template cannot spell it."""
    match = _TOKEN_RE.match(token)
    if not match:
        return None
    prefix, accidental, degree_text = match.groups()
    degree = int(degree_text)
    if prefix == "add":
        group = ADDED if accidental is None else _UNKNOWN_GROUP
    elif prefix == "no":
        group = OMISSION if accidental is None else _UNKNOWN_GROUP
    else:
        group = ALTERATION if accidental is not None else TENSION
    if group == _UNKNOWN_GROUP or degree not in _VALID_DEGREES[group]:
        return None
    return _Extension(token=token, group=group, degree=degree)


def _precedence(token: str) -> tuple[int, int, str]:
    parsed = _parse_extension(token)
    if parsed is None:
        return (_UNKNOWN_GROUP, 0, token)
    return (parsed.group, parsed.degree, token)


def canonical_extensions(extensions: Iterable[str]) -> tuple[str, ...]:
    """Sort extension tokens into print order: alterations, tensions, added tones, omissions."""
    return tuple(sorted(extensions, key=_precedence))


def build_exceptions_table(
    entries: Iterable[tuple[Quality | str, Sequence[str], str]],
) -> ExceptionsTable:
    """
    Build the immutable naming-exception lookup.

    Each entry is ``(quality, extensions, symbol)``. The symbol replaces the
    quality and extension suffix; the root (and slash bass) is still printed
    in front of it. Keys are stored in canonical extension order so lookups
    do not depend on authoring order.
    """
    table: dict[tuple[Quality, tuple[str, ...]], str] = {}
    for quality, extensions, symbol in entries:
        table[(Quality(quality), canonical_extensions(extensions))] = symbol
    return MappingProxyType(table)


EMPTY_EXCEPTIONS: Final[ExceptionsTable] = build_exceptions_table([])

#: Common jazz-chart overrides of the default template.
JAZZ_EXCEPTIONS: Final[ExceptionsTable] = build_exceptions_table(
    [
        (Quality.MIN7, (), "-7"),
        (Quality.MAJ7, (), "Δ7"),
        (Quality.HALF_DIM, (), "ø7"),
        (Quality.DIM7, (), "°7"),
        (Quality.DOMINANT7, ("alt",), "7alt"),
    ]
)


class ChordResolver:
    """
    Resolves HarmonyEvents to display strings.

    Resolution order
    ----------------
    1. **Exceptions** – the event's (quality, canonical extensions) is looked
       up in the exceptions table; a hit replaces the whole suffix.

    2. **Default template** – quality symbol followed by the extensions in
       precedence order. A single alteration/tension token is appended as-is
       (``C7b9``); two or more are comma-joined in parentheses
       (``C7(b9,#11)``). Added tones and omissions follow directly
       (``Cmajadd9``, ``C7no3``).

    3. **Annotation** – parenthesized events are wrapped in parentheses.

    ``resolve_track`` additionally applies change suppression over a whole
    harmony sequence.
    """

    def __init__(
        self,
        exceptions_table: ExceptionsTable | None = None,
        quality_symbols: Mapping[Quality, str] = DEFAULT_QUALITY_SYMBOLS,
    ) -> None:
        if exceptions_table is None:
            exceptions_table = EMPTY_EXCEPTIONS
        elif not isinstance(exceptions_table, MappingProxyType):
            exceptions_table = build_exceptions_table(
                (quality, extensions, symbol)
                for (quality, extensions), symbol in exceptions_table.items()
            )
        self.exceptions_table = exceptions_table
        self.quality_symbols = quality_symbols

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _template_suffix(self, quality: Quality, extensions: tuple[str, ...]) -> str | None:
        symbol = self.quality_symbols.get(quality)
        if symbol is None:
            return None
        if len(set(extensions)) != len(extensions):
            return None

        parsed: list[_Extension] = []
        for token in extensions:
            extension = _parse_extension(token)
            if extension is None:
                return None
            parsed.append(extension)

        if quality in _ALTERED_FIFTH_QUALITIES and any(
            ext.group == ALTERATION and ext.degree == 5 for ext in parsed
        ):
            return None

        parsed.sort(key=lambda ext: (ext.group, ext.degree, ext.token))
        colour = [ext.token for ext in parsed if ext.group in (ALTERATION, TENSION)]
        tail = [ext.token for ext in parsed if ext.group in (ADDED, OMISSION)]

        if len(colour) == 1:
            symbol += colour[0]
        elif colour:
            symbol += "(" + ",".join(colour) + ")"
        return symbol + "".join(tail)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def symbol(self, event: HarmonyEvent, key: Key | None = None) -> str:
        """
        Resolve one harmony event to its printed symbol, ignoring context.

        Raises:
            UnresolvedChordError: If neither an exception nor the default
                template can spell the (quality, extensions) combination.
        """
        extensions = canonical_extensions(event.extensions)
        suffix = self.exceptions_table.get((event.quality, extensions))
        if suffix is None:
            suffix = self._template_suffix(event.quality, extensions)
        if suffix is None:
            raise UnresolvedChordError(
                f"No spelling for {event.quality.value} chord with extensions "
                f"{list(event.extensions)} at t={event.start}.",
                time=event.start,
                data=(event.quality, event.extensions),
            )

        text = f"{event.root.name(key)}{suffix}"
        if event.bass is not None:
            text += f"/{event.bass.name(key)}"
        if event.annotation is Annotation.PARENTHESIZED:
            text = f"({text})"
        return text

    def resolve_track(
        self,
        events: Sequence[HarmonyEvent],
        key: Key | None = None,
        change_suppression: bool = True,
    ) -> list[str]:
        """
        Resolve an ordered harmony sequence to display strings.

        With ``change_suppression`` on, a chord that repeats the last
        printed primary symbol becomes ``NO_CHORD_SYMBOL``.
        """
        symbols = [self.symbol(event, key) for event in events]
        if not change_suppression:
            return symbols
        return suppress_repeats(events, symbols)


def suppress_repeats(events: Sequence[HarmonyEvent], symbols: Sequence[str]) -> list[str]:
    """
    Fold over resolved symbols, blanking those equal to the last printed one.

    Parenthesized chords sit on their own sub-track: they are always printed
    and never become the comparison point for primary chords.
    """

    def step(
        acc: tuple[tuple[str, ...], str | None], item: tuple[HarmonyEvent, str]
    ) -> tuple[tuple[str, ...], str | None]:
        shown, last_printed = acc
        event, symbol = item
        if event.annotation is Annotation.PARENTHESIZED:
            return shown + (symbol,), last_printed
        if symbol == last_printed:
            return shown + (NO_CHORD_SYMBOL,), last_printed
        return shown + (symbol,), symbol

    initial: tuple[tuple[str, ...], str | None] = ((), None)
    shown, _ = reduce(step, zip(events, symbols), initial)
    return list(shown)
