"""StructureExpander: Strategy pattern for laying out repeats and volta endings."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from leadsheet.errors import EmptyRepeatError
from leadsheet.sheet_models import (
    AssemblyWarning,
    BracketSpan,
    RepeatBlock,
    Timeline,
    TimelineEntry,
)

logger = logging.getLogger(__name__)


class ExpansionMode(str, Enum):
    UNROLL = "unroll"
    BRACKETS = "brackets"


# ── Pass state machine ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Before:
    """The repeat body has not been entered yet."""


@dataclass(frozen=True)
class InPass:
    """Playing the body for pass ``k``, finishing with ending ``k``."""

    k: int


@dataclass(frozen=True)
class After:
    """Every ending has been visited; playback resumes after the last one."""


PassState = Union[Before, InPass, After]


def advance(state: PassState, block: RepeatBlock) -> PassState:
    """Transition taken each time playback reaches the end of ``block``."""
    if isinstance(state, Before):
        return InPass(1)
    if isinstance(state, InPass) and state.k < len(block.alternatives):
        return InPass(state.k + 1)
    return After()


@dataclass(frozen=True)
class Expansion:
    timeline: Timeline
    warnings: tuple[AssemblyWarning, ...] = ()


def _check_block(block: RepeatBlock) -> list[AssemblyWarning]:
    if not block.alternatives:
        raise EmptyRepeatError(
            f"Repeat {block.start}..{block.end} has no endings.",
            time=block.start,
            data=block,
        )
    durations = [ending.duration for ending in block.alternatives]
    if len(set(durations)) == 1:
        return []
    message = (
        f"Repeat {block.start}..{block.end} has endings of unequal length {durations}."
    )
    logger.warning(message)
    return [AssemblyWarning(time=block.start, message=message)]


# ── Abstract base ────────────────────────────────────────────────────────────


class StructureExpander(ABC):
    """
    Abstract Strategy for turning a written Timeline into a rendering order.

    Both strategies validate every repeat block the same way: a block with
    no endings is an error, endings of unequal length only warn.
    """

    def expand(self, timeline: Timeline) -> Expansion:
        warnings: list[AssemblyWarning] = []
        for block in timeline.repeats:
            warnings.extend(_check_block(block))
        return Expansion(timeline=self._lay_out(timeline), warnings=tuple(warnings))

    @abstractmethod
    def _lay_out(self, timeline: Timeline) -> Timeline:
        """Produce the derived timeline for already-validated repeats."""


# ── Concrete strategies ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class _Segment:
    start: int
    end: int | None
    pass_number: int | None = None

    def covers(self, time: int) -> bool:
        return time >= self.start and (self.end is None or time < self.end)


class UnrollExpander(StructureExpander):
    """
    Unroll repeats into playback order.

    For a body [s, e) with endings E1..EN the written spans are played as

        ... [before s]  body+E1  body+E2 ... body+EN  [after EN] ...

    Entries are re-timed onto the playback axis and tagged with their pass
    number; entries outside any repeat keep ``pass_number=None``.
    """

    def _segments(self, timeline: Timeline) -> list[_Segment]:
        segments: list[_Segment] = []
        cursor = 0
        for block in timeline.repeats:
            if block.start > cursor:
                segments.append(_Segment(cursor, block.start))
            state = advance(Before(), block)
            while isinstance(state, InPass):
                ending = block.alternatives[state.k - 1]
                segments.append(_Segment(block.start, block.end, state.k))
                segments.append(_Segment(ending.start, ending.end, state.k))
                state = advance(state, block)
            cursor = block.written_end
        segments.append(_Segment(cursor, None))
        return segments

    def _lay_out(self, timeline: Timeline) -> Timeline:
        if not timeline.repeats:
            return timeline

        entries: list[TimelineEntry] = []
        offset = 0
        for segment in self._segments(timeline):
            for entry in timeline.entries:
                if segment.covers(entry.time):
                    entries.append(
                        replace(
                            entry,
                            time=offset + entry.time - segment.start,
                            pass_number=segment.pass_number,
                        )
                    )
            if segment.end is not None:
                offset += segment.end - segment.start
            else:
                offset += max(timeline.end_time - segment.start, 0)

        return Timeline(entries=tuple(entries), end_time=offset)


class BracketExpander(StructureExpander):
    """
    Keep the written order and describe repeats as graphical brackets.

    Each block yields one ``repeat`` span (numbered with its pass count)
    and one ``ending`` span per volta, numbered from 1.
    """

    def _lay_out(self, timeline: Timeline) -> Timeline:
        brackets: list[BracketSpan] = []
        for block in timeline.repeats:
            brackets.append(
                BracketSpan(block.start, block.end, "repeat", len(block.alternatives))
            )
            for number, ending in enumerate(block.alternatives, start=1):
                brackets.append(BracketSpan(ending.start, ending.end, "ending", number))
        return replace(timeline, brackets=tuple(brackets))


def get_expander(mode: ExpansionMode) -> StructureExpander:
    """Return the StructureExpander for the requested mode."""
    if mode is ExpansionMode.BRACKETS:
        return BracketExpander()
    return UnrollExpander()


def expand(timeline: Timeline, mode: ExpansionMode = ExpansionMode.UNROLL) -> Expansion:
    """
    Lay out a timeline's repeat structure.

    Raises:
        EmptyRepeatError: If any repeat block has no endings.
    """
    return get_expander(mode).expand(timeline)
