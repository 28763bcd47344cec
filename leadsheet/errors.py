"""Error taxonomy for lead sheet assembly.

Every error is terminal for the assembly it occurs in and carries the
timeline position and the offending data so callers can report it.
"""

from __future__ import annotations

from typing import Any


class LeadSheetError(Exception):
    """Base class for all assembly failures."""

    def __init__(self, message: str, *, time: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.time = time
        self.data = data


class UnresolvedChordError(LeadSheetError):
    """A (quality, extensions) combination with no exception and no template spelling."""


class MisalignedLyricError(LeadSheetError):
    """A syllable attached at a time where no melody note starts."""


class OverlappingHarmonyError(LeadSheetError):
    """Two harmony events on the same sub-track overlap in time."""


class StructureError(LeadSheetError):
    """Malformed repeat structure."""


class EmptyRepeatError(StructureError):
    """A repeat block without any volta ending."""


class OverlappingRepeatError(StructureError):
    """Two repeat blocks (body or endings) share timeline positions."""


class EventStreamError(LeadSheetError):
    """The decoded input document is malformed."""
