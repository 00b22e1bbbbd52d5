from __future__ import annotations

import enum
from dataclasses import dataclass
from fractions import Fraction
from functools import total_ordering
from typing import ClassVar


@total_ordering
@dataclass(frozen=True, eq=False)
class MetricalDuration:
    """Musical-time duration expressed as ``beats / subdivision`` of a whole note.

    ``MetricalDuration(3, 16)`` is three sixteenth notes. Two durations are
    equal when their rational values are equal, so ``1/8 == 2/16``; the
    given ``beats`` and ``subdivision`` are kept for display.
    """

    beats: int
    subdivision: int = 1

    zero: ClassVar["MetricalDuration"]

    def __post_init__(self) -> None:
        if self.subdivision <= 0:
            raise ValueError("MetricalDuration subdivision must be > 0.")
        if self.beats < 0:
            raise ValueError("MetricalDuration beats must be >= 0.")

    @classmethod
    def from_fraction(cls, value: Fraction) -> "MetricalDuration":
        return cls(value.numerator, value.denominator)

    @classmethod
    def parse(cls, text: str) -> "MetricalDuration":
        """Parse ``"3/16"`` or a bare whole-note count such as ``"2"``."""
        beats, sep, subdivision = text.strip().partition("/")
        try:
            if not sep:
                return cls(int(beats), 1)
            return cls(int(beats), int(subdivision))
        except ValueError as exc:
            raise ValueError(f"Invalid metrical duration: {text!r}") from exc

    @property
    def fraction(self) -> Fraction:
        return Fraction(self.beats, self.subdivision)

    def reduced(self) -> "MetricalDuration":
        return MetricalDuration.from_fraction(self.fraction)

    def __add__(self, other: "MetricalDuration") -> "MetricalDuration":
        if not isinstance(other, MetricalDuration):
            return NotImplemented
        return MetricalDuration.from_fraction(self.fraction + other.fraction)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetricalDuration):
            return NotImplemented
        return self.fraction == other.fraction

    def __lt__(self, other: "MetricalDuration") -> bool:
        if not isinstance(other, MetricalDuration):
            return NotImplemented
        return self.fraction < other.fraction

    def __hash__(self) -> int:
        return hash(self.fraction)

    def __str__(self) -> str:
        return f"{self.beats}/{self.subdivision}"


MetricalDuration.zero = MetricalDuration(0, 1)


class IntervalRelation(enum.Flag):
    """Allen's thirteen interval relations.

    Members combine with ``|``, so a set of accepted relations is itself an
    ``IntervalRelation`` and membership is tested with ``in``.
    """

    EQUALS = enum.auto()
    PRECEDES = enum.auto()
    PRECEDED_BY = enum.auto()
    MEETS = enum.auto()
    MET_BY = enum.auto()
    OVERLAPS = enum.auto()
    OVERLAPPED_BY = enum.auto()
    STARTS = enum.auto()
    STARTED_BY = enum.auto()
    DURING = enum.auto()
    CONTAINS = enum.auto()
    FINISHES = enum.auto()
    FINISHED_BY = enum.auto()


@dataclass(frozen=True)
class MetricalInterval:
    """Closed range ``[start, end]`` over metrical time."""

    start: MetricalDuration
    end: MetricalDuration

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("MetricalInterval end must be >= start.")

    @property
    def length(self) -> MetricalDuration:
        return MetricalDuration.from_fraction(self.end.fraction - self.start.fraction)

    def relation(self, other: "MetricalInterval") -> IntervalRelation:
        """Return how ``self`` relates to ``other`` (``self`` *precedes* ``other``, ...)."""
        a_start, a_end = self.start.fraction, self.end.fraction
        b_start, b_end = other.start.fraction, other.end.fraction

        if a_start == b_start and a_end == b_end:
            return IntervalRelation.EQUALS
        if a_start == b_start:
            return IntervalRelation.STARTS if a_end < b_end else IntervalRelation.STARTED_BY
        if a_end == b_end:
            return IntervalRelation.FINISHES if a_start > b_start else IntervalRelation.FINISHED_BY
        if a_start > b_start and a_end < b_end:
            return IntervalRelation.DURING
        if a_start < b_start and a_end > b_end:
            return IntervalRelation.CONTAINS
        if a_end < b_start:
            return IntervalRelation.PRECEDES
        if a_end == b_start:
            return IntervalRelation.MEETS
        if a_start > b_end:
            return IntervalRelation.PRECEDED_BY
        if a_start == b_end:
            return IntervalRelation.MET_BY
        if a_start < b_start:
            return IntervalRelation.OVERLAPS
        return IntervalRelation.OVERLAPPED_BY

    def __str__(self) -> str:
        return f"[{self.start}, {self.end}]"
