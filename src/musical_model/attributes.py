from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

import numpy as np

A4_NOTE_NUMBER = 69
A4_FREQUENCY_HZ = 440.0

DYNAMIC_MARKINGS: tuple[str, ...] = ("ppp", "pp", "p", "mp", "mf", "f", "ff", "fff")
# Lowest velocity for each marking after ``ppp``.
_DYNAMIC_VELOCITY_FLOORS = np.array([16, 32, 48, 64, 80, 96, 112])

ARTICULATION_NAMES: tuple[str, ...] = (
    "staccato",
    "staccatissimo",
    "tenuto",
    "accent",
    "marcato",
    "fermata",
)


@dataclass(frozen=True)
class Pitch:
    """Pitch as a MIDI-style note number (60 = middle C, fractions for microtones)."""

    kind: ClassVar[str] = "pitch"

    note_number: float

    def __post_init__(self) -> None:
        if self.note_number < 0:
            raise ValueError("Pitch note_number must be >= 0.")

    @classmethod
    def from_frequency(cls, freq_hz: float, a4_hz: float = A4_FREQUENCY_HZ) -> "Pitch":
        if freq_hz <= 0:
            raise ValueError("Frequency must be positive.")
        return cls(float(A4_NOTE_NUMBER + 12.0 * np.log2(freq_hz / a4_hz)))

    @property
    def frequency(self) -> float:
        return float(A4_FREQUENCY_HZ * (2.0 ** ((self.note_number - A4_NOTE_NUMBER) / 12.0)))

    @property
    def pitch_class(self) -> int:
        return int(np.rint(self.note_number)) % 12

    def __str__(self) -> str:
        return f"{self.note_number:g}"


@dataclass(frozen=True)
class Dynamic:
    kind: ClassVar[str] = "dynamics"

    marking: str

    def __post_init__(self) -> None:
        if self.marking not in DYNAMIC_MARKINGS:
            raise ValueError(f"Unknown dynamic marking: {self.marking!r}")

    @classmethod
    def from_velocity(cls, velocity: int) -> "Dynamic":
        if not (0 <= velocity <= 127):
            raise ValueError("Velocity must be in [0,127].")
        idx = int(np.searchsorted(_DYNAMIC_VELOCITY_FLOORS, velocity, side="right"))
        return cls(DYNAMIC_MARKINGS[idx])

    def __str__(self) -> str:
        return self.marking


@dataclass(frozen=True)
class Articulation:
    kind: ClassVar[str] = "articulation"

    name: str

    def __post_init__(self) -> None:
        if self.name not in ARTICULATION_NAMES:
            raise ValueError(f"Unknown articulation: {self.name!r}")

    def __str__(self) -> str:
        return self.name


Attribute = Union[Pitch, Dynamic, Articulation]

ATTRIBUTE_TYPES: dict[str, type] = {cls.kind: cls for cls in (Pitch, Dynamic, Articulation)}
