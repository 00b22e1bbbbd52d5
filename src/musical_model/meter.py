from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction

from musical_model.metrical_time import MetricalDuration


@dataclass(frozen=True)
class Meter:
    """Time signature such as 3/4 (``beats`` per measure of ``subdivision`` notes)."""

    beats: int
    subdivision: int

    def __post_init__(self) -> None:
        if self.beats <= 0:
            raise ValueError("Meter beats must be > 0.")
        if self.subdivision <= 0 or (self.subdivision & (self.subdivision - 1)) != 0:
            raise ValueError("Meter subdivision must be a positive power of two.")

    @property
    def duration(self) -> MetricalDuration:
        return MetricalDuration(self.beats, self.subdivision)

    def __str__(self) -> str:
        return f"{self.beats}/{self.subdivision}"


@dataclass(frozen=True)
class MeterStructure:
    """Sequence of measures laid end to end, used as a descriptive overlay.

    ``offsets`` holds the start of each measure; ``duration`` is the total
    length of the structure.
    """

    meters: tuple[Meter, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "meters", tuple(self.meters))

    @property
    def offsets(self) -> list[MetricalDuration]:
        out: list[MetricalDuration] = []
        position = Fraction(0)
        for meter in self.meters:
            out.append(MetricalDuration.from_fraction(position))
            position += meter.duration.fraction
        return out

    @property
    def duration(self) -> MetricalDuration:
        return MetricalDuration.from_fraction(sum((m.duration.fraction for m in self.meters), Fraction(0)))

    def __len__(self) -> int:
        return len(self.meters)

    def __str__(self) -> str:
        if not self.meters:
            return "MeterStructure()"
        runs: list[tuple[Meter, int]] = []
        for meter in self.meters:
            if runs and runs[-1][0] == meter:
                runs[-1] = (meter, runs[-1][1] + 1)
            else:
                runs.append((meter, 1))
        body = ", ".join(f"{count}x{meter}" for meter, count in runs)
        return f"MeterStructure({body})"
