from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PerformanceContext:
    """Who performs a musical entity: performer, instrument and voice."""

    performer: str = "P"
    instrument: str = "I"
    voice: int = 0

    def __post_init__(self) -> None:
        if self.voice < 0:
            raise ValueError("PerformanceContext voice must be >= 0.")


@dataclass(frozen=True)
class Scope:
    """Partial ``PerformanceContext`` used to filter contexts.

    Fields left as ``None`` match anything, so ``Scope()`` matches every
    performance context and ``Scope(performer="Vn1")`` matches every
    instrument and voice of that performer.
    """

    performer: str | None = None
    instrument: str | None = None
    voice: int | None = None

    def contains(self, context: PerformanceContext) -> bool:
        if self.performer is not None and self.performer != context.performer:
            return False
        if self.instrument is not None and self.instrument != context.instrument:
            return False
        if self.voice is not None and self.voice != context.voice:
            return False
        return True

    @property
    def is_unscoped(self) -> bool:
        return self.performer is None and self.instrument is None and self.voice is None
