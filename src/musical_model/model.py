from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from musical_model.attributes import Attribute
from musical_model.meter import MeterStructure
from musical_model.metrical_time import IntervalRelation, MetricalDuration, MetricalInterval
from musical_model.performance import PerformanceContext, Scope

logger = logging.getLogger(__name__)

Entity = int
AttributeKind = str
Event = tuple[Entity, ...]

# Query intervals must wholly contain (or exactly bound) a context's interval.
_CONTAINED_RELATIONS = (
    IntervalRelation.EQUALS
    | IntervalRelation.CONTAINS
    | IntervalRelation.STARTED_BY
    | IntervalRelation.FINISHED_BY
)


class ModelConstructionError(ValueError):
    """Raised when the mappings given to ``Model`` break its invariants."""


@dataclass(frozen=True)
class Context:
    """Durational and performative context of an entity."""

    interval: MetricalInterval = field(
        default_factory=lambda: MetricalInterval(MetricalDuration.zero, MetricalDuration.zero)
    )
    performance_context: PerformanceContext = field(default_factory=PerformanceContext)

    def is_contained(self, interval: MetricalInterval, scope: Scope | None = None) -> bool:
        """True when ``interval`` bounds this context and ``scope`` matches its performer."""
        scope = scope if scope is not None else Scope()
        if not scope.contains(self.performance_context):
            return False
        return interval.relation(self.interval) in _CONTAINED_RELATIONS


class Model:
    """The database of musical information contained in a single work.

    Built once from three mappings keyed by entity identifier:

    - ``attributions``: ``{kind: {entity: attribute}}``
    - ``events``: ``{entity: (member, ...)}``
    - ``contexts``: ``{entity: Context}``

    plus an optional ``MeterStructure`` overlay that only appears in the
    printed description. The model never changes after construction, so the
    same query always returns the same answer.
    """

    def __init__(
        self,
        attributions: Mapping[AttributeKind, Mapping[Entity, Attribute]],
        events: Mapping[Entity, Sequence[Entity]] | None = None,
        contexts: Mapping[Entity, Context] | None = None,
        meter_structure: MeterStructure | None = None,
    ) -> None:
        kind_by_entity: dict[Entity, AttributeKind] = {}
        frozen_attributions: dict[AttributeKind, Mapping[Entity, Attribute]] = {}
        for kind, attribution in attributions.items():
            for entity, attribute in attribution.items():
                if getattr(attribute, "kind", None) != kind:
                    raise ModelConstructionError(
                        f"Entity {entity} holds a {type(attribute).__name__} under kind {kind!r}."
                    )
                if entity in kind_by_entity:
                    raise ModelConstructionError(
                        f"Entity {entity} appears under both {kind_by_entity[entity]!r} and {kind!r}."
                    )
                kind_by_entity[entity] = kind
            frozen_attributions[kind] = MappingProxyType(dict(attribution))

        self._attributions = MappingProxyType(frozen_attributions)
        self._kind_by_entity = MappingProxyType(kind_by_entity)
        self._events = MappingProxyType({entity: tuple(members) for entity, members in (events or {}).items()})
        self._contexts = MappingProxyType(dict(contexts or {}))
        self._meter_structure = meter_structure

        logger.debug(
            "Built model with %d attributed entities over %d kinds, %d contexts, %d events.",
            len(self._kind_by_entity),
            len(self._attributions),
            len(self._contexts),
            len(self._events),
        )

    @property
    def kinds(self) -> tuple[AttributeKind, ...]:
        return tuple(self._attributions)

    @property
    def meter_structure(self) -> MeterStructure | None:
        return self._meter_structure

    def lookup(self, entity: Entity) -> tuple[Attribute, Context] | None:
        """Return the attribute and context of ``entity``, or ``None`` if either is missing."""
        attribute = self.attribute(entity)
        if attribute is None:
            return None
        context = self.context(entity)
        if context is None:
            return None
        return attribute, context

    def context(self, entity: Entity) -> Context | None:
        return self._contexts.get(entity)

    def attribute(self, entity: Entity) -> Attribute | None:
        kind = self._kind_by_entity.get(entity)
        if kind is None:
            return None
        return self._attributions[kind][entity]

    def kind(self, entity: Entity) -> AttributeKind | None:
        return self._kind_by_entity.get(entity)

    def count(self, kind: AttributeKind) -> int:
        """Number of entities attributed under ``kind`` (0 for unknown kinds)."""
        return len(self._attributions.get(kind, ()))

    def event(self, entity: Entity) -> Event | None:
        return self._events.get(entity)

    def entities(
        self,
        interval: MetricalInterval,
        scope: Scope | None = None,
        kinds: Iterable[AttributeKind] | None = None,
    ) -> set[Entity]:
        """Identifiers of entities of the given ``kinds`` inside ``interval`` and ``scope``.

        ``kinds=None`` includes every known kind, while an empty list asks for
        no kinds and yields an empty set. A single kind may be passed as a bare
        string.
        """
        if kinds is None:
            kinds = self.kinds
        elif isinstance(kinds, str):
            kinds = (kinds,)
        return self._entities_with_kinds(kinds) & self._entities_in(interval, scope)

    def _entities_with_kinds(self, kinds: Iterable[AttributeKind]) -> set[Entity]:
        out: set[Entity] = set()
        for kind in kinds:
            out.update(self._attributions.get(kind, ()))
        return out

    def _entities_in(self, interval: MetricalInterval, scope: Scope | None) -> set[Entity]:
        return {entity for entity, context in self._contexts.items() if context.is_contained(interval, scope)}

    def __contains__(self, entity: object) -> bool:
        return entity in self._kind_by_entity or entity in self._contexts

    def __len__(self) -> int:
        return len(self._kind_by_entity.keys() | self._contexts.keys())

    def __str__(self) -> str:
        attributions = {kind: dict(attribution) for kind, attribution in self._attributions.items()}
        return f"{self._meter_structure}\n{attributions}"
