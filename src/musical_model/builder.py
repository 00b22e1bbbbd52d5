from __future__ import annotations

from typing import Iterable

from musical_model.attributes import Attribute
from musical_model.meter import MeterStructure
from musical_model.model import AttributeKind, Context, Entity, Model


class ModelBuilder:
    """Assigns entity identifiers and collects the mappings a ``Model`` is built from.

    Identifiers count up from ``first_entity`` and are never reused. ``build``
    copies the collected mappings, so a builder can keep adding after it has
    produced a model.
    """

    def __init__(self, first_entity: Entity = 0):
        self._next_entity = first_entity
        self._attributions: dict[AttributeKind, dict[Entity, Attribute]] = {}
        self._events: dict[Entity, tuple[Entity, ...]] = {}
        self._contexts: dict[Entity, Context] = {}
        self._meter_structure: MeterStructure | None = None

    def _claim_entity(self) -> Entity:
        entity = self._next_entity
        self._next_entity += 1
        return entity

    def add(self, attribute: Attribute, context: Context) -> Entity:
        entity = self._claim_entity()
        self._attributions.setdefault(attribute.kind, {})[entity] = attribute
        self._contexts[entity] = context
        return entity

    def add_event(self, attributes: Iterable[Attribute], context: Context) -> Entity:
        """Add each attribute as its own entity and group them under a new event entity."""
        members = tuple(self.add(attribute, context) for attribute in attributes)
        if not members:
            raise ValueError("An event needs at least one attribute.")
        entity = self._claim_entity()
        self._events[entity] = members
        self._contexts[entity] = context
        return entity

    def set_meter_structure(self, meter_structure: MeterStructure | None) -> None:
        self._meter_structure = meter_structure

    def build(self) -> Model:
        return Model(
            attributions={kind: dict(attribution) for kind, attribution in self._attributions.items()},
            events=dict(self._events),
            contexts=dict(self._contexts),
            meter_structure=self._meter_structure,
        )
