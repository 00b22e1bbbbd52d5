import unittest

from musical_model.attributes import Articulation, Dynamic, Pitch
from musical_model.builder import ModelBuilder
from musical_model.meter import Meter, MeterStructure
from musical_model.metrical_time import MetricalDuration, MetricalInterval
from musical_model.model import Context
from musical_model.performance import PerformanceContext, Scope


def _ctx(start: int, end: int, performer: str = "P") -> Context:
    return Context(
        MetricalInterval(MetricalDuration(start, 4), MetricalDuration(end, 4)),
        PerformanceContext(performer=performer),
    )


class TestModelBuilder(unittest.TestCase):
    def test_assigns_increasing_identifiers(self) -> None:
        builder = ModelBuilder(first_entity=10)
        self.assertEqual(builder.add(Pitch(60), _ctx(0, 1)), 10)
        self.assertEqual(builder.add(Dynamic("p"), _ctx(0, 0)), 11)
        self.assertEqual(builder.add(Articulation("staccato"), _ctx(0, 1)), 12)

        model = builder.build()
        self.assertEqual(model.lookup(10), (Pitch(60), _ctx(0, 1)))
        self.assertEqual(model.kinds, ("pitch", "dynamics", "articulation"))

    def test_add_event_groups_members(self) -> None:
        builder = ModelBuilder()
        chord = builder.add_event([Pitch(60), Pitch(64), Pitch(67)], _ctx(0, 4, "Pno"))
        model = builder.build()

        self.assertEqual(chord, 3)
        self.assertEqual(model.event(chord), (0, 1, 2))
        self.assertIsNone(model.attribute(chord))
        self.assertEqual(model.context(chord), _ctx(0, 4, "Pno"))
        self.assertEqual(model.entities(_ctx(0, 4).interval, Scope(performer="Pno"), ["pitch"]), {0, 1, 2})

    def test_empty_event_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ModelBuilder().add_event([], _ctx(0, 1))

    def test_built_model_is_independent_of_builder(self) -> None:
        builder = ModelBuilder()
        builder.add(Pitch(60), _ctx(0, 1))
        builder.set_meter_structure(MeterStructure((Meter(4, 4),)))
        first = builder.build()
        later = builder.add(Pitch(62), _ctx(1, 2))
        second = builder.build()

        self.assertIsNone(first.attribute(later))
        self.assertEqual(second.attribute(later), Pitch(62))
        self.assertEqual(str(first.meter_structure), "MeterStructure(1x4/4)")


if __name__ == "__main__":
    unittest.main()
