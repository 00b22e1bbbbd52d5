import unittest
from fractions import Fraction

from musical_model.metrical_time import IntervalRelation, MetricalDuration, MetricalInterval


def _iv(start: int, end: int) -> MetricalInterval:
    return MetricalInterval(MetricalDuration(start), MetricalDuration(end))


class TestMetricalDuration(unittest.TestCase):
    def test_equal_by_value(self) -> None:
        self.assertEqual(MetricalDuration(1, 8), MetricalDuration(2, 16))
        self.assertEqual(hash(MetricalDuration(1, 8)), hash(MetricalDuration(2, 16)))
        self.assertEqual(str(MetricalDuration(2, 16)), "2/16")
        self.assertEqual(str(MetricalDuration(2, 16).reduced()), "1/8")

    def test_ordering(self) -> None:
        self.assertLess(MetricalDuration(3, 16), MetricalDuration(1, 4))
        self.assertGreaterEqual(MetricalDuration(1, 4), MetricalDuration(4, 16))
        self.assertEqual(max(MetricalDuration(1, 2), MetricalDuration(3, 8)), MetricalDuration(1, 2))

    def test_parse_and_add(self) -> None:
        self.assertEqual(MetricalDuration.parse("3/16").fraction, Fraction(3, 16))
        self.assertEqual(MetricalDuration.parse("2"), MetricalDuration(2, 1))
        self.assertEqual(MetricalDuration(1, 4) + MetricalDuration(1, 8), MetricalDuration(3, 8))
        self.assertEqual(MetricalDuration.zero, MetricalDuration(0, 4))

    def test_rejects_invalid_values(self) -> None:
        with self.assertRaises(ValueError):
            MetricalDuration(1, 0)
        with self.assertRaises(ValueError):
            MetricalDuration(-1, 4)
        with self.assertRaises(ValueError):
            MetricalDuration.parse("three/4")


class TestMetricalInterval(unittest.TestCase):
    def test_rejects_reversed_interval(self) -> None:
        with self.assertRaises(ValueError):
            _iv(4, 2)

    def test_length(self) -> None:
        interval = MetricalInterval(MetricalDuration(1, 4), MetricalDuration(3, 4))
        self.assertEqual(interval.length, MetricalDuration(1, 2))

    def test_allen_relations(self) -> None:
        cases = [
            ((2, 4), (2, 4), IntervalRelation.EQUALS),
            ((0, 1), (2, 4), IntervalRelation.PRECEDES),
            ((5, 6), (2, 4), IntervalRelation.PRECEDED_BY),
            ((0, 2), (2, 4), IntervalRelation.MEETS),
            ((4, 6), (2, 4), IntervalRelation.MET_BY),
            ((1, 3), (2, 4), IntervalRelation.OVERLAPS),
            ((3, 5), (2, 4), IntervalRelation.OVERLAPPED_BY),
            ((2, 3), (2, 4), IntervalRelation.STARTS),
            ((2, 5), (2, 4), IntervalRelation.STARTED_BY),
            ((3, 3), (2, 4), IntervalRelation.DURING),
            ((1, 5), (2, 4), IntervalRelation.CONTAINS),
            ((3, 4), (2, 4), IntervalRelation.FINISHES),
            ((1, 4), (2, 4), IntervalRelation.FINISHED_BY),
        ]
        for a, b, expected in cases:
            with self.subTest(a=a, b=b):
                self.assertIs(_iv(*a).relation(_iv(*b)), expected)

    def test_zero_length_intervals_at_edges(self) -> None:
        self.assertIs(_iv(2, 4).relation(_iv(2, 2)), IntervalRelation.STARTED_BY)
        self.assertIs(_iv(2, 4).relation(_iv(4, 4)), IntervalRelation.FINISHED_BY)
        self.assertIs(_iv(2, 2).relation(_iv(2, 2)), IntervalRelation.EQUALS)

    def test_relation_sets_support_membership(self) -> None:
        allowed = IntervalRelation.EQUALS | IntervalRelation.CONTAINS
        self.assertIn(IntervalRelation.CONTAINS, allowed)
        self.assertNotIn(IntervalRelation.OVERLAPS, allowed)


if __name__ == "__main__":
    unittest.main()
