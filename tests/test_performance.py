import unittest

from musical_model.performance import PerformanceContext, Scope


class TestScope(unittest.TestCase):
    def test_unscoped_matches_everything(self) -> None:
        scope = Scope()
        self.assertTrue(scope.is_unscoped)
        self.assertTrue(scope.contains(PerformanceContext()))
        self.assertTrue(scope.contains(PerformanceContext("Vc", "cello", 2)))

    def test_partial_scope(self) -> None:
        ctx = PerformanceContext(performer="Vn1", instrument="violin", voice=1)
        self.assertTrue(Scope(performer="Vn1").contains(ctx))
        self.assertTrue(Scope(instrument="violin", voice=1).contains(ctx))
        self.assertFalse(Scope(performer="Vn2").contains(ctx))
        self.assertFalse(Scope(performer="Vn1", voice=0).contains(ctx))

    def test_voice_zero_is_not_a_wildcard(self) -> None:
        self.assertFalse(Scope(voice=0).contains(PerformanceContext(voice=3)))

    def test_rejects_negative_voice(self) -> None:
        with self.assertRaises(ValueError):
            PerformanceContext(voice=-1)


if __name__ == "__main__":
    unittest.main()
