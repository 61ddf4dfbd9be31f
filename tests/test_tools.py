import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import MathTools


class MathToolsTestCase(unittest.TestCase):
    def test_clamp(self) -> None:
        self.assertEqual(MathTools.clamp(5, 0, 10), 5)
        self.assertEqual(MathTools.clamp(-1, 0, 10), 0)
        self.assertEqual(MathTools.clamp(11, 0, 10), 10)
        with self.assertRaises(ValueError):
            MathTools.clamp(1, 2, 1)

    def test_single_formulas(self) -> None:
        self.assertAlmostEqual(MathTools.epley_1rm(100, 5), 100 * (1 + 5 / 30))
        self.assertAlmostEqual(MathTools.brzycki_1rm(100, 5), 100 / (1.0278 - 0.0278 * 5))
        self.assertAlmostEqual(MathTools.lander_1rm(100, 5), 10000 / (101.3 - 2.67123 * 5))

    def test_estimated_1rm_averages_formulas(self) -> None:
        self.assertEqual(MathTools.estimated_1rm(100, 5), 114)
        self.assertEqual(MathTools.estimated_1rm(60, 10), 80)

    def test_estimated_1rm_single_rep(self) -> None:
        self.assertEqual(MathTools.estimated_1rm(142.5, 1), 142.5)

    def test_estimated_1rm_falls_back_to_epley(self) -> None:
        self.assertEqual(MathTools.estimated_1rm(100, 40), 233)

    def test_estimated_1rm_rounds_half_up(self) -> None:
        # 45 reps leaves only Epley: weight * 2.5
        self.assertEqual(MathTools.estimated_1rm(1, 45), 3)
        self.assertEqual(MathTools.estimated_1rm(5, 45), 13)

    def test_estimated_1rm_non_positive_inputs(self) -> None:
        self.assertEqual(MathTools.estimated_1rm(0, 5), 0)
        self.assertEqual(MathTools.estimated_1rm(100, 0), 0)
        self.assertEqual(MathTools.estimated_1rm(-20, 3), 0)

    def test_rep_max_table(self) -> None:
        table = MathTools.rep_max_table(100)
        self.assertEqual(len(table), 12)
        self.assertEqual(table[0], (1, 100.0))
        self.assertEqual(table[4], (5, 85.7))
        self.assertEqual(table[9], (10, 75.0))
        weights = [w for _, w in table]
        self.assertEqual(weights, sorted(weights, reverse=True))
        self.assertEqual(len(MathTools.rep_max_table(100, max_reps=3)), 3)
        with self.assertRaises(ValueError):
            MathTools.rep_max_table(0)
        with self.assertRaises(ValueError):
            MathTools.rep_max_table(100, max_reps=25)

    def test_convert_weight(self) -> None:
        self.assertEqual(MathTools.convert_weight(100, "kg", "lb"), 220.46)
        self.assertEqual(MathTools.convert_weight(220.46, "lb", "kg"), 100.0)
        self.assertEqual(MathTools.convert_weight(80, "kg", "kg"), 80)
        with self.assertRaises(ValueError):
            MathTools.convert_weight(80, "kg", "stone")


if __name__ == "__main__":
    unittest.main()
