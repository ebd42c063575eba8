import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import MathTools
from models import SetEntry


class MathToolsTestCase(unittest.TestCase):
    def test_clamp(self) -> None:
        self.assertEqual(MathTools.clamp(5, 0, 10), 5)
        self.assertEqual(MathTools.clamp(-1, 0, 10), 0)
        self.assertEqual(MathTools.clamp(11, 0, 10), 10)
        with self.assertRaises(ValueError):
            MathTools.clamp(1, 2, 1)

    def test_epley_1rm(self) -> None:
        self.assertEqual(MathTools.epley_1rm(100, 1), 100)
        self.assertEqual(MathTools.epley_1rm(100, 5), 117)
        self.assertEqual(MathTools.epley_1rm(0, 5), 0)
        self.assertEqual(MathTools.epley_1rm(100, 0), 0)
        self.assertEqual(MathTools.epley_1rm(60, 15), 90)
        self.assertEqual(MathTools.epley_1rm(82.5, 1), 82.5)
        with self.assertRaises(ValueError):
            MathTools.epley_1rm(100, -1)

    def test_best_set(self) -> None:
        sets = [
            SetEntry(weight=100, reps=5),
            SetEntry(weight=110, reps=2),
            SetEntry(weight=105, reps=3),
        ]
        best = MathTools.best_set(sets)
        self.assertEqual(best, {"weight": 100.0, "reps": 5, "one_rep_max": 117})

    def test_best_set_first_wins_ties(self) -> None:
        sets = [{"weight": 90, "reps": 10}, {"weight": 120, "reps": 1}]
        self.assertEqual(MathTools.epley_1rm(90, 10), 120)
        best = MathTools.best_set(sets)
        self.assertEqual(best["weight"], 90.0)

    def test_best_set_empty_and_zero(self) -> None:
        self.assertIsNone(MathTools.best_set([]))
        self.assertIsNone(MathTools.best_set([{"weight": 0, "reps": 12}]))

    def test_volume(self) -> None:
        sets = [SetEntry(weight=100, reps=10), {"weight": 150, "reps": 5}]
        self.assertEqual(MathTools.volume(sets), 10 * 100.0 + 5 * 150.0)
        self.assertEqual(MathTools.volume([]), 0.0)

    def test_body_fat_percentage(self) -> None:
        bmi = MathTools.bmi(80, 180)
        self.assertAlmostEqual(bmi, 24.691, places=3)
        expected = round(1.2 * bmi + 0.23 * 30 - 10.8 - 5.4, 1)
        self.assertEqual(MathTools.body_fat_percentage(30, True, 180, 80), expected)
        female = MathTools.body_fat_percentage(30, False, 180, 80)
        self.assertAlmostEqual(female - expected, 10.8, places=1)

    def test_body_fat_floor_and_validation(self) -> None:
        self.assertEqual(MathTools.body_fat_percentage(1, True, 250, 30), 0.0)
        with self.assertRaises(ValueError):
            MathTools.body_fat_percentage(0, True, 180, 80)
        with self.assertRaises(ValueError):
            MathTools.body_fat_percentage(30, True, 0, 80)
        with self.assertRaises(ValueError):
            MathTools.body_fat_percentage(30, True, 180, -1)

    def test_body_fat_category(self) -> None:
        self.assertEqual(MathTools.body_fat_category(10, True), "athlete")
        self.assertEqual(MathTools.body_fat_category(14, True), "fitness")
        self.assertEqual(MathTools.body_fat_category(20, True), "average")
        self.assertEqual(MathTools.body_fat_category(25, True), "obese")
        self.assertEqual(MathTools.body_fat_category(20, False), "athlete")
        self.assertEqual(MathTools.body_fat_category(31.9, False), "average")
        self.assertEqual(MathTools.body_fat_category(32, False), "obese")


if __name__ == "__main__":
    unittest.main()
