import json
import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from cli import (
    body_fat,
    clear_data,
    demo_data,
    export_backup,
    heatmap,
    import_backup,
    log_weight,
    main,
    migrate_legacy,
    show_stats,
)
from config import StoreConfig


class CLIToolsTest(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_cli.db"
        self.legacy_dir = "test_cli_legacy"
        self.export_dir = "exports"
        self._cleanup()
        os.makedirs(self.export_dir, exist_ok=True)
        self.config = StoreConfig(db_path=self.db_path, legacy_dir=self.legacy_dir)

    def tearDown(self) -> None:
        self._cleanup()

    def _cleanup(self) -> None:
        for path in [self.db_path, self.legacy_dir, self.export_dir]:
            if os.path.exists(path):
                if os.path.isdir(path):
                    for f in os.listdir(path):
                        os.remove(os.path.join(path, f))
                    os.rmdir(path)
                else:
                    os.remove(path)

    def test_demo_data(self) -> None:
        self.assertTrue(demo_data(self.config))
        self.assertFalse(demo_data(self.config))
        stats = show_stats(self.config, "all")
        self.assertEqual(stats["overview"]["workouts"], 2)
        self.assertEqual(stats["overview"]["sets"], 3)
        self.assertEqual(stats["overview"]["volume"], 500 + 315 + 640)
        self.assertTrue(stats["storage"].endswith("B"))

    def test_export_clear_import(self) -> None:
        demo_data(self.config)
        path = export_backup(self.config, self.export_dir)
        self.assertTrue(os.path.basename(path).startswith("workout_backup_"))
        clear_data(self.config)
        self.assertEqual(show_stats(self.config, "all")["overview"]["workouts"], 0)
        counts = import_backup(self.config, path)
        self.assertEqual(counts["workouts"], 2)
        self.assertEqual(counts["bodyMetrics"], 1)

    def test_migrate_from_directory(self) -> None:
        os.makedirs(self.legacy_dir, exist_ok=True)
        blob = {
            "workouts": [
                {
                    "id": "42",
                    "date": "2024-01-05T09:00:00.000Z",
                    "exercise": "Squat",
                    "sets": [{"weight": 100, "reps": 5}],
                }
            ],
            "settings": {"theme": "light"},
        }
        with open(os.path.join(self.legacy_dir, "workoutData.json"), "w", encoding="utf-8") as f:
            json.dump(blob, f)
        result = migrate_legacy(self.config)
        self.assertEqual(result.generation, 1)
        self.assertEqual(result.workouts, 1)
        self.assertEqual(migrate_legacy(self.config).skipped, "destination not empty")

    def test_heatmap_and_body_fat(self) -> None:
        demo_data(self.config)
        days = heatmap(self.config, 7)
        self.assertEqual(len(days), 8)
        self.assertEqual(days[-1]["count"], 2)
        log_weight(self.config, 90.0)
        result = body_fat(self.config, 30, True, 180)
        self.assertEqual(result["weight"], 90.0)
        self.assertIn(result["category"], {"athlete", "fitness", "average", "obese"})

    def test_main_one_rep_max(self) -> None:
        main(["--config", "missing_cli_config.yaml", "--db", self.db_path, "one-rep-max", "--weight", "100", "--reps", "5"])

    def test_main_rejects_bad_import(self) -> None:
        bad = os.path.join(self.export_dir, "bad.json")
        with open(bad, "w", encoding="utf-8") as f:
            f.write('{"templates": []}')
        with self.assertRaises(SystemExit):
            main(["--config", "missing_cli_config.yaml", "--db", self.db_path, "import", bad])


if __name__ == "__main__":
    unittest.main()
