import argparse
import asyncio
import json
import logging
from typing import Optional

from algorithms import MathTools
from config import StoreConfig, load_store_config
from errors import StoreError
from migrate import DirectoryBlobSource
from stats_service import StatisticsService
from store import WorkoutStore

logger = logging.getLogger(__name__)


async def _open_store(config: StoreConfig) -> WorkoutStore:
    store = WorkoutStore.from_config(
        config, legacy_source=DirectoryBlobSource(config.legacy_dir)
    )
    return await store.open()


def export_backup(config: StoreConfig, output_dir: str = ".") -> str:
    async def run() -> str:
        store = await _open_store(config)
        return await store.write_backup(output_dir)

    return asyncio.run(run())


def import_backup(config: StoreConfig, path: str) -> dict:
    """Replace stored data with the backup at ``path``."""

    async def run() -> dict:
        store = await _open_store(config)
        with open(path, "r", encoding="utf-8") as f:
            return await store.import_data(f.read())

    return asyncio.run(run())


def clear_data(config: StoreConfig) -> None:
    async def run() -> None:
        store = await _open_store(config)
        await store.clear_all()

    asyncio.run(run())


def migrate_legacy(config: StoreConfig):
    async def run():
        store = await _open_store(config)
        return store.migration

    return asyncio.run(run())


def show_stats(config: StoreConfig, period: str) -> dict:
    async def run() -> dict:
        store = await _open_store(config)
        stats = StatisticsService(store, config.heatmap_days)
        return {
            "overview": await stats.overview(period),
            "daily_volume": await stats.daily_volume(period),
            "personal_records": await stats.personal_records(),
            "storage": await store.storage_usage(),
        }

    return asyncio.run(run())


def heatmap(config: StoreConfig, days: Optional[int] = None) -> list[dict]:
    async def run() -> list[dict]:
        store = await _open_store(config)
        return await StatisticsService(store, config.heatmap_days).activity_heatmap(days)

    return asyncio.run(run())


def log_weight(config: StoreConfig, weight: float) -> dict:
    async def run() -> dict:
        store = await _open_store(config)
        metric = await store.body_metrics.log(weight)
        return metric.model_dump()

    return asyncio.run(run())


def body_fat(
    config: StoreConfig,
    age: float,
    is_male: bool,
    height_cm: float,
    weight_kg: Optional[float] = None,
) -> dict:
    async def run() -> dict:
        store = await _open_store(config)
        stats = StatisticsService(store, config.heatmap_days)
        return await stats.body_fat(age, is_male, height_cm, weight_kg)

    return asyncio.run(run())


def demo_data(config: StoreConfig) -> bool:
    """Populate the database with demo workouts if empty."""

    async def run() -> bool:
        store = await _open_store(config)
        if await store.workouts.count():
            return False
        await store.workouts.create(
            {
                "exercise": "Bench Press",
                "sets": [{"weight": 100.0, "reps": 5}, {"weight": 105.0, "reps": 3}],
                "notes": "Demo session",
            }
        )
        await store.workouts.create(
            {"exercise": "Barbell Row", "sets": [{"weight": 80.0, "reps": 8}]}
        )
        await store.body_metrics.log(80.0)
        return True

    return asyncio.run(run())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Workout data utilities")
    parser.add_argument("--config", default="config.yaml")
    parser.add_argument("--db", default=None, help="override the configured database")
    sub = parser.add_subparsers(dest="cmd", required=True)

    exp = sub.add_parser("export")
    exp.add_argument("--out", default=".")

    imp = sub.add_parser("import")
    imp.add_argument("path")

    sub.add_parser("clear")
    sub.add_parser("migrate")

    stats = sub.add_parser("stats")
    stats.add_argument("--period", choices=["week", "month", "all"], default="all")

    heat = sub.add_parser("heatmap")
    heat.add_argument("--days", type=int, default=None)

    weight = sub.add_parser("log-weight")
    weight.add_argument("weight", type=float)

    orm = sub.add_parser("one-rep-max")
    orm.add_argument("--weight", type=float, required=True)
    orm.add_argument("--reps", type=int, required=True)

    bf = sub.add_parser("body-fat")
    bf.add_argument("--age", type=float, required=True)
    bf.add_argument("--height", type=float, required=True)
    bf.add_argument("--weight", type=float, default=None)
    bf.add_argument("--female", action="store_true")

    sub.add_parser("demo")

    args = parser.parse_args(argv)
    config = load_store_config(args.config)
    if args.db:
        config.db_path = args.db
    logging.basicConfig(level=config.log_level.upper())

    try:
        if args.cmd == "export":
            print(export_backup(config, args.out))
        elif args.cmd == "import":
            counts = import_backup(config, args.path)
            print(f"Imported {counts['workouts']} workouts")
        elif args.cmd == "clear":
            clear_data(config)
            print("All data cleared")
        elif args.cmd == "migrate":
            print(migrate_legacy(config))
        elif args.cmd == "stats":
            print(json.dumps(show_stats(config, args.period), indent=2))
        elif args.cmd == "heatmap":
            for entry in heatmap(config, args.days):
                print(f"{entry['date']} {entry['count']}")
        elif args.cmd == "log-weight":
            print(json.dumps(log_weight(config, args.weight)))
        elif args.cmd == "one-rep-max":
            print(MathTools.epley_1rm(args.weight, args.reps))
        elif args.cmd == "body-fat":
            result = body_fat(config, args.age, not args.female, args.height, args.weight)
            print(f"{result['percentage']}% ({result['category']})")
        elif args.cmd == "demo":
            if demo_data(config):
                print("Demo data inserted")
            else:
                print("Database already contains workouts")
    except (StoreError, ValueError) as e:
        logger.error("%s failed: %s", args.cmd, e)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
