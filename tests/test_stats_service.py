import datetime
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from stats_service import StatisticsService
from store import WorkoutStore


async def _service(tmp_path) -> StatisticsService:
    store = await WorkoutStore(str(tmp_path / "stats.db")).open()
    await store.workouts.insert_many(
        [
            {
                "id": "w1",
                "date": "2024-06-01T09:00:00Z",
                "exercise": "Bench Press",
                "sets": [{"weight": 100, "reps": 5}, {"weight": 90, "reps": 8}],
            },
            {
                "id": "w2",
                "date": "2024-06-03T09:00:00Z",
                "exercise": "Bench Press",
                "sets": [{"weight": 110, "reps": 5}],
            },
            {
                "id": "w3",
                "date": "2024-06-03T18:00:00Z",
                "exercise": "Squat",
                "sets": [{"weight": 140, "reps": 3}],
            },
        ]
    )
    await store.body_metrics.log(82.0, "2024-06-01T07:00:00Z")
    await store.body_metrics.log(81.5, "2024-06-03T07:00:00Z")
    return StatisticsService(store, heatmap_days=10)


@pytest.mark.asyncio
async def test_overview(tmp_path):
    stats = await _service(tmp_path)
    overview = await stats.overview("all")
    assert overview == {
        "workouts": 3,
        "sets": 4,
        "volume": 500 + 720 + 550 + 420,
        "favorite_exercise": "Bench Press",
    }


@pytest.mark.asyncio
async def test_overview_empty(tmp_path):
    store = await WorkoutStore(str(tmp_path / "empty.db")).open()
    assert await StatisticsService(store).overview("week") == {
        "workouts": 0,
        "sets": 0,
        "volume": 0.0,
        "favorite_exercise": None,
    }


@pytest.mark.asyncio
async def test_daily_volume(tmp_path):
    stats = await _service(tmp_path)
    assert await stats.daily_volume() == [
        {"date": "2024-06-01", "volume": 1220.0},
        {"date": "2024-06-03", "volume": 970.0},
    ]


@pytest.mark.asyncio
async def test_heatmap_uses_configured_window(tmp_path):
    stats = await _service(tmp_path)
    heatmap = await stats.activity_heatmap(today=datetime.date(2024, 6, 3))
    assert len(heatmap) == 11
    assert heatmap[-1] == {"date": "2024-06-03", "count": 2}
    assert heatmap[-3] == {"date": "2024-06-01", "count": 1}


@pytest.mark.asyncio
async def test_progression_and_records(tmp_path):
    stats = await _service(tmp_path)
    progression = await stats.progression("Bench Press")
    assert progression == [
        {"date": "2024-06-01T09:00:00Z", "max_weight": 100.0, "max_reps": 8, "est_1rm": 117},
        {"date": "2024-06-03T09:00:00Z", "max_weight": 110.0, "max_reps": 5, "est_1rm": 128},
    ]
    records = await stats.personal_records()
    assert [(r["exercise"], r["est_1rm"]) for r in records] == [
        ("Bench Press", 128),
        ("Squat", 154),
    ]


@pytest.mark.asyncio
async def test_body_weight_and_body_fat(tmp_path):
    stats = await _service(tmp_path)
    history = await stats.body_weight_history()
    assert [h["weight"] for h in history] == [82.0, 81.5]
    result = await stats.body_fat(35, True, 180)
    assert result["weight"] == 81.5
    assert result["percentage"] > 0


@pytest.mark.asyncio
async def test_body_fat_requires_weight(tmp_path):
    store = await WorkoutStore(str(tmp_path / "empty.db")).open()
    with pytest.raises(ValueError):
        await StatisticsService(store).body_fat(35, True, 180)
