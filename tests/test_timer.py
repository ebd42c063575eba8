import asyncio
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from timer import RestTimer


@pytest.mark.asyncio
async def test_countdown_completes_and_resets():
    ticks: list[int] = []
    done: list[bool] = []
    timer = RestTimer(3, on_tick=ticks.append, on_complete=lambda: done.append(True), tick=0.01)
    timer.start()
    assert timer.is_running
    assert await timer.wait() is True
    assert ticks == [2, 1]
    assert done == [True]
    assert not timer.is_running
    assert timer.remaining == 3


@pytest.mark.asyncio
async def test_pause_keeps_remaining():
    timer = RestTimer(100, tick=0.01)
    timer.start()
    await asyncio.sleep(0.035)
    timer.pause()
    paused_at = timer.remaining
    assert not timer.is_running
    assert paused_at < 100
    await asyncio.sleep(0.03)
    assert timer.remaining == paused_at
    assert await timer.wait() is False


@pytest.mark.asyncio
async def test_reset_and_set_duration():
    timer = RestTimer(60, tick=0.01)
    timer.start()
    await asyncio.sleep(0.025)
    timer.reset()
    assert timer.remaining == 60
    assert not timer.is_running
    timer.set_duration(120)
    assert timer.duration == 120
    assert timer.remaining == 120
    with pytest.raises(ValueError):
        timer.set_duration(0)


@pytest.mark.asyncio
async def test_async_callbacks_and_toggle():
    events: list[str] = []

    async def finished() -> None:
        events.append("done")

    timer = RestTimer(1, on_complete=finished, tick=0.01)
    timer.toggle()
    assert timer.is_running
    await timer.wait()
    assert events == ["done"]


def test_from_settings_and_format():
    timer = RestTimer.from_settings({"theme": "dark", "timerDuration": 180})
    assert timer.duration == 180
    assert RestTimer.from_settings({}).duration == 90
    assert RestTimer.format_time(90) == "01:30"
    assert RestTimer.format_time(5) == "00:05"
    assert 90 in RestTimer.PRESETS
    with pytest.raises(ValueError):
        RestTimer(0)
