import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[..., Union[None, Awaitable[None]]]


class RestTimer:
    """Countdown between sets driven by one-second ticks on the event loop.

    When the countdown reaches zero the timer stops and ``remaining`` is
    restored to ``duration`` so it can be started again.
    """

    PRESETS = (60, 90, 120, 180)

    def __init__(
        self,
        duration: int = 90,
        on_tick: Optional[Callback] = None,
        on_complete: Optional[Callback] = None,
        tick: float = 1.0,
    ) -> None:
        if duration <= 0:
            raise ValueError("duration must be positive")
        self.duration = int(duration)
        self.on_tick = on_tick
        self.on_complete = on_complete
        self.tick = tick
        self._remaining = self.duration
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, settings: dict, **kwargs) -> "RestTimer":
        return cls(int(settings.get("timerDuration", 90)), **kwargs)

    @staticmethod
    def format_time(seconds: int) -> str:
        minutes, secs = divmod(int(seconds), 60)
        return f"{minutes:02d}:{secs:02d}"

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def pause(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def toggle(self) -> None:
        if self.is_running:
            self.pause()
        else:
            self.start()

    def reset(self) -> None:
        self.pause()
        self._remaining = self.duration

    def set_duration(self, seconds: int) -> None:
        if seconds <= 0:
            raise ValueError("duration must be positive")
        self.pause()
        self.duration = int(seconds)
        self._remaining = self.duration

    async def wait(self) -> bool:
        """Wait for the running countdown; ``True`` if it ran to completion."""
        task = self._task
        if task is None:
            return False
        await asyncio.wait({task})
        return not task.cancelled() and task.result()

    @staticmethod
    async def _notify(callback: Optional[Callback], *args) -> None:
        if callback is None:
            return
        result = callback(*args)
        if inspect.isawaitable(result):
            await result

    async def _run(self) -> bool:
        while True:
            await asyncio.sleep(self.tick)
            if self._remaining <= 1:
                self._remaining = self.duration
                logger.debug("Rest timer finished")
                await self._notify(self.on_complete)
                return True
            self._remaining -= 1
            await self._notify(self.on_tick, self._remaining)
