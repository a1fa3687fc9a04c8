# aptis_practice/core/timer.py
"""
Per-second countdown used for section clocks and speaking task phases.

``tick()`` is the whole transition; with ``autotick`` enabled the timer also
schedules itself on the running asyncio loop, one tick per ``tick_interval``.
Tests drive ``tick()`` by hand with autotick disabled.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def format_time(seconds: int) -> str:
    """Clock display as mm:ss"""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


class SectionTimer:
    """Countdown that invokes ``on_expire`` exactly once when it reaches zero"""

    def __init__(self, on_expire: Callable[[], None], tick_interval: float = 1.0,
                 autotick: bool = True, name: str = "timer"):
        self.remaining_seconds = 0
        self.running = False
        self.name = name
        self._on_expire = on_expire
        self._tick_interval = tick_interval
        self._autotick = autotick
        self._task: Optional[asyncio.Task] = None
        # bumped on every start/cancel so a superseded loop stops ticking
        self._generation = 0

    def start(self, duration_seconds: int):
        """Begin counting down from ``duration_seconds``"""
        if duration_seconds < 0:
            raise ValueError("duration_seconds must be >= 0")

        self._stop_ticking()
        self.remaining_seconds = int(duration_seconds)
        self.running = True
        logger.debug(f"⏱️ {self.name} started: {duration_seconds}s")

        if self.remaining_seconds == 0:
            self._expire()
            return

        if self._autotick:
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(self._run(self._generation))

    def reset(self, new_duration: int):
        """Cancel any pending countdown and start a new one"""
        self.cancel()
        self.start(new_duration)

    def cancel(self):
        """Stop without firing ``on_expire``"""
        if self.running:
            logger.debug(f"⏱️ {self.name} cancelled at {self.remaining_seconds}s")
        self.running = False
        self._stop_ticking()

    def tick(self):
        """Advance one second"""
        if not self.running:
            return
        self.remaining_seconds -= 1
        if self.remaining_seconds <= 0:
            self.remaining_seconds = 0
            self._expire()

    @property
    def display(self) -> str:
        return format_time(self.remaining_seconds)

    def _expire(self):
        self.running = False
        self._stop_ticking()
        logger.debug(f"⏱️ {self.name} expired")
        self._on_expire()

    def _stop_ticking(self):
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

    async def _run(self, generation: int):
        while self.running and generation == self._generation:
            await asyncio.sleep(self._tick_interval)
            if generation != self._generation:
                return
            self.tick()


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
