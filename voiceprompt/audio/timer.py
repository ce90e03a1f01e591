"""Countdown timer bound to a single recording session."""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RecordingTimer:
    """Publishes remaining seconds on a fixed cadence and fires a deadline once.

    Ticks are scheduled against the event loop clock, so the countdown stays
    accurate regardless of how often audio fragments arrive.
    """

    def __init__(
        self,
        on_tick: Callable[[int], None],
        on_deadline: Callable[[], None],
        tick_interval: float = 1.0,
    ):
        """Initialize the timer.

        Args:
            on_tick: Called with the seconds remaining, first on start and then every tick
            on_deadline: Called exactly once when the countdown reaches zero
            tick_interval: Seconds between ticks (1.0 outside of tests)
        """
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")

        self.on_tick = on_tick
        self.on_deadline = on_deadline
        self.tick_interval = tick_interval

        self.seconds_remaining: Optional[int] = None
        self.expired = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, max_seconds: int) -> None:
        """Begin counting down from ``max_seconds``."""
        if self._task is not None:
            raise RuntimeError("RecordingTimer can only be started once")
        if max_seconds <= 0:
            raise ValueError("max_seconds must be positive")

        self.seconds_remaining = max_seconds
        self.on_tick(self.seconds_remaining)
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Timer started: {max_seconds}s, tick every {self.tick_interval}s")

    def cancel(self) -> None:
        """Stop ticking without firing the deadline. Safe to call repeatedly."""
        if self._task is None or self._task.done():
            return
        if self._task is asyncio.current_task():
            # Deadline callback stopping its own timer; the task ends on return
            return
        self._task.cancel()
        logger.debug(f"Timer cancelled with {self.seconds_remaining}s remaining")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()

        while self.seconds_remaining > 0:
            next_tick += self.tick_interval
            await asyncio.sleep(max(0.0, next_tick - loop.time()))

            self.seconds_remaining -= 1
            self.on_tick(self.seconds_remaining)

        self.expired = True
        logger.info("Recording deadline reached")
        self.on_deadline()
