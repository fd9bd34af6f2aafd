# rewatch/watchdog/debounce.py

"""
Debounced rebuild scheduling
"""
import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_TIME = 0.2


class Signal(Enum):
    CHANGE = "change"
    TIMER = "timer"
    RERUN = "rerun"


class DebounceScheduler:
    """
    Decides when the command runs.

    Keeps the time of the last observed change and the completion time of
    the last run. Every change re-arms a fixed-delay timer; when the timer
    fires, a run happens only if ``last_run < last_change``. Manual rerun
    requests run immediately and leave the timer alone.

    Changes, timer firings and rerun requests all arrive on one queue and
    are handled one at a time, so runs never overlap and the timing state
    is only touched by the coordination loop.
    """

    def __init__(self, runner: Callable[[], Awaitable[datetime]],
                 debounce_time: float = DEFAULT_DEBOUNCE_TIME,
                 initial_run: bool = True,
                 clock: Callable[[], datetime] = datetime.now):
        """
        Initialize debounce scheduler

        Args:
            runner: Coroutine function running the command, returning its
                completion timestamp
            debounce_time: Quiescence period in seconds
            initial_run: Run once as soon as the loop starts
            clock: Source of the current time
        """
        if debounce_time < 0:
            raise ValueError(f"debounce_time must not be negative: {debounce_time}")

        self.runner = runner
        self.debounce_time = debounce_time
        self.initial_run = initial_run
        self.clock = clock

        self.last_change: datetime = clock()
        self.last_run: datetime = datetime.min

        self.signals: "asyncio.Queue[Tuple[Signal, Any]]" = asyncio.Queue()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._timer_generation = 0
        self.is_running = False

        # Statistics
        self.stats = {
            'changes': 0,
            'timer_fired': 0,
            'runs': 0,
            'manual_runs': 0,
            'skipped': 0,
        }

    def notify_change(self, timestamp: datetime):
        """Report a change observed at ``timestamp``"""
        self.signals.put_nowait((Signal.CHANGE, timestamp))

    def request_rerun(self):
        """Ask for an immediate run regardless of the timer"""
        self.signals.put_nowait((Signal.RERUN, None))

    @property
    def run_warranted(self) -> bool:
        return self.last_run < self.last_change

    async def run(self):
        """Coordination loop; runs until cancelled"""
        self.is_running = True
        logger.debug(f"DebounceScheduler started (debounce_time={self.debounce_time}s)")

        if self.initial_run:
            self._arm_timer(0)

        try:
            while True:
                signal, value = await self.signals.get()

                if signal is Signal.CHANGE:
                    self._on_change(value)
                elif signal is Signal.TIMER:
                    await self._on_timer(value)
                elif signal is Signal.RERUN:
                    self.stats['manual_runs'] += 1
                    await self._run()
        finally:
            self._cancel_timer()
            self.is_running = False

    def _on_change(self, timestamp: datetime):
        self.stats['changes'] += 1
        if timestamp > self.last_change:
            self.last_change = timestamp
        self._arm_timer(self.debounce_time)

    async def _on_timer(self, generation: int):
        if generation != self._timer_generation:
            # Superseded by a later change while queued
            return

        self._timer = None
        self.stats['timer_fired'] += 1

        if self.run_warranted:
            await self._run()
        else:
            self.stats['skipped'] += 1
            logger.debug(f"No change since last run at {self.last_run}")

    async def _run(self):
        logger.debug(f"Running (last change {self.last_change}, last run {self.last_run})")
        self.last_run = await self.runner()
        self.stats['runs'] += 1

    def _arm_timer(self, delay: float):
        self._cancel_timer()
        self._timer_generation += 1
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(
            delay,
            self.signals.put_nowait,
            (Signal.TIMER, self._timer_generation)
        )

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def get_stats(self) -> Dict[str, Any]:
        """Get scheduler statistics"""
        return {
            **self.stats,
            'last_change': self.last_change,
            'last_run': self.last_run,
            'debounce_time': self.debounce_time,
            'timer_pending': self._timer is not None,
        }
