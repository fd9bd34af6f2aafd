# rewatch/watchdog/monitor.py

"""
Main watch-and-rebuild monitor for Rewatch
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from watchdog.observers.api import BaseObserver

from ..core.display import DisplaySink
from ..core.runner import RunCoordinator
from ..utils.config import WatchConfig
from ..utils.file_utils import normalize_path
from .debounce import DebounceScheduler
from .events import RawEvent
from .handlers import EventTranslator, ForwardingEventHandler
from .patterns import ExclusionFilter
from .watcher import WatchSet

logger = logging.getLogger(__name__)


class Monitor:
    """
    Owns every piece of process state: the exclusion filter, the watch
    set, the translator and the scheduler's timing state.

    Tasks started on ``start()``:
      - the coordination loop (DebounceScheduler.run)
      - the translator draining raw observer events
      - a forwarder for the display's manual rerun requests
    A fatal error in any of them ends ``wait()``.
    """

    def __init__(self, config: WatchConfig, display: DisplaySink,
                 observer: Optional[BaseObserver] = None):
        """
        Initialize monitor

        Args:
            config: Validated configuration
            display: Display sink for transcripts and reruns
            observer: Observer override (tests)
        """
        self.config = config
        self.display = display
        self.root = normalize_path(config.path)

        self.exclusion_filter = ExclusionFilter(config.exclude)
        self.runner = RunCoordinator(config.command, display)
        self.scheduler = DebounceScheduler(
            self.runner.run,
            debounce_time=config.debounce_time,
            initial_run=config.initial_run
        )

        self.raw_events: "asyncio.Queue[RawEvent]" = asyncio.Queue()
        self.event_handler = ForwardingEventHandler(self.raw_events)
        self.watch_set = WatchSet(
            self.event_handler,
            exclusion_filter=self.exclusion_filter,
            observer=observer,
            use_polling=config.use_polling,
            poll_interval=config.poll_interval
        )
        self.translator = EventTranslator(self.watch_set, self.exclusion_filter)

        self.tasks: List[asyncio.Task] = []
        self.is_running = False

    async def start(self):
        """Register the watch root and start the background tasks"""
        if self.is_running:
            logger.warning("Monitor is already running")
            return

        self.event_handler.attach(asyncio.get_running_loop())

        # Observer first, so registration failures surface per path
        self.watch_set.start()
        self.watch_set.watch_recursive(self.root)
        logger.info(f"Watching {self.root} ({len(self.watch_set.watches)} paths)")

        self.tasks = [
            asyncio.create_task(self.scheduler.run(), name="scheduler"),
            asyncio.create_task(
                self.translator.process(self.raw_events, self.scheduler.notify_change),
                name="translator"
            ),
            asyncio.create_task(self._forward_reruns(), name="reruns"),
        ]
        self.is_running = True

    async def wait(self):
        """
        Block until a task fails

        Raises:
            The first fatal error raised by a background task
        """
        pending = set(self.tasks)
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    raise task.exception()

    async def stop(self):
        """Cancel background tasks and release the observer"""
        if not self.is_running:
            return

        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks = []

        self.watch_set.stop()
        self.is_running = False
        logger.info("Monitor stopped")

    async def run(self):
        """Start, wait for a fatal error (or cancellation), then stop"""
        await self.start()
        try:
            await self.wait()
        finally:
            await self.stop()

    async def _forward_reruns(self):
        async for _ in self.display.rerun_requests():
            self.scheduler.request_rerun()

    def get_status(self) -> Dict[str, Any]:
        """Get monitor status"""
        return {
            'root': str(self.root),
            'command': self.runner.command_line,
            'is_running': self.is_running,
            'scheduler': self.scheduler.get_stats(),
            'watch_set': self.watch_set.get_status(),
            'translator': self.translator.get_stats(),
            'handler': self.event_handler.get_stats(),
            'runner': self.runner.stats.copy(),
        }
