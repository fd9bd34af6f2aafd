# rewatch/core/display.py

"""
Display sinks: where run transcripts go and where manual reruns come from
"""
import asyncio
import logging
import sys
import threading
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol, TextIO

logger = logging.getLogger(__name__)

RenderFn = Callable[[TextIO], Awaitable[None]]

# Cursor home + erase display
CLEAR_SCREEN = "\033[H\033[2J"


class DisplaySink(Protocol):
    """Surface the run coordinator renders into"""

    async def redisplay(self, render: RenderFn) -> None:
        """Invoke ``render`` with a writable output surface"""
        ...

    def rerun_requests(self) -> AsyncIterator[None]:
        """Stream of manual rerun triggers (possibly empty)"""
        ...


class TerminalDisplay:
    """Append every transcript to a stream; no manual reruns"""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    async def redisplay(self, render: RenderFn) -> None:
        await render(self.stream)
        self.stream.flush()

    async def rerun_requests(self) -> AsyncIterator[None]:
        return
        yield


class InteractiveDisplay:
    """
    Console display that clears the screen before each run and treats
    every line typed on the input stream as a rerun request
    """

    def __init__(self, stream: Optional[TextIO] = None,
                 input_stream: Optional[TextIO] = None,
                 clear: bool = True):
        """
        Initialize interactive display

        Args:
            stream: Output stream (stdout by default)
            input_stream: Stream read for rerun requests (stdin by default)
            clear: Clear the screen before each transcript
        """
        self.stream = stream or sys.stdout
        self.input_stream = input_stream or sys.stdin
        self.clear = clear

    async def redisplay(self, render: RenderFn) -> None:
        if self.clear:
            self.stream.write(CLEAR_SCREEN)
        await render(self.stream)
        self.stream.flush()

    async def rerun_requests(self) -> AsyncIterator[None]:
        """
        Yield once per input line until the input stream closes.

        Lines are read on a daemon thread so a pending read never
        blocks interpreter shutdown.
        """
        loop = asyncio.get_running_loop()
        lines: "asyncio.Queue[Optional[str]]" = asyncio.Queue()

        def reader():
            try:
                for line in iter(self.input_stream.readline, ''):
                    loop.call_soon_threadsafe(lines.put_nowait, line)
            except (OSError, ValueError) as e:
                logger.debug(f"Stopped reading rerun requests: {e}")
            finally:
                try:
                    loop.call_soon_threadsafe(lines.put_nowait, None)
                except RuntimeError:
                    pass

        threading.Thread(target=reader, name="RerunReader", daemon=True).start()

        while True:
            line = await lines.get()
            if line is None:
                logger.debug("Input closed; manual reruns disabled")
                return
            logger.debug("Rerun requested")
            yield None
