# rewatch/core/runner.py

"""
Command execution for each rebuild
"""
import asyncio
import codecs
import logging
import signal
import subprocess
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Union

from .display import DisplaySink

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


def describe_exit(returncode: int) -> str:
    """
    Describe a non-zero exit the way a shell user expects

    Args:
        returncode: Process return code (negative for signal deaths)

    Returns:
        "exit status N" or "signal: NAME"
    """
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = str(-returncode)
        return f"signal: {name}"
    return f"exit status {returncode}"


class RunCoordinator:
    """
    Runs the watched command once per call and renders its transcript:
    the command line, combined stdout/stderr, any failure, and the
    completion time.
    """

    def __init__(self, command: Sequence[str], display: DisplaySink,
                 cwd: Optional[Union[str, Path]] = None,
                 encoding: str = 'utf-8'):
        """
        Initialize run coordinator

        Args:
            command: Program and arguments
            display: Sink receiving the transcript
            cwd: Working directory for the command
            encoding: Encoding used to decode command output
        """
        if not command:
            raise ValueError("No command to run")

        self.command: List[str] = list(command)
        self.display = display
        self.cwd = cwd
        self.encoding = encoding

        self.stats = {
            'runs': 0,
            'failures': 0,
            'last_returncode': None,
        }

    @property
    def command_line(self) -> str:
        return " ".join(self.command)

    async def run(self) -> datetime:
        """
        Run the command once

        Returns:
            Completion timestamp
        """
        await self.display.redisplay(self._render)
        self.stats['runs'] += 1
        return datetime.now()

    async def _render(self, out: TextIO):
        out.write(self.command_line + "\n")
        out.flush()

        error = await self._execute(out)
        if error:
            self.stats['failures'] += 1
            out.write(error + "\n")

        out.write(f"{datetime.now()}\n")
        out.flush()

    async def _execute(self, out: TextIO) -> Optional[str]:
        """Run the process, streaming output; returns failure text if any"""
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=self.cwd,
            )
        except OSError as e:
            logger.debug(f"Failed to start {self.command[0]}: {e}")
            self.stats['last_returncode'] = None
            return str(e)

        try:
            await self._stream_output(process, out)
            returncode = await process.wait()
        except asyncio.CancelledError:
            logger.debug(f"Run cancelled; killing {self.command[0]} (pid {process.pid})")
            try:
                process.kill()
            except ProcessLookupError:
                pass
            self.stats['last_returncode'] = await process.wait()
            raise

        self.stats['last_returncode'] = returncode
        logger.debug(f"{self.command_line} exited with {returncode}")

        if returncode != 0:
            return describe_exit(returncode)
        return None

    async def _stream_output(self, process: asyncio.subprocess.Process, out: TextIO):
        decoder = codecs.getincrementaldecoder(self.encoding)(errors='replace')
        while True:
            chunk = await process.stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            out.write(decoder.decode(chunk))
            out.flush()
        tail = decoder.decode(b'', final=True)
        if tail:
            out.write(tail)
