"""End-to-end tests for :mod:`rewatch.watchdog.monitor` with a real observer."""
import asyncio
import io
import os
import sys

import pytest

from rewatch.core.display import TerminalDisplay
from rewatch.exceptions import ConfigurationError
from rewatch.utils.config import WatchConfig
from rewatch.watchdog.monitor import Monitor

DELAY = 0.2
SETTLE = 0.6


async def wait_for(predicate, timeout=5.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            return False
        await asyncio.sleep(0.02)
    return True


def make_monitor(root, exclude=r"\.log$"):
    config = WatchConfig(
        path=root,
        command=[sys.executable, "-c", "print('built')"],
        exclude=exclude,
        debounce_time=DELAY,
        terminal=True,
    )
    out = io.StringIO()
    return Monitor(config, TerminalDisplay(out)), out


def runs(monitor):
    return monitor.runner.stats['runs']


def test_watch_and_rebuild_scenario(tmp_path):
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "b.txt").write_text("b")

    async def scenario():
        monitor, out = make_monitor(tmp_path)
        await monitor.start()
        try:
            # Initial run at startup
            assert await wait_for(lambda: runs(monitor) == 1)
            await asyncio.sleep(0.1)

            # Excluded file: never triggers a run
            (tmp_path / "c.log").write_text("log")
            await asyncio.sleep(SETTLE)
            assert runs(monitor) == 1

            # Two quick modifications: exactly one run
            (tmp_path / "a.txt").write_text("a2")
            await asyncio.sleep(0.03)
            (tmp_path / "b.txt").write_text("b2")
            assert await wait_for(lambda: runs(monitor) == 2)
            await asyncio.sleep(SETTLE)
            assert runs(monitor) == 2

            # New subdirectory is picked up without a restart
            (tmp_path / "new").mkdir()
            assert await wait_for(lambda: monitor.watch_set.is_watched(tmp_path / "new"))
            assert await wait_for(lambda: runs(monitor) == 3)
            await asyncio.sleep(SETTLE)

            (tmp_path / "new" / "inner.txt").write_text("inner")
            assert await wait_for(lambda: runs(monitor) == 4)
            await asyncio.sleep(SETTLE)
            assert runs(monitor) == 4

            # Deletion resolves to the parent directory and still triggers
            (tmp_path / "a.txt").unlink()
            assert await wait_for(lambda: runs(monitor) == 5)
        finally:
            await monitor.stop()
        return monitor, out.getvalue()

    monitor, transcript = asyncio.run(scenario())

    assert transcript.count("built") == 5
    assert monitor.translator.stats['events_excluded'] >= 1
    assert not monitor.is_running


def test_rename_of_old_file_triggers_one_run(tmp_path):
    old = tmp_path / "a.txt"
    old.write_text("a")
    os.utime(old, (1_500_000_000, 1_500_000_000))

    async def scenario():
        monitor, _ = make_monitor(tmp_path)
        await monitor.start()
        try:
            assert await wait_for(lambda: runs(monitor) == 1)
            await asyncio.sleep(0.1)
            old.rename(tmp_path / "renamed.txt")
            assert await wait_for(lambda: runs(monitor) == 2)
            await asyncio.sleep(SETTLE)
            return runs(monitor)
        finally:
            await monitor.stop()

    assert asyncio.run(scenario()) == 2


def test_excluded_directory_changes_never_trigger(tmp_path):
    (tmp_path / "build").mkdir()

    async def scenario():
        monitor, _ = make_monitor(tmp_path, exclude=r"/build(/|$)")
        await monitor.start()
        try:
            assert await wait_for(lambda: runs(monitor) == 1)
            assert not monitor.watch_set.is_watched(tmp_path / "build")
            (tmp_path / "build" / "out.o").write_text("")
            (tmp_path / "build" / "sub").mkdir()
            await asyncio.sleep(SETTLE)
            return runs(monitor)
        finally:
            await monitor.stop()

    assert asyncio.run(scenario()) == 1


def test_bad_exclusion_pattern_fails_at_construction(tmp_path):
    with pytest.raises(ConfigurationError):
        make_monitor(tmp_path, exclude="[")


def test_status_reports_every_component(tmp_path):
    monitor, _ = make_monitor(tmp_path)

    status = monitor.get_status()

    assert status['root'] == str(tmp_path)
    assert set(status) >= {'scheduler', 'watch_set', 'translator', 'handler', 'runner'}
