"""Shared fixtures for the Rewatch test suite."""
import os
from pathlib import Path

import pytest
from watchdog.events import FileSystemEventHandler
from watchdog.observers.api import ObservedWatch

from rewatch.watchdog.patterns import ExclusionFilter
from rewatch.watchdog.watcher import WatchSet


class FakeObserver:
    """Records schedules instead of starting emitter threads."""

    def __init__(self):
        self.scheduled = []
        self.unscheduled = []
        self.errors = {}
        self.started = False

    def schedule(self, handler, path, recursive=False):
        if path in self.errors:
            raise self.errors[path]
        if not os.path.exists(path):
            raise FileNotFoundError(2, "No such file or directory", path)
        self.scheduled.append(Path(path))
        return ObservedWatch(path, recursive=recursive)

    def unschedule(self, watch):
        self.unscheduled.append(Path(watch.path))

    def unschedule_all(self):
        self.scheduled.clear()

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def join(self, timeout=None):
        pass


@pytest.fixture()
def fake_observer():
    return FakeObserver()


@pytest.fixture()
def make_watch_set(fake_observer):
    def factory(pattern=""):
        return WatchSet(
            FileSystemEventHandler(),
            exclusion_filter=ExclusionFilter(pattern),
            observer=fake_observer,
        )

    return factory


@pytest.fixture()
def tree(tmp_path):
    """
    tmp_path/
      a.txt
      b.txt
      src/
        main.c
        lib/
          util.c
      build/
        out.o
    """
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "b.txt").write_text("b")
    (tmp_path / "src" / "lib").mkdir(parents=True)
    (tmp_path / "src" / "main.c").write_text("int main;")
    (tmp_path / "src" / "lib" / "util.c").write_text("int util;")
    (tmp_path / "build").mkdir()
    (tmp_path / "build" / "out.o").write_text("")
    return tmp_path
