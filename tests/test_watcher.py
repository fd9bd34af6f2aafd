"""Tests for :mod:`rewatch.watchdog.watcher`."""
import errno
import logging

import pytest

from rewatch.exceptions import WatcherError


def test_watch_recursive_registers_directories_children_first(tree, make_watch_set, fake_observer):
    watch_set = make_watch_set()

    watch_set.watch_recursive(tree)

    scheduled = fake_observer.scheduled
    assert set(scheduled) == {tree, tree / "build", tree / "src", tree / "src" / "lib"}
    assert scheduled.index(tree / "src" / "lib") < scheduled.index(tree / "src")
    assert scheduled.index(tree / "src") < scheduled.index(tree)
    assert scheduled[-1] == tree


def test_files_inside_directories_are_covered_by_the_directory_watch(tree, make_watch_set, fake_observer):
    watch_set = make_watch_set()

    watch_set.watch_recursive(tree)

    assert tree / "a.txt" not in fake_observer.scheduled
    assert tree / "src" / "main.c" not in fake_observer.scheduled


def test_watch_recursive_on_a_file_registers_it_directly(tree, make_watch_set, fake_observer):
    watch_set = make_watch_set()

    watch_set.watch_recursive(tree / "a.txt")

    assert fake_observer.scheduled == [tree / "a.txt"]
    assert watch_set.is_watched(tree / "a.txt")


def test_excluded_paths_never_reach_registration(tree, make_watch_set, fake_observer):
    watch_set = make_watch_set(r"/build$|/lib$")

    watch_set.watch_recursive(tree)

    assert tree / "build" not in fake_observer.scheduled
    assert tree / "src" / "lib" not in fake_observer.scheduled
    assert tree / "src" in fake_observer.scheduled
    assert watch_set.stats['excluded'] == 2


def test_excluded_root_is_skipped_entirely(tree, make_watch_set, fake_observer):
    watch_set = make_watch_set(r"src")

    watch_set.watch_recursive(tree / "src")

    assert fake_observer.scheduled == []


def test_watch_missing_path_is_a_silent_noop(tmp_path, make_watch_set, caplog):
    watch_set = make_watch_set()

    with caplog.at_level(logging.WARNING):
        assert watch_set.watch(tmp_path / "gone") is False
        watch_set.watch_recursive(tmp_path / "gone")

    assert caplog.records == []
    assert watch_set.stats['missing'] == 2


def test_handle_limit_is_fatal(tree, make_watch_set, fake_observer):
    fake_observer.errors[str(tree)] = OSError(errno.ENOSPC, "inotify watch limit reached")
    watch_set = make_watch_set()

    with pytest.raises(WatcherError, match="inotify watch limit reached"):
        watch_set.watch(tree)


def test_other_registration_errors_are_logged_and_skipped(tree, make_watch_set, fake_observer, caplog):
    fake_observer.errors[str(tree / "src")] = PermissionError(errno.EACCES, "Permission denied")
    watch_set = make_watch_set()

    with caplog.at_level(logging.WARNING):
        watch_set.watch_recursive(tree)

    assert "Failed to watch" in caplog.text
    assert tree / "src" not in fake_observer.scheduled
    assert tree / "src" / "lib" in fake_observer.scheduled
    assert tree in fake_observer.scheduled


def test_forget_drops_a_subtree(tree, make_watch_set, fake_observer):
    watch_set = make_watch_set()
    watch_set.watch_recursive(tree)

    dropped = watch_set.forget(tree / "src")

    assert dropped == 2
    assert set(fake_observer.unscheduled) == {tree / "src", tree / "src" / "lib"}
    assert not watch_set.is_watched(tree / "src" / "lib")
    assert watch_set.is_watched(tree)
    assert watch_set.forget(tree / "a.txt") == 0


def test_start_and_stop_manage_the_observer(make_watch_set, fake_observer, tree):
    watch_set = make_watch_set()

    watch_set.start()
    watch_set.watch_recursive(tree)
    assert fake_observer.started
    assert watch_set.get_status()['total_watches'] == 4

    watch_set.stop()
    assert not fake_observer.started
    assert watch_set.watches == {}
