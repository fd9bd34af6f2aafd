# rewatch/watchdog/watcher.py

"""
Watch set management on top of watchdog observers
"""
import errno
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch
from watchdog.observers.polling import PollingObserver

from ..exceptions import WatcherError
from ..utils.file_utils import is_directory, list_children
from .patterns import ExclusionFilter

logger = logging.getLogger(__name__)

# Platform handle limits (inotify watches and instances, open files)
HANDLE_LIMIT_ERRNOS = {errno.ENOSPC, errno.EMFILE, errno.ENFILE}


class WatchSet:
    """
    The set of paths subscribed to low-level change notifications.

    Every path is scheduled non-recursively; recursion is done here so that
    excluded subtrees never reach the observer and new directories can be
    added one at a time as they appear.
    """

    def __init__(self, handler: FileSystemEventHandler,
                 exclusion_filter: Optional[ExclusionFilter] = None,
                 observer: Optional[BaseObserver] = None,
                 use_polling: bool = False,
                 poll_interval: float = 1.0):
        """
        Initialize watch set

        Args:
            handler: Handler receiving raw watchdog events
            exclusion_filter: Filter for paths that must not be watched
            observer: Observer to schedule on (created on start if omitted)
            use_polling: Use polling instead of OS events
            poll_interval: Polling interval in seconds
        """
        self.handler = handler
        self.exclusion_filter = exclusion_filter or ExclusionFilter()
        self.observer = observer
        self.use_polling = use_polling
        self.poll_interval = poll_interval

        self.watches: Dict[Path, ObservedWatch] = {}
        self.is_running = False
        self.stats = {
            'registered': 0,
            'missing': 0,
            'excluded': 0,
            'failed': 0,
            'forgotten': 0,
        }

    def start(self):
        """Start the observer so that later registrations take effect immediately"""
        if self.is_running:
            return

        if self.observer is None:
            if self.use_polling:
                self.observer = PollingObserver(timeout=self.poll_interval)
                logger.debug(f"Using polling observer (interval: {self.poll_interval}s)")
            else:
                self.observer = Observer()
                logger.debug("Using OS event observer")

        try:
            self.observer.start()
        except OSError as e:
            raise WatcherError(f"Failed to start watcher: {e}") from e

        self.is_running = True

    def stop(self):
        """Stop the observer and drop every registration"""
        if not self.is_running:
            return

        self.observer.unschedule_all()
        self.observer.stop()
        self.observer.join(timeout=10)
        self.watches.clear()
        self.is_running = False
        logger.debug("Watch set stopped")

    def watch(self, path: Union[str, Path]) -> bool:
        """
        Register a single path for notifications

        Args:
            path: File or directory to watch

        Returns:
            True if the path is now watched

        Raises:
            WatcherError: If a platform handle limit was hit
        """
        path = Path(path)
        logger.debug(f"Watching {path}")

        try:
            watch = self.observer.schedule(self.handler, str(path), recursive=False)
        except FileNotFoundError:
            self.stats['missing'] += 1
            logger.debug(f"{path} no longer exists")
            return False
        except OSError as e:
            if e.errno in HANDLE_LIMIT_ERRNOS:
                raise WatcherError(f"Failed to watch {path}: {e}") from e
            self.stats['failed'] += 1
            logger.warning(f"Failed to watch {path}: {e}")
            return False

        self.watches[path] = watch
        self.stats['registered'] += 1
        return True

    def watch_recursive(self, path: Union[str, Path]):
        """
        Register a path and, for a directory, every non-excluded
        subdirectory below it. Children are registered before their parent.

        Files inside a watched directory are reported through the directory's
        own watch; a file is registered directly only when it is the target.

        Args:
            path: Root of the subtree to watch
        """
        path = Path(path)
        if self._excluded(path):
            return

        try:
            directory = is_directory(path)
        except OSError as e:
            self.stats['failed'] += 1
            logger.warning(f"Failed to watch {path}: {e}")
            return

        if directory:
            for child in self._children(path):
                if self._excluded(child):
                    continue
                try:
                    if is_directory(child):
                        self.watch_recursive(child)
                except OSError as e:
                    self.stats['failed'] += 1
                    logger.warning(f"Failed to watch {child}: {e}")

        self.watch(path)

    def forget(self, path: Union[str, Path]) -> int:
        """
        Drop registrations for a removed path and everything below it

        Args:
            path: Path that was deleted or moved away

        Returns:
            Number of registrations dropped
        """
        path = Path(path)
        stale = [p for p in self.watches if p == path or path in p.parents]

        for watched in stale:
            watch = self.watches.pop(watched)
            try:
                self.observer.unschedule(watch)
            except KeyError:
                # Emitter never started for this watch
                pass
            logger.debug(f"Stopped watching {watched}")

        self.stats['forgotten'] += len(stale)
        return len(stale)

    def is_watched(self, path: Union[str, Path]) -> bool:
        return Path(path) in self.watches

    def _excluded(self, path: Path) -> bool:
        if self.exclusion_filter.matches(path):
            self.stats['excluded'] += 1
            logger.debug(f"excluding {path}")
            return True
        return False

    def _children(self, path: Path) -> List[Path]:
        try:
            return list_children(path)
        except OSError as e:
            self.stats['failed'] += 1
            logger.warning(f"Failed to watch {path}: {e}")
            return []

    def get_status(self) -> Dict[str, Any]:
        """Get watch set status"""
        return {
            'is_running': self.is_running,
            'use_polling': self.use_polling,
            'poll_interval': self.poll_interval if self.use_polling else None,
            'exclude': self.exclusion_filter.pattern or None,
            'total_watches': len(self.watches),
            'stats': self.stats.copy(),
        }
