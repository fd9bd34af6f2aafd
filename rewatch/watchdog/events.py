# rewatch/watchdog/events.py

from enum import Enum
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional


class EventType(Enum):
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"


@dataclass
class RawEvent:
    """Notification as handed over from the observer thread"""
    event_type: EventType
    src_path: Path
    dest_path: Optional[Path] = None
    is_directory: bool = False

    def __str__(self):
        if self.dest_path:
            return f"{self.event_type.value}: {self.src_path} -> {self.dest_path}"
        return f"{self.event_type.value}: {self.src_path}"


@dataclass
class ChangeEvent:
    """Raw event resolved to a modification timestamp"""
    event_type: EventType
    path: Path
    timestamp: datetime
    is_directory: bool = False

    def __str__(self):
        return f"{self.event_type.value}: {self.path} at {self.timestamp}"
