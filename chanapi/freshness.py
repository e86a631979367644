"""Per-resource bookkeeping of when a resource was last fetched and what it looked like."""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass
from typing import Any


class ResourceKind(enum.Enum):
    THREAD = "thread"
    BOARD = "board"  # threads.json
    CATALOG = "catalog"
    ARCHIVE = "archive"
    BOARD_LIST = "boards"


@dataclass(frozen=True)
class ResourceIdentity:
    kind: ResourceKind
    board: str = ""
    no: int | None = None

    @classmethod
    def thread(cls, board: str, no: int) -> ResourceIdentity:
        return cls(ResourceKind.THREAD, board, no)

    @classmethod
    def board_threads(cls, board: str) -> ResourceIdentity:
        return cls(ResourceKind.BOARD, board)

    @classmethod
    def catalog(cls, board: str) -> ResourceIdentity:
        return cls(ResourceKind.CATALOG, board)

    @classmethod
    def archive(cls, board: str) -> ResourceIdentity:
        return cls(ResourceKind.ARCHIVE, board)

    @classmethod
    def board_list(cls) -> ResourceIdentity:
        return cls(ResourceKind.BOARD_LIST)

    def __str__(self) -> str:
        if self.kind is ResourceKind.THREAD:
            return f"/{self.board}/thread/{self.no}"
        if self.kind is ResourceKind.BOARD_LIST:
            return "boards"
        return f"/{self.board}/{self.kind.value}"


@dataclass
class FreshnessRecord:
    last_fetch_time: float | None = None
    last_modified: str | None = None
    in_flight: bool = False
    snapshot: Any = None


class FreshnessTracker:
    """Decides whether a resource is due for a refetch.

    One record per identity; a record is created the first time an
    identity is seen and lives as long as the tracker.
    """

    def __init__(self, update_interval: float = 10.0) -> None:
        self.update_interval = update_interval
        self._records: dict[ResourceIdentity, FreshnessRecord] = {}
        self._lock = threading.Lock()

    def get(self, identity: ResourceIdentity) -> FreshnessRecord | None:
        with self._lock:
            return self._records.get(identity)

    def should_refetch(self, identity: ResourceIdentity, now: float) -> bool:
        return self.time_until_due(identity, now) <= 0.0

    def time_until_due(self, identity: ResourceIdentity, now: float) -> float:
        with self._lock:
            record = self._records.get(identity)
            if record is None or record.last_fetch_time is None:
                return 0.0
            return max(0.0, self.update_interval - (now - record.last_fetch_time))

    def mark_in_flight(self, identity: ResourceIdentity, in_flight: bool) -> None:
        with self._lock:
            self._records.setdefault(identity, FreshnessRecord()).in_flight = in_flight

    def note_response(
        self,
        identity: ResourceIdentity,
        now: float,
        modified_marker: str | None,
        was_modified: bool,
        snapshot: Any = None,
    ) -> FreshnessRecord:
        """Record a completed fetch.

        The fetch time always advances; the marker and snapshot change only
        when the server sent new content.
        """
        with self._lock:
            record = self._records.setdefault(identity, FreshnessRecord())
            record.last_fetch_time = now
            if was_modified:
                record.last_modified = modified_marker
                record.snapshot = snapshot
            return record
