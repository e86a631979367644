"""Board-level resources: thread list, board directory and whole-board cache."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator

from .catalog import Catalog
from .errors import NotFound
from .freshness import ResourceIdentity
from .models import BoardInfo, ThreadListPage, ThreadSummary
from .resource import Resource, UpdateStatus
from .thread import Thread

if TYPE_CHECKING:
    from .client import ChanClient

logger = logging.getLogger("chanapi.board")


class Board(Resource[tuple[ThreadListPage, ...]]):
    """Every live thread on a board (threads.json), grouped by index page."""

    kind_label = "board"

    def __init__(self, board: str, pages: tuple[ThreadListPage, ...], last_modified: str | None = None) -> None:
        super().__init__(ResourceIdentity.board_threads(board), pages, last_modified)

    @classmethod
    def fetch(cls, client: ChanClient, board: str) -> Board:
        pages, last_modified = cls._load(client, ResourceIdentity.board_threads(board))
        logger.info("Fetched thread list for /%s/ (%d pages)", board, len(pages))
        return cls(board, pages, last_modified)

    @staticmethod
    def _parse(payload: Any) -> tuple[ThreadListPage, ...]:
        return tuple(ThreadListPage.from_json(page) for page in payload)

    @property
    def pages(self) -> tuple[ThreadListPage, ...]:
        return self._data

    def threads(self) -> list[ThreadSummary]:
        return [t for page in self._data for t in page.threads]

    def thread_numbers(self) -> list[int]:
        return [t.no for t in self.threads()]

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[ThreadListPage]:
        return iter(self._data)

    def __getitem__(self, idx: int) -> ThreadListPage:
        return self._data[idx]


class BoardList(Resource[tuple[BoardInfo, ...]]):
    """All boards and their settings (boards.json)."""

    kind_label = "board list"

    def __init__(self, boards: tuple[BoardInfo, ...], last_modified: str | None = None) -> None:
        super().__init__(ResourceIdentity.board_list(), boards, last_modified)

    @classmethod
    def fetch(cls, client: ChanClient) -> BoardList:
        boards, last_modified = cls._load(client, ResourceIdentity.board_list())
        return cls(boards, last_modified)

    @staticmethod
    def _parse(payload: Any) -> tuple[BoardInfo, ...]:
        return tuple(BoardInfo.from_json(b) for b in payload["boards"])

    @property
    def boards(self) -> tuple[BoardInfo, ...]:
        return self._data

    def get(self, board: str) -> BoardInfo | None:
        for info in self._data:
            if info.board == board:
                return info
        return None

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[BoardInfo]:
        return iter(self._data)


class BoardCache:
    """Every thread of one board, keyed by thread number.

    Building a cache fetches the catalog and then each of its threads in
    turn, all through the client's request cooldown.  A board of ~150
    threads takes a few minutes, so build once and refresh rarely; prefer
    updating single threads when only a few are of interest.
    """

    def __init__(self, board: str, threads: dict[int, Thread] | None = None, catalog: Catalog | None = None) -> None:
        self.board = board
        self.threads: dict[int, Thread] = dict(threads or {})
        self.catalog = catalog

    @classmethod
    def build(cls, client: ChanClient, board: str) -> BoardCache:
        catalog = Catalog.fetch(client, board)
        cache = cls(board, catalog=catalog)
        for entry in catalog.threads():
            cache._fetch_thread(client, entry.no)
        logger.info("Cached /%s/ (%d threads)", board, len(cache.threads))
        return cache

    def _fetch_thread(self, client: ChanClient, no: int) -> bool:
        try:
            self.threads[no] = Thread.fetch(client, self.board, no)
        except NotFound:
            logger.warning("Thread /%s/%d is gone, not caching it", self.board, no)
            return False
        return True

    def get(self, no: int) -> Thread | None:
        return self.threads.get(no)

    def insert(self, thread: Thread) -> Thread | None:
        """Add or replace a thread, returning the one it replaced."""
        if thread.board != self.board:
            raise ValueError(f"thread is on /{thread.board}/, cache holds /{self.board}/")
        previous = self.threads.get(thread.no)
        self.threads[thread.no] = thread
        return previous

    def update(self, client: ChanClient, *, wait: bool = False) -> dict[int, UpdateStatus]:
        """Re-read the catalog and bring the cached threads in line with it.

        Threads that left the catalog or now 404 are dropped, new ones are
        fetched and held ones are updated.  Returns the status of every
        thread still cached, with newly fetched ones reported as ``UPDATED``.
        """
        if self.catalog is None:
            self.catalog = Catalog.fetch(client, self.board)
        else:
            self.catalog.update(client, wait=wait)
        live = [entry.no for entry in self.catalog.threads()]
        for no in set(self.threads) - set(live):
            del self.threads[no]

        statuses: dict[int, UpdateStatus] = {}
        for no in live:
            held = self.threads.get(no)
            if held is None:
                if self._fetch_thread(client, no):
                    statuses[no] = UpdateStatus.UPDATED
                continue
            try:
                statuses[no] = held.update(client, wait=wait)
            except NotFound:
                logger.warning("Thread /%s/%d is gone, dropping it", self.board, no)
                del self.threads[no]
        return statuses

    def __len__(self) -> int:
        return len(self.threads)

    def __contains__(self, no: object) -> bool:
        return no in self.threads

    def __iter__(self) -> Iterator[Thread]:
        return iter(self.threads.values())

    def __repr__(self) -> str:
        return f"<BoardCache /{self.board}/ threads={len(self.threads)}>"
