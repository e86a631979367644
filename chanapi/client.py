"""4chan API client – shared cooldown, freshness tracking and HTTP transport."""

from __future__ import annotations

import logging
import time
from typing import Callable

import httpx

from .archive import Archive
from .board import Board, BoardCache, BoardList
from .catalog import Catalog
from .config import ApiConfig
from .cooldown import CooldownClock
from .freshness import FreshnessTracker
from .models import Post
from .scheduler import RequestScheduler
from .thread import Thread

logger = logging.getLogger("chanapi.client")


class ChanClient:
    """Handle shared by every entity fetched through it.

    One client means one request cooldown: create a single client per
    process and pass it to every fetch/update call.  Independent clients
    do not share any state.
    """

    def __init__(
        self,
        cfg: ApiConfig | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cfg = cfg or ApiConfig()
        self._http = httpx.Client(
            timeout=self.cfg.timeout,
            headers={"User-Agent": self.cfg.user_agent},
            follow_redirects=True,
            transport=transport,
        )
        self.cooldown = CooldownClock(self.cfg.request_interval, clock=clock)
        self.tracker = FreshnessTracker(self.cfg.update_interval)
        self.scheduler = RequestScheduler(self._http, self.cooldown, self.tracker, sleep=sleep)

    # ── public API ───────────────────────────────────────────────

    def thread(self, board: str, thread_no: int) -> Thread:
        """Load a :class:`Thread` entity, OP first."""
        return Thread.fetch(self, board, thread_no)

    def board(self, board: str) -> Board:
        """Load a :class:`Board` holding every live thread number on ``board``."""
        return Board.fetch(self, board)

    def catalog(self, board: str) -> Catalog:
        """Load a :class:`Catalog` of OP previews grouped by index page."""
        return Catalog.fetch(self, board)

    def archive(self, board: str) -> Archive:
        """Load the :class:`Archive` of thread numbers kept on ``board``."""
        return Archive.fetch(self, board)

    def boards(self) -> BoardList:
        """Load the :class:`BoardList` directory of boards and their limits."""
        return BoardList.fetch(self)

    def board_cache(self, board: str) -> BoardCache:
        """Fetch every thread on ``board`` into a :class:`BoardCache`.  Slow."""
        return BoardCache.build(self, board)

    def download_image(self, board: str, post: Post) -> bytes | None:
        """Download a post's full-size file, or None if it has none."""
        url = post.image_url(board, self.cfg.media_base)
        return self.scheduler.download(url) if url else None

    def download_thumbnail(self, board: str, post: Post) -> bytes | None:
        url = post.thumbnail_url(board, self.cfg.media_base)
        return self.scheduler.download(url) if url else None

    # ── lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> ChanClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
