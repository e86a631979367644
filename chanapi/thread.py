"""A single thread: the OP and all of its replies."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Iterator, cast, overload

from .freshness import ResourceIdentity
from .models import Post
from .resource import Resource, UpdateStatus

if TYPE_CHECKING:
    from .client import ChanClient

logger = logging.getLogger("chanapi.thread")

__all__ = ["Thread", "UpdateStatus"]


class Thread(Resource[tuple[Post, ...]]):
    """Posts of one thread, oldest first.  ``thread[0]`` is the OP.

    Updates respect the per-thread ten second interval and use
    If-Modified-Since.  Posts whose content did not change keep their
    object identity across updates.
    """

    kind_label = "thread"

    def __init__(self, board: str, no: int, posts: tuple[Post, ...], last_modified: str | None = None) -> None:
        super().__init__(ResourceIdentity.thread(board, no), posts, last_modified)

    @classmethod
    def fetch(cls, client: ChanClient, board: str, no: int) -> Thread:
        """Load a thread for the first time.

        Raises :class:`NotFound` if the thread was deleted or pruned.
        """
        posts, last_modified = cls._load(client, ResourceIdentity.thread(board, no))
        logger.info("Fetched thread /%s/%d (%d posts)", board, no, len(posts))
        return cls(board, no, posts, last_modified)

    @staticmethod
    def _parse(payload: Any) -> tuple[Post, ...]:
        posts = tuple(Post.from_json(p) for p in payload["posts"])
        if not posts:
            raise ValueError("thread has no posts")
        return posts

    def _merge(self, data: tuple[Post, ...]) -> None:
        old = {p.no: p for p in self._data}
        self._data = tuple(old[p.no] if old.get(p.no) == p else p for p in data)

    def update(self, client: ChanClient, *, wait: bool = False, strict: bool = False) -> UpdateStatus:
        if self.archived:
            logger.debug("Thread /%s/%d is archived, not updating", self.board, self.no)
            return UpdateStatus.SKIPPED
        before = len(self._data)
        status = super().update(client, wait=wait, strict=strict)
        if status is UpdateStatus.UPDATED:
            logger.info("Thread /%s/%d: %d -> %d posts", self.board, self.no, before, len(self._data))
        return status

    # ── accessors ────────────────────────────────────────────────

    @property
    def no(self) -> int:
        return cast(int, self.identity.no)

    @property
    def posts(self) -> tuple[Post, ...]:
        return self._data

    @property
    def op(self) -> Post:
        return self._data[0]

    @property
    def replies(self) -> tuple[Post, ...]:
        return self._data[1:]

    @property
    def last_post(self) -> Post:
        return self._data[-1]

    @property
    def archived(self) -> bool:
        return bool(self.op.archived)

    @property
    def closed(self) -> bool:
        return bool(self.op.closed)

    def find(self, no: int) -> Post | None:
        """Return the post with number ``no``, if it is in this thread."""
        for post in self._data:
            if post.no == no:
                return post
        return None

    def new_posts(self, previous: Iterable[Post]) -> list[Post]:
        """Posts not present (by number) in ``previous``."""
        seen = {p.no for p in previous}
        return [p for p in self._data if p.no not in seen]

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[Post]:
        return iter(self._data)

    @overload
    def __getitem__(self, idx: int) -> Post: ...

    @overload
    def __getitem__(self, idx: slice) -> tuple[Post, ...]: ...

    def __getitem__(self, idx: int | slice) -> Post | tuple[Post, ...]:
        return self._data[idx]

    def __repr__(self) -> str:
        return f"<Thread /{self.board}/{self.no} posts={len(self._data)}>"
