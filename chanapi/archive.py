"""Numbers of the archived threads of a board (archive.json)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

from .freshness import ResourceIdentity
from .resource import Resource

if TYPE_CHECKING:
    from .client import ChanClient


class Archive(Resource[tuple[int, ...]]):
    kind_label = "archive"

    def __init__(self, board: str, thread_nos: tuple[int, ...], last_modified: str | None = None) -> None:
        super().__init__(ResourceIdentity.archive(board), thread_nos, last_modified)

    @classmethod
    def fetch(cls, client: ChanClient, board: str) -> Archive:
        """Raises :class:`NotFound` for boards without an archive."""
        thread_nos, last_modified = cls._load(client, ResourceIdentity.archive(board))
        return cls(board, thread_nos, last_modified)

    @staticmethod
    def _parse(payload: Any) -> tuple[int, ...]:
        if not isinstance(payload, list):
            raise TypeError(f"expected a list of thread numbers, got {type(payload).__name__}")
        return tuple(int(no) for no in payload)

    @property
    def thread_nos(self) -> tuple[int, ...]:
        return self._data

    def __contains__(self, no: object) -> bool:
        return no in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[int]:
        return iter(self._data)
