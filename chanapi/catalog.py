"""A board's catalog: every thread's OP with a preview of its latest replies."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator

from .freshness import ResourceIdentity
from .models import CatalogPage, CatalogThread
from .resource import Resource

if TYPE_CHECKING:
    from .client import ChanClient

logger = logging.getLogger("chanapi.catalog")


class Catalog(Resource[tuple[CatalogPage, ...]]):
    kind_label = "catalog"

    def __init__(self, board: str, pages: tuple[CatalogPage, ...], last_modified: str | None = None) -> None:
        super().__init__(ResourceIdentity.catalog(board), pages, last_modified)

    @classmethod
    def fetch(cls, client: ChanClient, board: str) -> Catalog:
        """Load the catalog for ``board``.  Raises :class:`NotFound` for unknown boards."""
        pages, last_modified = cls._load(client, ResourceIdentity.catalog(board))
        logger.info("Fetched catalog for /%s/ (%d pages)", board, len(pages))
        return cls(board, pages, last_modified)

    @staticmethod
    def _parse(payload: Any) -> tuple[CatalogPage, ...]:
        return tuple(CatalogPage.from_json(page) for page in payload)

    @property
    def pages(self) -> tuple[CatalogPage, ...]:
        return self._data

    def page(self, index: int) -> CatalogPage | None:
        """Return the page at ``index`` (0-based), or None."""
        if 0 <= index < len(self._data):
            return self._data[index]
        return None

    def threads(self) -> list[CatalogThread]:
        return [t for page in self._data for t in page.threads]

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[CatalogPage]:
        return iter(self._data)
