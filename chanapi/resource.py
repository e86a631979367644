"""Shared fetch/update plumbing for entities that own one API document."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from .errors import DecodeError
from .freshness import ResourceIdentity
from .scheduler import Outcome

if TYPE_CHECKING:
    from .client import ChanClient

logger = logging.getLogger("chanapi.resource")

T = TypeVar("T")


class UpdateStatus(enum.Enum):
    UPDATED = "updated"  # new content replaced the held data
    UNCHANGED = "unchanged"  # server answered 304
    SKIPPED = "skipped"  # not due yet, no request made


class Resource(Generic[T]):
    """Owns the latest parsed payload for one resource identity.

    Subclasses provide ``_parse`` (raw JSON → immutable payload) and may
    override ``_merge`` to control how new data replaces the old.
    """

    kind_label: ClassVar[str] = "resource"

    def __init__(self, identity: ResourceIdentity, data: T, last_modified: str | None = None) -> None:
        self.identity = identity
        self._data = data
        self._snapshot: T = data
        self.last_modified = last_modified

    @staticmethod
    def _parse(payload: Any) -> T:
        raise NotImplementedError

    def _merge(self, data: T) -> None:
        self._data = data

    @classmethod
    def _load(cls, client: ChanClient, identity: ResourceIdentity) -> tuple[T, str | None]:
        url = client.cfg.url_for(identity)
        reply = client.scheduler.fetch(identity, url, cls._parse)
        if reply.data is None:
            raise DecodeError(f"no content received for {url}", url)
        return reply.data, reply.last_modified

    @property
    def board(self) -> str:
        return self.identity.board

    def url(self, client: ChanClient) -> str:
        return client.cfg.url_for(self.identity)

    def update(self, client: ChanClient, *, wait: bool = False, strict: bool = False) -> UpdateStatus:
        """Refresh from the API, at most once per update interval.

        Returns ``SKIPPED`` without a request while the resource is not
        due, ``UNCHANGED`` on a 304 and ``UPDATED`` when the held data was
        replaced.  On any error the held data is left untouched.
        """
        reply = client.scheduler.refresh(
            self.identity, self.url(client), self._parse, wait=wait, strict=strict
        )
        if reply.data is not None and reply.data is not self._snapshot:
            # either fresh content, or content another entity fetched for this identity
            self._merge(reply.data)
            self._snapshot = reply.data
            self.last_modified = reply.last_modified
            logger.debug("%s %s updated", self.kind_label, self.identity)
            return UpdateStatus.UPDATED
        if reply.outcome is Outcome.NOT_MODIFIED:
            return UpdateStatus.UNCHANGED
        return UpdateStatus.SKIPPED
