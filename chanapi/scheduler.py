"""Request scheduler – the single point every client request passes through.

For each call it decides whether to wait, skip or dispatch:

  • first-time fetches always dispatch, blocking on the global cooldown
  • refreshes of a resource that is not yet due are skipped (or wait / raise
    on request) without touching the network
  • concurrent calls for the same resource share one in-flight request
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

import httpx

from .cooldown import CooldownClock
from .errors import DecodeError, NotFound, TooSoon, TransportError, UnexpectedStatus
from .freshness import FreshnessTracker, ResourceIdentity

logger = logging.getLogger("chanapi.scheduler")

T = TypeVar("T")


class Outcome(enum.Enum):
    MODIFIED = "modified"
    NOT_MODIFIED = "not_modified"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Reply(Generic[T]):
    """Result of a scheduled call.

    ``data`` is the freshly parsed payload for ``MODIFIED`` and the most
    recent snapshot the client holds for the other outcomes (``None`` if
    it never completed a fetch of the resource).
    """
    outcome: Outcome
    data: T | None
    last_modified: str | None = None

    @property
    def modified(self) -> bool:
        return self.outcome is Outcome.MODIFIED


class RequestScheduler:
    """Combines the global cooldown and per-resource freshness into one gate."""

    def __init__(
        self,
        http: httpx.Client,
        clock: CooldownClock,
        tracker: FreshnessTracker,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._http = http
        self.clock = clock
        self.tracker = tracker
        self._sleep = sleep
        self._lock = threading.Lock()
        self._inflight: dict[ResourceIdentity, Future[Reply[Any]]] = {}

    # ── public API ───────────────────────────────────────────────

    def fetch(self, identity: ResourceIdentity, url: str, parse: Callable[[Any], T]) -> Reply[T]:
        """First-time load.  Never skips; blocks on the global cooldown."""
        with self._lock:
            future, owner = self._claim(identity)
        if not owner:
            logger.debug("Joining in-flight request for %s", identity)
            return future.result()
        return self._run(identity, future, url, parse)

    def refresh(
        self,
        identity: ResourceIdentity,
        url: str,
        parse: Callable[[Any], T],
        *,
        wait: bool = False,
        strict: bool = False,
    ) -> Reply[T]:
        """Periodic update, honouring the per-resource update interval.

        A resource that is not due returns a ``SKIPPED`` reply with the
        cached snapshot.  ``strict`` raises :class:`TooSoon` instead and
        ``wait`` sleeps until the resource is due, then dispatches.
        """
        while True:
            with self._lock:
                if identity in self._inflight:
                    remaining = 0.0
                else:
                    remaining = self.tracker.time_until_due(identity, self.clock.now())
                if remaining <= 0:
                    future, owner = self._claim(identity)
                    break
            if strict:
                raise TooSoon(url, remaining)
            if not wait:
                logger.debug("%s not due for %.1fs, returning cached state", identity, remaining)
                return self._cached(identity)
            logger.debug("Updating %s too quickly, waiting %.1fs", identity, remaining)
            self._sleep(remaining)

        if not owner:
            logger.debug("Joining in-flight request for %s", identity)
            return future.result()
        return self._run(identity, future, url, parse)

    def download(self, url: str) -> bytes:
        """Fetch raw bytes (media files).  Subject to the global cooldown only."""
        response, _ = self._get(url, {})
        self._raise_for_status(url, response)
        return response.content

    # ── in-flight bookkeeping ────────────────────────────────────

    def _claim(self, identity: ResourceIdentity) -> tuple[Future[Reply[Any]], bool]:
        """Join the in-flight request for ``identity`` or register a new one.

        Call with ``_lock`` held.  Returns ``(future, owner)``.
        """
        future = self._inflight.get(identity)
        if future is not None:
            return future, False
        future = Future()
        self._inflight[identity] = future
        self.tracker.mark_in_flight(identity, True)
        return future, True

    def _run(
        self,
        identity: ResourceIdentity,
        future: Future[Reply[Any]],
        url: str,
        parse: Callable[[Any], T],
    ) -> Reply[T]:
        try:
            reply = self._dispatch(identity, url, parse)
        except Exception as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(reply)
            return reply
        finally:
            with self._lock:
                self._inflight.pop(identity, None)
                self.tracker.mark_in_flight(identity, False)
            if not future.done():
                future.cancel()

    def _cached(self, identity: ResourceIdentity) -> Reply[Any]:
        record = self.tracker.get(identity)
        if record is None:
            return Reply(Outcome.SKIPPED, None)
        return Reply(Outcome.SKIPPED, record.snapshot, record.last_modified)

    # ── network ──────────────────────────────────────────────────

    def _dispatch(self, identity: ResourceIdentity, url: str, parse: Callable[[Any], T]) -> Reply[T]:
        record = self.tracker.get(identity)
        headers: dict[str, str] = {}
        if record is not None and record.last_modified and record.snapshot is not None:
            headers["If-Modified-Since"] = record.last_modified

        response, sent_at = self._get(url, headers)

        if response.status_code == 304:
            record = self.tracker.note_response(identity, sent_at, None, was_modified=False)
            logger.debug("%s not modified since %s", identity, record.last_modified)
            return Reply(Outcome.NOT_MODIFIED, record.snapshot, record.last_modified)

        self._raise_for_status(url, response)
        try:
            data = parse(response.json())
        except (ValueError, KeyError, TypeError, IndexError, AttributeError) as exc:
            raise DecodeError(f"could not decode {url}: {exc}", url) from exc

        marker = response.headers.get("Last-Modified")
        self.tracker.note_response(identity, sent_at, marker, was_modified=True, snapshot=data)
        logger.debug("%s modified (Last-Modified: %s)", identity, marker)
        return Reply(Outcome.MODIFIED, data, marker)

    def _get(self, url: str, headers: dict[str, str]) -> tuple[httpx.Response, float]:
        wait = self.clock.reserve()
        if wait > 0:
            logger.debug("Cooling down %.2fs before %s", wait, url)
            self._sleep(wait)
        sent_at = self.clock.now()
        logger.debug("Request for %s dispatched", url)
        try:
            response = self._http.get(url, headers=headers)
        except httpx.RequestError as exc:
            logger.warning("Request for %s failed: %s", url, exc)
            raise TransportError(url, exc) from exc
        logger.debug("Response status for %s: %d", url, response.status_code)
        return response, sent_at

    @staticmethod
    def _raise_for_status(url: str, response: httpx.Response) -> None:
        if response.status_code == 404:
            logger.warning("404: %s", url)
            raise NotFound(url)
        if response.status_code != 200:
            raise UnexpectedStatus(url, response.status_code)
