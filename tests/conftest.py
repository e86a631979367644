"""Shared fixtures: a controllable clock and an in-memory 4chan API."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from chanapi import ChanClient


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeServer:
    """Serves canned JSON documents by URL path and honours If-Modified-Since.

    ``publish`` may register several versions of a document; the n-th
    request for that path gets the n-th version (the last one repeats).
    A version may also be a bare status code, or ``None`` for a 404.
    """

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.documents: dict[str, list[tuple[Any, str] | int | None]] = {}
        self.statuses: dict[str, int] = {}
        self.failures: dict[str, int] = {}
        self.raw: dict[str, bytes] = {}
        self.requests: list[tuple[float, httpx.Request]] = []

    def publish(self, path: str, *versions: tuple[Any, str] | int | None) -> None:
        self.documents[path] = list(versions)

    def fail(self, path: str, times: int = 1) -> None:
        self.failures[path] = times

    def hits(self, path: str) -> list[httpx.Request]:
        return [r for _, r in self.requests if r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        previous = len(self.hits(path))
        self.requests.append((self.clock(), request))
        if self.failures.get(path):
            self.failures[path] -= 1
            raise httpx.ConnectError("connection refused", request=request)
        if path in self.statuses:
            return httpx.Response(self.statuses[path])
        if path in self.raw:
            return httpx.Response(200, content=self.raw[path])
        if path not in self.documents:
            return httpx.Response(404)
        versions = self.documents[path]
        version = versions[min(previous, len(versions) - 1)]
        if version is None:
            return httpx.Response(404)
        if isinstance(version, int):
            return httpx.Response(version)
        payload, last_modified = version
        if request.headers.get("If-Modified-Since") == last_modified:
            return httpx.Response(304, headers={"Last-Modified": last_modified})
        return httpx.Response(200, json=payload, headers={"Last-Modified": last_modified})


def make_post(no: int, resto: int = 0, com: str = "", **extra: Any) -> dict[str, Any]:
    post = {"no": no, "resto": resto, "now": "01/01/24(Mon)00:00:00", "time": 1704067200 + no % 1000,
            "name": "Anonymous", "com": com}
    post.update(extra)
    return post


def make_thread(no: int, replies: int = 0, **op_extra: Any) -> dict[str, Any]:
    op = make_post(no, com="OP here", replies=replies, images=0, **op_extra)
    return {"posts": [op] + [make_post(no + i, resto=no, com=f"reply {i}") for i in range(1, replies + 1)]}


LM1 = "Mon, 01 Jan 2024 00:00:00 GMT"
LM2 = "Mon, 01 Jan 2024 00:05:00 GMT"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def server(clock: FakeClock) -> FakeServer:
    return FakeServer(clock)


@pytest.fixture
def client(server: FakeServer, clock: FakeClock):
    c = ChanClient(transport=httpx.MockTransport(server.handler), clock=clock, sleep=clock.sleep)
    yield c
    c.close()
