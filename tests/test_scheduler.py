"""Tests for chanapi.scheduler."""

import threading
import time

import httpx
import pytest

from chanapi import ChanClient
from chanapi.errors import DecodeError, NotFound, TooSoon, TransportError, UnexpectedStatus
from chanapi.freshness import ResourceIdentity
from chanapi.scheduler import Outcome

from conftest import LM1, LM2, make_thread

BASE = "https://a.4cdn.org"


def _thread(board: str, no: int) -> tuple[ResourceIdentity, str]:
    return ResourceIdentity.thread(board, no), f"{BASE}/{board}/thread/{no}.json"


class TestGlobalCooldown:
    def test_first_fetches_are_spaced_start_to_start(self, client, server, clock):
        for no in (1, 2, 3):
            server.publish(f"/g/thread/{no}.json", (make_thread(no), LM1))
        for no in (1, 2, 3):
            client.scheduler.fetch(*_thread("g", no), dict)

        starts = [t for t, _ in server.requests]
        assert len(starts) == 3
        assert all(b - a >= 1.0 for a, b in zip(starts, starts[1:]))
        assert clock.sleeps == [1.0, 1.0]

    def test_no_wait_when_interval_already_elapsed(self, client, server, clock):
        server.publish("/g/thread/1.json", (make_thread(1), LM1))
        server.publish("/g/thread/2.json", (make_thread(2), LM1))
        client.scheduler.fetch(*_thread("g", 1), dict)
        clock.advance(3)
        client.scheduler.fetch(*_thread("g", 2), dict)
        assert clock.sleeps == []


class TestFetch:
    def test_modified_reply(self, client, server):
        server.publish("/g/thread/1.json", (make_thread(1, replies=2), LM1))
        reply = client.scheduler.fetch(*_thread("g", 1), lambda p: len(p["posts"]))
        assert reply.outcome is Outcome.MODIFIED
        assert reply.data == 3
        assert reply.last_modified == LM1
        assert "If-Modified-Since" not in server.requests[0][1].headers

    def test_fetch_never_skips(self, client, server, clock):
        identity, url = _thread("g", 1)
        server.publish("/g/thread/1.json", (make_thread(1), LM1))
        first = client.scheduler.fetch(identity, url, dict)
        second = client.scheduler.fetch(identity, url, dict)

        assert len(server.hits("/g/thread/1.json")) == 2
        assert server.hits("/g/thread/1.json")[1].headers["If-Modified-Since"] == LM1
        assert second.outcome is Outcome.NOT_MODIFIED
        assert second.data is first.data

    def test_not_found(self, client):
        with pytest.raises(NotFound) as info:
            client.scheduler.fetch(*_thread("g", 404), dict)
        assert info.value.url.endswith("/g/thread/404.json")

    def test_unexpected_status(self, client, server):
        server.statuses["/g/thread/1.json"] = 503
        with pytest.raises(UnexpectedStatus) as info:
            client.scheduler.fetch(*_thread("g", 1), dict)
        assert info.value.status_code == 503

    def test_invalid_json_is_decode_error(self, client, server):
        server.raw["/g/thread/1.json"] = b"<html>not json</html>"
        with pytest.raises(DecodeError):
            client.scheduler.fetch(*_thread("g", 1), dict)

    def test_parse_failure_is_decode_error_and_not_recorded(self, client, server):
        identity, url = _thread("g", 1)
        server.publish("/g/thread/1.json", ({"unexpected": True}, LM1))
        with pytest.raises(DecodeError):
            client.scheduler.fetch(identity, url, lambda p: p["posts"])
        record = client.tracker.get(identity)
        assert record.last_fetch_time is None
        assert record.last_modified is None

    def test_transport_error(self, client, server):
        identity, url = _thread("g", 1)
        server.publish("/g/thread/1.json", (make_thread(1), LM1))
        server.fail("/g/thread/1.json")
        with pytest.raises(TransportError) as info:
            client.scheduler.fetch(identity, url, dict)
        assert isinstance(info.value.cause, httpx.ConnectError)
        # nothing is stuck in flight; the caller can simply retry
        reply = client.scheduler.fetch(identity, url, dict)
        assert reply.outcome is Outcome.MODIFIED

    def test_corrupt_content_encoding_is_transport_error(self, clock):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.DecodingError("invalid gzip stream", request=request)

        client = ChanClient(transport=httpx.MockTransport(handler), clock=clock, sleep=clock.sleep)
        with pytest.raises(TransportError) as info:
            client.scheduler.fetch(*_thread("g", 1), dict)
        client.close()
        assert isinstance(info.value.cause, httpx.DecodingError)


class TestRefresh:
    def test_not_due_returns_cached_state_without_request(self, client, server, clock):
        identity, url = _thread("g", 1)
        server.publish("/g/thread/1.json", (make_thread(1), LM1))
        first = client.scheduler.fetch(identity, url, dict)
        clock.advance(2)
        reply = client.scheduler.refresh(identity, url, dict)

        assert reply.outcome is Outcome.SKIPPED
        assert reply.data is first.data
        assert len(server.requests) == 1

    def test_two_refreshes_within_interval_issue_one_request(self, client, server, clock):
        identity, url = _thread("g", 1)
        server.publish("/g/thread/1.json", (make_thread(1), LM1), (make_thread(1, replies=1), LM2))
        client.scheduler.fetch(identity, url, dict)
        clock.advance(10)
        assert client.scheduler.refresh(identity, url, dict).outcome is Outcome.MODIFIED
        assert client.scheduler.refresh(identity, url, dict).outcome is Outcome.SKIPPED
        assert len(server.requests) == 2

    def test_strict_raises_too_soon(self, client, server, clock):
        identity, url = _thread("g", 1)
        server.publish("/g/thread/1.json", (make_thread(1), LM1))
        client.scheduler.fetch(identity, url, dict)
        clock.advance(2)
        with pytest.raises(TooSoon) as info:
            client.scheduler.refresh(identity, url, dict, strict=True)
        assert info.value.retry_after == pytest.approx(8.0)

    def test_wait_blocks_until_due(self, client, server, clock):
        identity, url = _thread("g", 1)
        server.publish("/g/thread/1.json", (make_thread(1), LM1))
        client.scheduler.fetch(identity, url, dict)
        clock.advance(3)
        reply = client.scheduler.refresh(identity, url, dict, wait=True)

        assert reply.outcome is Outcome.NOT_MODIFIED
        assert clock.sleeps == [pytest.approx(7.0)]
        assert server.requests[-1][0] == pytest.approx(1010.0)

    def test_not_modified_advances_fetch_time_only(self, client, server, clock):
        identity, url = _thread("g", 1)
        server.publish("/g/thread/1.json", (make_thread(1), LM1))
        first = client.scheduler.fetch(identity, url, dict)
        clock.advance(11)
        reply = client.scheduler.refresh(identity, url, dict)

        assert server.requests[-1][1].headers["If-Modified-Since"] == LM1
        assert reply.outcome is Outcome.NOT_MODIFIED
        assert reply.data is first.data
        record = client.tracker.get(identity)
        assert record.last_fetch_time == clock()
        assert record.last_modified == LM1

    def test_transport_error_does_not_delay_next_attempt(self, client, server, clock):
        identity, url = _thread("g", 1)
        server.publish("/g/thread/1.json", (make_thread(1), LM1))
        client.scheduler.fetch(identity, url, dict)
        fetched_at = client.tracker.get(identity).last_fetch_time
        clock.advance(11)
        server.fail("/g/thread/1.json")

        with pytest.raises(TransportError):
            client.scheduler.refresh(identity, url, dict)
        assert client.tracker.get(identity).last_fetch_time == fetched_at
        assert client.tracker.should_refetch(identity, clock())

    def test_unrelated_resources_do_not_share_update_interval(self, client, server, clock):
        server.publish("/g/thread/1.json", (make_thread(1), LM1))
        server.publish("/g/thread/2.json", (make_thread(2), LM1))
        client.scheduler.fetch(*_thread("g", 1), dict)
        reply = client.scheduler.refresh(*_thread("g", 2), dict)
        assert reply.outcome is Outcome.MODIFIED


class TestConcurrency:
    def test_concurrent_refreshes_share_one_request(self, clock):
        entered = threading.Event()
        release = threading.Event()
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) > 1:
                entered.set()
                release.wait(5)
            return httpx.Response(200, json={"n": len(calls)}, headers={"Last-Modified": f"v{len(calls)}"})

        client = ChanClient(transport=httpx.MockTransport(handler), clock=clock, sleep=clock.sleep)
        identity, url = _thread("g", 1)
        client.scheduler.fetch(identity, url, dict)
        clock.advance(11)

        results = []

        def worker() -> None:
            results.append(client.scheduler.refresh(identity, url, dict))

        first = threading.Thread(target=worker)
        first.start()
        assert entered.wait(5)
        second = threading.Thread(target=worker)
        second.start()
        time.sleep(0.2)
        release.set()
        first.join(5)
        second.join(5)
        client.close()

        assert len(calls) == 2
        assert len(results) == 2
        assert results[0].data == results[1].data == {"n": 2}

    def test_concurrent_failure_reaches_every_waiter(self, clock):
        entered = threading.Event()
        release = threading.Event()
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            entered.set()
            release.wait(5)
            raise httpx.ReadTimeout("timed out", request=request)

        client = ChanClient(transport=httpx.MockTransport(handler), clock=clock, sleep=clock.sleep)
        identity, url = _thread("g", 1)
        errors = []

        def worker() -> None:
            try:
                client.scheduler.fetch(identity, url, dict)
            except TransportError as exc:
                errors.append(exc)

        first = threading.Thread(target=worker)
        first.start()
        assert entered.wait(5)
        second = threading.Thread(target=worker)
        second.start()
        time.sleep(0.2)
        release.set()
        first.join(5)
        second.join(5)
        client.close()

        # the late caller joined the in-flight request
        assert len(calls) == 1
        assert len(errors) == 2
        assert errors[0] is errors[1]
        assert client.tracker.get(identity).last_fetch_time is None


class TestDownload:
    def test_download_bytes(self, client, server):
        server.raw["/g/1700000000000.jpg"] = b"\xff\xd8jpeg"
        assert client.scheduler.download("https://i.4cdn.org/g/1700000000000.jpg") == b"\xff\xd8jpeg"

    def test_download_missing(self, client):
        with pytest.raises(NotFound):
            client.scheduler.download("https://i.4cdn.org/g/1.jpg")
