"""Exceptions raised by the API client."""

from __future__ import annotations


class ChanError(Exception):
    """Base class for every error the client raises."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class NotFound(ChanError):
    """The resource has no remote counterpart (deleted, pruned or never existed)."""

    def __init__(self, url: str) -> None:
        super().__init__(f"404: {url}", url)


class TooSoon(ChanError):
    """A strict refresh was requested before the resource was due."""

    def __init__(self, url: str, retry_after: float) -> None:
        super().__init__(f"{url} is not due for another {retry_after:.1f}s", url)
        self.retry_after = retry_after


class TransportError(ChanError):
    """Network, DNS or timeout failure.  Safe to retry."""

    def __init__(self, url: str, cause: Exception) -> None:
        super().__init__(f"request to {url} failed: {cause}", url)
        self.cause = cause


class UnexpectedStatus(ChanError):
    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"unexpected status {status_code} for {url}", url)
        self.status_code = status_code


class DecodeError(ChanError):
    """The payload was not valid JSON or did not match the expected shape."""
