"""
chanapi – typed, rate-limited client for the 4chan read-only JSON API.

Supports:
  • Threads, board thread lists, catalogs, archives and the board directory
  • Whole-board caches of every thread
  • One request per second per client, measured start to start
  • If-Modified-Since conditional refreshes
  • One refresh per resource every ten seconds
"""

from .archive import Archive
from .board import Board, BoardCache, BoardList
from .catalog import Catalog
from .client import ChanClient
from .config import ApiConfig
from .errors import ChanError, DecodeError, NotFound, TooSoon, TransportError, UnexpectedStatus
from .freshness import ResourceIdentity, ResourceKind
from .models import BoardInfo, CatalogPage, CatalogThread, Cooldowns, Post, ThreadListPage, ThreadSummary
from .scheduler import Outcome, Reply
from .thread import Thread, UpdateStatus

__all__ = [
    "ApiConfig",
    "Archive",
    "Board",
    "BoardCache",
    "BoardInfo",
    "BoardList",
    "Catalog",
    "CatalogPage",
    "CatalogThread",
    "ChanClient",
    "ChanError",
    "Cooldowns",
    "DecodeError",
    "NotFound",
    "Outcome",
    "Post",
    "Reply",
    "ResourceIdentity",
    "ResourceKind",
    "Thread",
    "ThreadListPage",
    "ThreadSummary",
    "TooSoon",
    "TransportError",
    "UnexpectedStatus",
    "UpdateStatus",
]
