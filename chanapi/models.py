"""Immutable records mapped from the 4chan JSON API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .client import ChanClient
    from .thread import Thread


def _ts_to_dt(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def _flag(data: dict, key: str) -> bool | None:
    """4chan encodes flags as 0/1 and omits them when not applicable."""
    value = data.get(key)
    return None if value is None else value == 1


@dataclass(frozen=True)
class Post:
    """A single post.  OP-only fields are ``None`` on replies."""
    no: int
    resto: int = 0
    time: int = 0
    now: str = ""
    name: str = "Anonymous"
    sub: str | None = None
    com: str | None = None
    trip: str | None = None
    poster_id: str | None = None
    capcode: str | None = None
    country: str | None = None
    country_name: str | None = None
    board_flag: str | None = None
    flag_name: str | None = None
    since4pass: int | None = None
    # file
    tim: int | None = None
    filename: str | None = None
    ext: str | None = None
    fsize: int | None = None
    md5: str | None = None
    w: int | None = None
    h: int | None = None
    tn_w: int | None = None
    tn_h: int | None = None
    filedeleted: bool | None = None
    spoiler: bool | None = None
    custom_spoiler: int | None = None
    m_img: bool | None = None
    tag: str | None = None
    # OP only
    sticky: bool | None = None
    closed: bool | None = None
    replies: int | None = None
    images: int | None = None
    bumplimit: bool | None = None
    imagelimit: bool | None = None
    semantic_url: str | None = None
    unique_ips: int | None = None
    archived: bool | None = None
    archived_on: int | None = None

    @classmethod
    def from_json(cls, data: dict) -> Post:
        return cls(**cls._fields_from(data))

    @staticmethod
    def _fields_from(data: dict) -> dict[str, Any]:
        return {
            "no": int(data["no"]),
            "resto": data.get("resto", 0),
            "time": data.get("time", 0),
            "now": data.get("now", ""),
            "name": data.get("name", "Anonymous"),
            "sub": data.get("sub"),
            "com": data.get("com"),
            "trip": data.get("trip"),
            "poster_id": data.get("id"),  # 4chan's poster ID field
            "capcode": data.get("capcode"),
            "country": data.get("country"),
            "country_name": data.get("country_name"),
            "board_flag": data.get("board_flag"),
            "flag_name": data.get("flag_name"),
            "since4pass": data.get("since4pass"),
            "tim": data.get("tim"),
            "filename": data.get("filename"),
            "ext": data.get("ext"),
            "fsize": data.get("fsize"),
            "md5": data.get("md5"),
            "w": data.get("w"),
            "h": data.get("h"),
            "tn_w": data.get("tn_w"),
            "tn_h": data.get("tn_h"),
            "filedeleted": _flag(data, "filedeleted"),
            "spoiler": _flag(data, "spoiler"),
            "custom_spoiler": data.get("custom_spoiler"),
            "m_img": _flag(data, "m_img"),
            "tag": data.get("tag"),
            "sticky": _flag(data, "sticky"),
            "closed": _flag(data, "closed"),
            "replies": data.get("replies"),
            "images": data.get("images"),
            "bumplimit": _flag(data, "bumplimit"),
            "imagelimit": _flag(data, "imagelimit"),
            "semantic_url": data.get("semantic_url"),
            "unique_ips": data.get("unique_ips"),
            "archived": _flag(data, "archived"),
            "archived_on": data.get("archived_on"),
        }

    @property
    def is_op(self) -> bool:
        return self.resto == 0

    @property
    def has_file(self) -> bool:
        return self.tim is not None and bool(self.ext) and not self.filedeleted

    @property
    def created_at(self) -> datetime:
        return _ts_to_dt(self.time)

    @property
    def archived_at(self) -> datetime | None:
        return _ts_to_dt(self.archived_on) if self.archived_on else None

    def image_url(self, board: str, media_base: str = "https://i.4cdn.org") -> str | None:
        if not self.has_file:
            return None
        return f"{media_base}/{board}/{self.tim}{self.ext}"

    def thumbnail_url(self, board: str, media_base: str = "https://i.4cdn.org") -> str | None:
        if not self.has_file:
            return None
        return f"{media_base}/{board}/{self.tim}s.jpg"


@dataclass(frozen=True)
class CatalogThread(Post):
    """A catalog entry: the OP plus a preview of its latest replies."""
    omitted_posts: int | None = None
    omitted_images: int | None = None
    last_modified: int | None = None
    last_replies: tuple[Post, ...] = ()

    @classmethod
    def from_json(cls, data: dict) -> CatalogThread:
        return cls(
            **cls._fields_from(data),
            omitted_posts=data.get("omitted_posts"),
            omitted_images=data.get("omitted_images"),
            last_modified=data.get("last_modified"),
            last_replies=tuple(Post.from_json(p) for p in data.get("last_replies", [])),
        )

    def to_thread(self, client: ChanClient, board: str) -> Thread:
        """Fetch the full thread this entry previews."""
        from .thread import Thread

        return Thread.fetch(client, board, self.no)


@dataclass(frozen=True)
class CatalogPage:
    page: int
    threads: tuple[CatalogThread, ...] = ()

    @classmethod
    def from_json(cls, data: dict) -> CatalogPage:
        return cls(
            page=data["page"],
            threads=tuple(CatalogThread.from_json(t) for t in data.get("threads", [])),
        )


@dataclass(frozen=True)
class ThreadSummary:
    """An entry of a board's threads.json."""
    no: int
    last_modified: int = 0
    replies: int = 0

    @property
    def modified_at(self) -> datetime:
        return _ts_to_dt(self.last_modified)

    @classmethod
    def from_json(cls, data: dict) -> ThreadSummary:
        return cls(
            no=int(data["no"]),
            last_modified=data.get("last_modified", 0),
            replies=data.get("replies", 0),
        )

    def to_thread(self, client: ChanClient, board: str) -> Thread:
        from .thread import Thread

        return Thread.fetch(client, board, self.no)


@dataclass(frozen=True)
class ThreadListPage:
    page: int
    threads: tuple[ThreadSummary, ...] = ()

    @classmethod
    def from_json(cls, data: dict) -> ThreadListPage:
        return cls(
            page=data["page"],
            threads=tuple(ThreadSummary.from_json(t) for t in data.get("threads", [])),
        )


@dataclass(frozen=True)
class Cooldowns:
    threads: int = 0
    replies: int = 0
    images: int = 0


@dataclass(frozen=True)
class BoardInfo:
    """A board as listed in boards.json."""
    board: str
    title: str = ""
    ws_board: bool = False
    per_page: int = 0
    pages: int = 0
    max_filesize: int = 0
    max_webm_filesize: int = 0
    max_comment_chars: int = 0
    max_webm_duration: int = 0
    bump_limit: int = 0
    image_limit: int = 0
    cooldowns: Cooldowns = field(default_factory=Cooldowns)
    meta_description: str = ""
    spoilers: bool | None = None
    custom_spoilers: int | None = None
    is_archived: bool | None = None
    board_flags: dict[str, str] | None = field(default=None, hash=False, compare=False)
    country_flags: bool | None = None
    user_ids: bool | None = None
    oekaki: bool | None = None
    sjis_tags: bool | None = None
    code_tags: bool | None = None
    math_tags: bool | None = None
    text_only: bool | None = None
    forced_anon: bool | None = None
    webm_audio: bool | None = None
    require_subject: bool | None = None
    min_image_width: int | None = None
    min_image_height: int | None = None

    @classmethod
    def from_json(cls, data: dict) -> BoardInfo:
        cooldowns = data.get("cooldowns", {})
        return cls(
            board=data["board"],
            title=data.get("title", ""),
            ws_board=data.get("ws_board", 0) == 1,
            per_page=data.get("per_page", 0),
            pages=data.get("pages", 0),
            max_filesize=data.get("max_filesize", 0),
            max_webm_filesize=data.get("max_webm_filesize", 0),
            max_comment_chars=data.get("max_comment_chars", 0),
            max_webm_duration=data.get("max_webm_duration", 0),
            bump_limit=data.get("bump_limit", 0),
            image_limit=data.get("image_limit", 0),
            cooldowns=Cooldowns(
                threads=cooldowns.get("threads", 0),
                replies=cooldowns.get("replies", 0),
                images=cooldowns.get("images", 0),
            ),
            meta_description=data.get("meta_description", ""),
            spoilers=_flag(data, "spoilers"),
            custom_spoilers=data.get("custom_spoilers"),
            is_archived=_flag(data, "is_archived"),
            board_flags=data.get("board_flags"),
            country_flags=_flag(data, "country_flags"),
            user_ids=_flag(data, "user_ids"),
            oekaki=_flag(data, "oekaki"),
            sjis_tags=_flag(data, "sjis_tags"),
            code_tags=_flag(data, "code_tags"),
            math_tags=_flag(data, "math_tags"),
            text_only=_flag(data, "text_only"),
            forced_anon=_flag(data, "forced_anon"),
            webm_audio=_flag(data, "webm_audio"),
            require_subject=_flag(data, "require_subject"),
            min_image_width=data.get("min_image_width"),
            min_image_height=data.get("min_image_height"),
        )
