"""Configuration and environment settings for the API client."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .freshness import ResourceIdentity, ResourceKind


@dataclass(frozen=True)
class ApiConfig:
    """4chan API configuration.  Respects the 1-request-per-second guideline."""
    api_base: str = "https://a.4cdn.org"
    media_base: str = "https://i.4cdn.org"
    request_interval: float = 1.0  # seconds between any two requests
    update_interval: float = 10.0  # seconds between refreshes of one resource
    timeout: float = 30.0
    user_agent: str = "chanapi/1.0"

    @classmethod
    def from_env(cls) -> ApiConfig:
        return cls(
            api_base=os.getenv("CHANAPI_API_BASE", "https://a.4cdn.org"),
            media_base=os.getenv("CHANAPI_MEDIA_BASE", "https://i.4cdn.org"),
            request_interval=float(os.getenv("CHANAPI_REQUEST_INTERVAL", "1.0")),
            update_interval=float(os.getenv("CHANAPI_UPDATE_INTERVAL", "10.0")),
            timeout=float(os.getenv("CHANAPI_TIMEOUT", "30.0")),
            user_agent=os.getenv("CHANAPI_USER_AGENT", "chanapi/1.0"),
        )

    def url_for(self, identity: ResourceIdentity) -> str:
        """Return the JSON endpoint for a resource identity."""
        kind = identity.kind
        if kind is ResourceKind.THREAD:
            return f"{self.api_base}/{identity.board}/thread/{identity.no}.json"
        if kind is ResourceKind.BOARD:
            return f"{self.api_base}/{identity.board}/threads.json"
        if kind is ResourceKind.CATALOG:
            return f"{self.api_base}/{identity.board}/catalog.json"
        if kind is ResourceKind.ARCHIVE:
            return f"{self.api_base}/{identity.board}/archive.json"
        return f"{self.api_base}/boards.json"
