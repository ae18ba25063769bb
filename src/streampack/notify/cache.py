"""Progress cache invalidation for the media server.

The media server caches transcode progress for its UI. After a batch run
changes entry statuses, it is told to drop that cache. A failed
notification only means stale progress in the UI, so errors are logged
and never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from streampack.config.models import NotifyConfig

logger = logging.getLogger(__name__)

INVALIDATE_PATH = "/api/progress/invalidate-cache"


@dataclass(frozen=True)
class InvalidationResult:
    """Response of the invalidate-cache endpoint."""

    success: bool
    message: str = ""
    timestamp: str | None = None


class CacheNotifier:
    """HTTP client for the media server's cache invalidation endpoint."""

    def __init__(self, config: NotifyConfig) -> None:
        """Initialize the notifier.

        Args:
            config: Notification configuration. With no base URL the
                notifier is disabled.
        """
        self._base_url = config.base_url.rstrip("/") if config.base_url else None
        self._timeout = config.timeout_seconds
        self._client: httpx.Client | None = None

    @property
    def enabled(self) -> bool:
        """True if a base URL is configured."""
        return self._base_url is not None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(base_url=self._base_url, timeout=self._timeout)
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def invalidate(self) -> InvalidationResult | None:
        """Ask the media server to drop its progress cache.

        Returns:
            The server's answer, or None if disabled or the request failed.
        """
        if not self.enabled:
            logger.debug("Cache notification disabled (no base URL)")
            return None

        client = self._get_client()
        try:
            response = client.post(INVALIDATE_PATH)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
        except httpx.HTTPError as e:
            logger.warning("Cache invalidation failed: %s", e)
            return None
        except ValueError as e:
            logger.warning("Cache invalidation returned invalid JSON: %s", e)
            return None
        if not isinstance(data, dict):
            logger.warning("Cache invalidation returned unexpected body: %r", data)
            return None

        result = InvalidationResult(
            success=bool(data.get("success", False)),
            message=str(data.get("message", "")),
            timestamp=data.get("timestamp"),
        )
        if result.success:
            logger.info("Progress cache invalidated: %s", result.message)
        else:
            logger.warning("Progress cache not invalidated: %s", result.message)
        return result
