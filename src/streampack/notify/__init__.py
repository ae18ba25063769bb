"""Notifications to the media server."""

from streampack.notify.cache import CacheNotifier, InvalidationResult

__all__ = ["CacheNotifier", "InvalidationResult"]
