"""Exceptions raised by the episode heatmap core."""

from __future__ import annotations

API_ERROR = "Failed to fetch data from TMDb. Please try again."
NETWORK_ERROR = "Network error. Please check your connection."
INVALID_API_KEY = "Invalid API key. Please check your configuration."
RATE_LIMIT = "Too many requests. Please wait a moment."
SHOW_NOT_FOUND = "TV show not found."
SEASON_NOT_FOUND = "Season data not available."


class TMDBError(Exception):
    """A remote fetch failed.

    The only error that crosses the core's boundary. ``message`` is safe
    to show to the user as-is.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class StoreError(Exception):
    """The cache's backing store rejected an operation."""


class StoreQuotaExceeded(StoreError):
    """A write would exceed the backing store's size quota."""
