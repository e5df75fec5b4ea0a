"""Exception types raised by the DMM metadata provider."""

from __future__ import annotations


class ProviderError(Exception):
    """Base class for provider failures surfaced to callers."""


class InvalidLinkError(ProviderError, ValueError):
    """Raised when a detail link carries no recognizable cid segment."""

    def __init__(self, link: str) -> None:
        super().__init__(f"invalid DMM link: {link}")
        self.link = link


class MovieNotFoundError(ProviderError, LookupError):
    """Raised when no candidate page yields a valid record."""

    def __init__(self, movie_id: str) -> None:
        super().__init__(f"movie not found: {movie_id}")
        self.movie_id = movie_id


class SearchParseError(ProviderError, ValueError):
    """Raised when a search listing entry has no parseable cid."""


class FetchError(ProviderError):
    """Transport failure or HTTP error status reported by the page fetcher."""

    def __init__(self, url: str, message: str, status: int | None = None) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status = status
