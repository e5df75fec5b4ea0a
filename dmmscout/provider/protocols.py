"""Protocol definitions for page fetchers and metadata providers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence

from dmmscout.provider.types import MovieInfo, SearchResult

if TYPE_CHECKING:
    from dmmscout.provider.fetcher import FetchedPage, RequestHook, ResponseHook


class PageFetcherProtocol(Protocol):
    """Fetch API the resolution pipeline depends on."""

    async def fetch(self, url: str) -> "FetchedPage":
        ...

    def clone(self) -> "PageFetcherProtocol":
        ...

    def on_request(self, hook: "RequestHook") -> None:
        ...

    def on_response(self, hook: "ResponseHook") -> None:
        ...

    async def close(self) -> None:
        ...


class MetadataProvider(Protocol):
    """Public lookup API exposed to callers."""

    async def get_movie_info_by_id(self, movie_id: str) -> MovieInfo:
        ...

    async def get_movie_info_by_link(self, link: str) -> MovieInfo:
        ...

    async def search_movie(self, keyword: str) -> Sequence[SearchResult]:
        ...
