"""DMM metadata provider: candidate probing, detail extraction and search."""

from __future__ import annotations

from typing import Callable, List, Optional

from dmmscout import logger
from dmmscout.config import ScoutConfig, default_config
from dmmscout.provider.candidates import candidate_urls
from dmmscout.provider.errors import FetchError, InvalidLinkError, MovieNotFoundError
from dmmscout.provider.extraction import extract_movie_info, finalize_cover
from dmmscout.provider.fetcher import PageFetcher
from dmmscout.provider.number import parse_cid
from dmmscout.provider.preview import PreviewResolver, PreviewState
from dmmscout.provider.protocols import MetadataProvider, PageFetcherProtocol
from dmmscout.provider.search import parse_search_results
from dmmscout.provider.types import MovieInfo, SearchResult

FetcherFactory = Callable[[], PageFetcherProtocol]


class DMMProvider(MetadataProvider):
    """
    Resolves catalog records from the DMM/FANZA site.

    Every public call builds its own fetcher (and therefore its own session
    and cookie jar) so independent calls can run concurrently.
    """

    def __init__(
        self,
        config: Optional[ScoutConfig] = None,
        fetcher_factory: Optional[FetcherFactory] = None,
    ) -> None:
        self.config = config or default_config()
        self._fetcher_factory = fetcher_factory or self._default_fetcher

    def _default_fetcher(self) -> PageFetcherProtocol:
        return PageFetcher(self.config.http, self.config.dmm.base_url)

    async def get_movie_info_by_id(self, movie_id: str) -> MovieInfo:
        """Probe each candidate section and return the first usable record."""
        for url in candidate_urls(movie_id, self.config.dmm.base_url):
            try:
                info = await self.get_movie_info_by_link(url)
            except (FetchError, InvalidLinkError) as exc:
                logger.debug(f"Candidate skipped: {exc}")
                continue
            if info.is_valid():
                return info
            logger.debug(f"Candidate {url} has no title or catalog number")
        raise MovieNotFoundError(movie_id)

    async def get_movie_info_by_link(self, link: str) -> MovieInfo:
        cid = parse_cid(link)
        if not cid:
            raise InvalidLinkError(link)

        info = MovieInfo(homepage=link, id=cid)
        fetcher = self._fetcher_factory()

        def _record_homepage(url: str) -> None:
            info.homepage = url

        fetcher.on_request(_record_homepage)
        try:
            page = await fetcher.fetch(link)
            extract_movie_info(page, info, cid)
            chains = await PreviewResolver(fetcher).resolve(page, info)
        finally:
            await fetcher.close()

        for chain in chains:
            if chain.state is PreviewState.RESOLVED:
                logger.debug(f"{chain.kind.value} preview resolved: {chain.url}")
        finalize_cover(info)
        return info

    async def search_movie(self, keyword: str) -> List[SearchResult]:
        # The site matches lower-case keywords more reliably.
        url = self.config.dmm.search_url(keyword.lower())
        fetcher = self._fetcher_factory()
        try:
            page = await fetcher.fetch(url)
        finally:
            await fetcher.close()
        results = parse_search_results(page)
        logger.debug(f"Search '{keyword}' returned {len(results)} result(s)")
        return results
