"""Keyword search listing parser."""

from __future__ import annotations

from typing import List

from dmmscout.provider.errors import SearchParseError
from dmmscout.provider.extraction import node_text
from dmmscout.provider.fetcher import FetchedPage
from dmmscout.provider.number import parse_cid, parse_number
from dmmscout.provider.parsers import parse_score
from dmmscout.provider.types import SearchResult
from dmmscout.provider.url_rules import preview_src, small_thumb

LISTING_ENTRIES = "#list > li"


def parse_search_results(page: FetchedPage) -> List[SearchResult]:
    """
    Turn a search listing page into results, in listing order.

    A single entry without a ``cid`` in its link fails the whole listing,
    since the page layout is then not the one this parser understands.
    """
    results: List[SearchResult] = []
    for entry in page.document.select(LISTING_ENTRIES):
        link = entry.select_one("p.tmb > a")
        href = (link.get("href") or "") if link is not None else ""
        cid = parse_cid(href)
        if not cid:
            raise SearchParseError(f"find id error: no cid in listing link '{href}'")

        image = link.select_one("span img") or link.find("img")
        thumb = small_thumb((image.get("src") or "") if image is not None else "")
        results.append(
            SearchResult(
                id=cid,
                number=parse_number(cid),
                title=(image.get("alt") or "").strip() if image is not None else "",
                homepage=page.absolute_url(href),
                thumb_url=page.absolute_url(thumb),
                cover_url=page.absolute_url(preview_src(thumb)) if thumb else "",
                score=parse_score(node_text(entry.select_one("p.rate > span > span"))),
            )
        )
    return results
