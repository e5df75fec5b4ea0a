"""DMM/FANZA metadata provider: detail lookup, preview resolution and search."""

from .dmm import DMMProvider
from .errors import (
    FetchError,
    InvalidLinkError,
    MovieNotFoundError,
    ProviderError,
    SearchParseError,
)
from .fetcher import FetchedPage, PageFetcher
from .number import parse_cid, parse_number
from .preview import PreviewResolver, PreviewState, select_highest_bitrate
from .types import MovieInfo, SearchResult
from .url_rules import preview_src

__all__ = [
    "DMMProvider",
    "FetchError",
    "FetchedPage",
    "InvalidLinkError",
    "MovieInfo",
    "MovieNotFoundError",
    "PageFetcher",
    "PreviewResolver",
    "PreviewState",
    "ProviderError",
    "SearchParseError",
    "SearchResult",
    "parse_cid",
    "parse_number",
    "preview_src",
    "select_highest_bitrate",
]
