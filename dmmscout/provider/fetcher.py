"""aiohttp page fetcher used by the detail, preview and search flows."""

from __future__ import annotations

import asyncio
import codecs
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional
from urllib.parse import urldefrag, urljoin

import aiohttp
from bs4 import BeautifulSoup
from yarl import URL

from dmmscout import logger
from dmmscout.config import HttpConfig
from dmmscout.provider.errors import FetchError

RequestHook = Callable[[str], None]
ResponseHook = Callable[["FetchedPage"], None]
SessionFactory = Callable[..., Any]


def _codec_name(charset: Optional[str]) -> str:
    """Codec for a response charset; unknown or missing labels decode as UTF-8."""
    if not charset:
        return "utf-8"
    try:
        return codecs.lookup(charset).name
    except LookupError:
        logger.debug(f"Unknown response charset '{charset}'; decoding as utf-8")
        return "utf-8"


@dataclass
class FetchedPage:
    """Raw response body plus a lazily parsed document."""

    url: str
    status: int
    body: bytes
    encoding: str = "utf-8"
    _document: Optional[BeautifulSoup] = field(default=None, init=False, repr=False, compare=False)

    @property
    def text(self) -> str:
        return self.body.decode(self.encoding or "utf-8", errors="replace")

    @property
    def document(self) -> BeautifulSoup:
        if self._document is None:
            self._document = BeautifulSoup(self.text, "html.parser")
        return self._document

    def absolute_url(self, ref: Optional[str]) -> str:
        """Resolve ``ref`` against this page; blank and fragment-only refs give ``""``."""
        ref = (ref or "").strip()
        if not ref or ref.startswith("#"):
            return ""
        return urldefrag(urljoin(self.url, ref))[0]


class PageFetcher:
    """Cookie and user-agent aware fetcher; one aiohttp session per instance."""

    def __init__(
        self,
        http: HttpConfig,
        base_url: str,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self.http = http
        self.base_url = base_url
        self._session_factory = session_factory or aiohttp.ClientSession
        self._session: Any = None
        self._session_lock = asyncio.Lock()
        self._request_hooks: List[RequestHook] = []
        self._response_hooks: List[ResponseHook] = []

    def on_request(self, hook: RequestHook) -> None:
        """Register a callback invoked with the URL before each request starts."""
        self._request_hooks.append(hook)

    def on_response(self, hook: ResponseHook) -> None:
        """Register a callback invoked with each successful page."""
        self._response_hooks.append(hook)

    def clone(self) -> "PageFetcher":
        """New fetch context with the same cookies, UA and timeout but no hooks."""
        return PageFetcher(self.http, self.base_url, session_factory=self._session_factory)

    async def fetch(self, url: str) -> FetchedPage:
        for hook in self._request_hooks:
            hook(url)
        log = logger.get_logger()
        log.fetch_request("GET", url)
        request_start = time.time()

        session = await self._ensure_session()
        try:
            async with session.get(url) as response:
                body = await response.read()
                if response.status >= 400:
                    raise FetchError(url, f"HTTP {response.status} {response.reason}", status=response.status)
                page = FetchedPage(
                    url=str(response.url),
                    status=response.status,
                    body=body,
                    encoding=_codec_name(response.charset),
                )
        except (asyncio.TimeoutError, aiohttp.ClientError) as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc

        elapsed_ms = (time.time() - request_start) * 1000
        log.fetch_response(page.status, page.url, len(page.body), elapsed_ms)
        for hook in self._response_hooks:
            hook(page)
        return page

    async def _ensure_session(self) -> Any:
        session = self._session
        if session is not None and not session.closed:
            return session

        async with self._session_lock:
            session = self._session
            if session is None or session.closed:
                cookie_jar = aiohttp.CookieJar()
                cookie_jar.update_cookies(self.http.cookies, response_url=URL(self.base_url))
                self._session = self._session_factory(
                    headers=self._get_headers(),
                    cookie_jar=cookie_jar,
                    timeout=aiohttp.ClientTimeout(total=self.http.timeout),
                )
            return self._session

    def _get_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.http.user_agent,
            "Accept-Language": "ja-JP,ja;q=0.9,en-US;q=0.8,en;q=0.7",
        }

    async def close(self) -> None:
        """Close any open connections."""
        async with self._session_lock:
            session = self._session
            self._session = None
        if session is not None and not session.closed:
            await session.close()

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
