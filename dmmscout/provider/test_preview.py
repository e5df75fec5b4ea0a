from __future__ import annotations

from pathlib import Path

import pytest

from dmmscout.provider.errors import FetchError
from dmmscout.provider.fetcher import FetchedPage
from dmmscout.provider.preview import (
    BitrateVariant,
    PreviewKind,
    PreviewResolver,
    PreviewState,
    extract_preview_images,
    parse_player_args,
    select_highest_bitrate,
)
from dmmscout.provider.types import MovieInfo

FIXTURE_DIR = Path(__file__).parent / "fixtures"
DETAIL_URL = "https://www.dmm.co.jp/digital/videoa/-/detail/=/cid=abc00001/"
AJAX_URL = "https://www.dmm.co.jp/digital/videoa/-/detail/ajax-movie/=/cid=abc00001/"
PLAYER_URL = "https://www.dmm.co.jp/digital/-/player/=/player=html5/act=sample/cid=abc00001/"
VR_PLAYER_URL = "https://www.dmm.co.jp/digital/-/vr-sample-player/=/cid=ghi00003/"
BEST_VIDEO = "https://cc3001.dmm.co.jp/litevideo/freepv/a/abc/abc00001/abc00001_dmb_w.mp4"
VR_VIDEO = "https://cc3001.dmm.co.jp/vrsample/g/ghi/ghi00003/ghi00003vrlite.mp4"

STANDARD_TRIGGER = (
    '<div id="detail-sample-movie"><div class="d-btn">'
    "<a onclick=\"sampleplay('/digital/videoa/-/detail/ajax-movie/=/cid=abc00001/'); return false;\">"
    "sample</a></div></div>"
)
VR_TRIGGER = (
    '<div id="detail-sample-vr-movie"><div class="d-btn">'
    "<a onclick=\"vrsampleplay('/digital/-/vr-sample-player/=/cid=ghi00003/'); return false;\">"
    "VR sample</a></div></div>"
)


def _fixture(name: str) -> str:
    return (FIXTURE_DIR / name).read_text(encoding="utf-8")


def _page(body: str, url: str = DETAIL_URL) -> FetchedPage:
    return FetchedPage(url=url, status=200, body=f"<html><body>{body}</body></html>".encode("utf-8"))


class _FakeFetcher:
    """Serves canned pages by URL; unknown URLs fail like an HTTP 404."""

    def __init__(self, pages: dict[str, str], requested: list[str] | None = None) -> None:
        self.pages = pages
        self.requested = requested if requested is not None else []
        self.clones: list[_FakeFetcher] = []
        self.closed = False

    def on_request(self, hook) -> None:  # pragma: no cover - unused by the resolver
        raise AssertionError("resolver must not register hooks")

    def on_response(self, hook) -> None:  # pragma: no cover - unused by the resolver
        raise AssertionError("resolver must not register hooks")

    def clone(self) -> "_FakeFetcher":
        clone = _FakeFetcher(self.pages, self.requested)
        self.clones.append(clone)
        return clone

    async def fetch(self, url: str) -> FetchedPage:
        self.requested.append(url)
        if url not in self.pages:
            raise FetchError(url, "HTTP 404 Not Found", status=404)
        return FetchedPage(url=url, status=200, body=self.pages[url].encode("utf-8"))

    async def close(self) -> None:
        self.closed = True


def _standard_pages() -> dict[str, str]:
    return {
        AJAX_URL: _fixture("ajax_movie.html"),
        PLAYER_URL: _fixture("html5_player.html"),
    }


def test_select_highest_bitrate() -> None:
    variants = [
        BitrateVariant(bitrate=300, src="u1"),
        BitrateVariant(bitrate=800, src="u2"),
        BitrateVariant(bitrate=500, src="u3"),
    ]
    assert select_highest_bitrate(variants).src == "u2"


def test_select_highest_bitrate_tie_prefers_last_listed() -> None:
    variants = [BitrateVariant(bitrate=800, src="first"), BitrateVariant(bitrate=800, src="second")]
    assert select_highest_bitrate(variants).src == "second"
    assert select_highest_bitrate([]) is None


def test_parse_player_args() -> None:
    args = parse_player_args(_fixture("html5_player.html"))

    assert args is not None
    assert [variant.bitrate for variant in args.bitrates] == [300, 1500, 1000]
    assert parse_player_args("<script>var nothing = 1;</script>") is None
    assert parse_player_args("const args = {broken: json};") is None
    assert parse_player_args('const args = {"bitrates": "many"};') is None


def test_extract_preview_images_enlarges_in_document_order() -> None:
    page = FetchedPage(
        url=DETAIL_URL,
        status=200,
        body=(FIXTURE_DIR / "detail_videoa.html").read_bytes(),
    )
    info = MovieInfo(homepage=DETAIL_URL, id="abc00001")

    extract_preview_images(page, info)

    assert info.preview_images == [
        "https://pics.dmm.co.jp/digital/video/abc00001/abc00001jp-1.jpg",
        "https://pics.dmm.co.jp/digital/video/abc00001/abc00001jp-2.jpg",
    ]


@pytest.mark.asyncio
async def test_standard_chain_resolves_highest_bitrate() -> None:
    fetcher = _FakeFetcher(_standard_pages())
    info = MovieInfo(homepage=DETAIL_URL, id="abc00001")

    chains = await PreviewResolver(fetcher).resolve(_page(STANDARD_TRIGGER), info)

    assert [(chain.kind, chain.state) for chain in chains] == [(PreviewKind.STANDARD, PreviewState.RESOLVED)]
    assert info.preview_video_url == BEST_VIDEO
    assert fetcher.requested == [AJAX_URL, PLAYER_URL]
    assert [clone.closed for clone in fetcher.clones] == [True]


@pytest.mark.asyncio
async def test_relative_bitrate_src_resolves_against_launcher_page() -> None:
    player_body = 'const args = {"bitrates": [{"bitrate": 800, "src": "sample/abc00001_dmb_w.mp4"}]};'
    fetcher = _FakeFetcher({AJAX_URL: _fixture("ajax_movie.html"), PLAYER_URL: player_body})
    info = MovieInfo(homepage=DETAIL_URL, id="abc00001")

    (chain,) = await PreviewResolver(fetcher).resolve(_page(STANDARD_TRIGGER), info)

    assert chain.state is PreviewState.RESOLVED
    assert info.preview_video_url == AJAX_URL + "sample/abc00001_dmb_w.mp4"


@pytest.mark.asyncio
async def test_vr_chain_reads_sample_url() -> None:
    fetcher = _FakeFetcher({VR_PLAYER_URL: _fixture("vr_player.html")})
    info = MovieInfo(homepage=DETAIL_URL, id="ghi00003")

    chains = await PreviewResolver(fetcher).resolve(_page(VR_TRIGGER), info)

    assert [(chain.kind, chain.state) for chain in chains] == [(PreviewKind.VR, PreviewState.RESOLVED)]
    assert info.preview_video_url == VR_VIDEO


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "expected"),
    [
        (STANDARD_TRIGGER + VR_TRIGGER, VR_VIDEO),
        (VR_TRIGGER + STANDARD_TRIGGER, BEST_VIDEO),
    ],
)
async def test_later_trigger_in_document_wins(body: str, expected: str) -> None:
    pages = _standard_pages()
    pages[VR_PLAYER_URL] = _fixture("vr_player.html")
    fetcher = _FakeFetcher(pages)
    info = MovieInfo(homepage=DETAIL_URL, id="abc00001")

    chains = await PreviewResolver(fetcher).resolve(_page(body), info)

    assert [chain.state for chain in chains] == [PreviewState.RESOLVED, PreviewState.RESOLVED]
    assert info.preview_video_url == expected


@pytest.mark.asyncio
async def test_fetch_failure_abandons_and_keeps_existing_url() -> None:
    fetcher = _FakeFetcher({})
    info = MovieInfo(homepage=DETAIL_URL, id="abc00001", preview_video_url="https://keep.example/a.mp4")

    (chain,) = await PreviewResolver(fetcher).resolve(_page(STANDARD_TRIGGER), info)

    assert chain.state is PreviewState.ABANDONED
    assert "404" in chain.reason
    assert info.preview_video_url == "https://keep.example/a.mp4"
    assert [clone.closed for clone in fetcher.clones] == [True]


@pytest.mark.asyncio
async def test_missing_iframe_abandons_after_secondary_fetch() -> None:
    fetcher = _FakeFetcher({AJAX_URL: "<html><body><p>no player</p></body></html>"})
    info = MovieInfo(homepage=DETAIL_URL, id="abc00001")

    (chain,) = await PreviewResolver(fetcher).resolve(_page(STANDARD_TRIGGER), info)

    assert chain.state is PreviewState.ABANDONED
    assert "iframe" in chain.reason
    assert fetcher.requested == [AJAX_URL]
    assert info.preview_video_url == ""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "player_body",
    [
        "<script>var nothing = 1;</script>",
        'const args = {"bitrates": []};',
        'const args = {"bitrates": [{"bitrate": 300, "src": ""}]};',
    ],
)
async def test_unusable_player_payload_abandons(player_body: str) -> None:
    fetcher = _FakeFetcher({AJAX_URL: _fixture("ajax_movie.html"), PLAYER_URL: player_body})
    info = MovieInfo(homepage=DETAIL_URL, id="abc00001")

    (chain,) = await PreviewResolver(fetcher).resolve(_page(STANDARD_TRIGGER), info)

    assert chain.state is PreviewState.ABANDONED
    assert info.preview_video_url == ""


@pytest.mark.asyncio
async def test_vr_page_without_sample_url_abandons() -> None:
    fetcher = _FakeFetcher({VR_PLAYER_URL: "<script>var other = 1;</script>"})
    info = MovieInfo(homepage=DETAIL_URL, id="ghi00003")

    (chain,) = await PreviewResolver(fetcher).resolve(_page(VR_TRIGGER), info)

    assert chain.kind is PreviewKind.VR
    assert chain.state is PreviewState.ABANDONED
    assert "sampleUrl" in chain.reason


@pytest.mark.asyncio
async def test_trigger_without_onclick_is_abandoned_without_fetching() -> None:
    fetcher = _FakeFetcher(_standard_pages())
    info = MovieInfo(homepage=DETAIL_URL, id="abc00001")
    body = '<div id="detail-sample-movie"><div><a href="#">sample</a></div></div>'

    (chain,) = await PreviewResolver(fetcher).resolve(_page(body), info)

    assert chain.state is PreviewState.ABANDONED
    assert fetcher.requested == []
    assert fetcher.clones == []


@pytest.mark.asyncio
async def test_page_without_triggers_yields_no_chains() -> None:
    fetcher = _FakeFetcher({})
    info = MovieInfo(homepage=DETAIL_URL, id="abc00001")

    assert await PreviewResolver(fetcher).resolve(_page("<p>nothing</p>"), info) == []
    assert fetcher.requested == []
