"""
Preview media resolution for detail pages.

Sample images come straight from the gallery markup. Preview videos sit
behind ``onclick`` player launchers and take two (VR) or three (standard)
dependent fetches to reach a playable URL. Every chain ends in RESOLVED or
ABANDONED; an abandoned chain leaves the record untouched.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from bs4 import Tag
from pydantic import BaseModel, Field, ValidationError

from dmmscout import logger
from dmmscout.provider.errors import FetchError
from dmmscout.provider.fetcher import FetchedPage
from dmmscout.provider.protocols import PageFetcherProtocol
from dmmscout.provider.types import MovieInfo
from dmmscout.provider.url_rules import preview_src

STANDARD_TRIGGER = "#detail-sample-movie > div > a"
VR_TRIGGER = "#detail-sample-vr-movie > div > a"
GALLERY_ANCHORS = "#sample-image-block > a"

_ONCLICK_PATH = re.compile(r"/(.+)/")
_PLAYER_ARGS = re.compile(r"const args = (\{.+});")
_VR_SAMPLE_URL = re.compile(r'var sampleUrl = "(.+?)";')


class PreviewKind(str, Enum):
    STANDARD = "standard"
    VR = "vr"


class PreviewState(str, Enum):
    IDLE = "idle"
    TRIGGER_FOUND = "trigger_found"
    SECONDARY_FETCHED = "secondary_fetched"
    PAYLOAD_PARSED = "payload_parsed"
    RESOLVED = "resolved"
    ABANDONED = "abandoned"


@dataclass
class PreviewChain:
    """Progress of one trigger's fetch chain."""

    kind: PreviewKind
    state: PreviewState = PreviewState.IDLE
    url: str = ""
    reason: str = ""

    def advance(self, state: PreviewState) -> None:
        self.state = state

    def abandon(self, reason: str) -> "PreviewChain":
        self.state = PreviewState.ABANDONED
        self.reason = reason
        logger.debug(f"{self.kind.value} preview abandoned: {reason}")
        return self

    def resolve(self, url: str) -> "PreviewChain":
        self.state = PreviewState.RESOLVED
        self.url = url
        return self


class BitrateVariant(BaseModel):
    bitrate: int = 0
    src: str = ""


class PlayerArgs(BaseModel):
    bitrates: List[BitrateVariant] = Field(default_factory=list)


def select_highest_bitrate(variants: Sequence[BitrateVariant]) -> Optional[BitrateVariant]:
    """Return the highest-bitrate variant; the last listed one wins a tie."""
    if not variants:
        return None
    return sorted(variants, key=lambda variant: variant.bitrate)[-1]


def parse_player_args(body: str) -> Optional[PlayerArgs]:
    match = _PLAYER_ARGS.search(body)
    if not match:
        return None
    try:
        return PlayerArgs.model_validate(json.loads(match.group(1)))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.debug(f"Unparsable player args payload: {exc}")
        return None


def player_path_url(page: FetchedPage, trigger: Tag) -> str:
    """Resolve the player page path embedded in a trigger's ``onclick``."""
    match = _ONCLICK_PATH.search(trigger.get("onclick") or "")
    if not match:
        return ""
    return page.absolute_url(match.group(0))


def extract_preview_images(page: FetchedPage, info: MovieInfo) -> None:
    for anchor in page.document.select(GALLERY_ANCHORS):
        image = anchor.find("img")
        src = (image.get("src") or "") if image is not None else ""
        if src:
            info.preview_images.append(page.absolute_url(preview_src(src)))


class PreviewResolver:
    """Fills preview images and the preview video URL of a record."""

    def __init__(self, fetcher: PageFetcherProtocol) -> None:
        self.fetcher = fetcher

    async def resolve(self, page: FetchedPage, info: MovieInfo) -> List[PreviewChain]:
        extract_preview_images(page, info)

        chains: List[PreviewChain] = []
        # Document order decides which trigger writes last.
        for trigger in page.document.select(f"{STANDARD_TRIGGER}, {VR_TRIGGER}"):
            if trigger.find_parent(id="detail-sample-vr-movie") is not None:
                chain = await self._resolve_vr(page, trigger)
            else:
                chain = await self._resolve_standard(page, trigger)
            if chain.state is PreviewState.RESOLVED:
                info.preview_video_url = chain.url
            chains.append(chain)
        return chains

    async def _resolve_standard(self, page: FetchedPage, trigger: Tag) -> PreviewChain:
        chain = PreviewChain(PreviewKind.STANDARD)
        target = player_path_url(page, trigger)
        if not target:
            return chain.abandon("trigger has no player path")
        chain.advance(PreviewState.TRIGGER_FOUND)

        sub = self.fetcher.clone()
        try:
            launcher = await self._fetch(sub, target, chain)
            if launcher is None:
                return chain
            chain.advance(PreviewState.SECONDARY_FETCHED)

            iframe = launcher.document.find("iframe", src=True)
            player_url = launcher.absolute_url(iframe.get("src")) if iframe is not None else ""
            if not player_url:
                return chain.abandon(f"no player iframe in {target}")
            player = await self._fetch(sub, player_url, chain)
            if player is None:
                return chain
        finally:
            await sub.close()

        args = parse_player_args(player.text)
        if args is None:
            return chain.abandon(f"no player args in {player_url}")
        chain.advance(PreviewState.PAYLOAD_PARSED)

        best = select_highest_bitrate(args.bitrates)
        if best is None or not best.src:
            return chain.abandon("empty bitrate list")
        # Relative to the launcher page that embeds the player iframe.
        return chain.resolve(launcher.absolute_url(best.src))

    async def _resolve_vr(self, page: FetchedPage, trigger: Tag) -> PreviewChain:
        chain = PreviewChain(PreviewKind.VR)
        target = player_path_url(page, trigger)
        if not target:
            return chain.abandon("trigger has no player path")
        chain.advance(PreviewState.TRIGGER_FOUND)

        sub = self.fetcher.clone()
        try:
            player = await self._fetch(sub, target, chain)
        finally:
            await sub.close()
        if player is None:
            return chain
        chain.advance(PreviewState.SECONDARY_FETCHED)

        match = _VR_SAMPLE_URL.search(player.text)
        if not match:
            return chain.abandon(f"no sampleUrl in {target}")
        chain.advance(PreviewState.PAYLOAD_PARSED)
        return chain.resolve(page.absolute_url(match.group(1)))

    @staticmethod
    async def _fetch(sub: PageFetcherProtocol, url: str, chain: PreviewChain) -> Optional[FetchedPage]:
        try:
            return await sub.fetch(url)
        except FetchError as exc:
            chain.abandon(str(exc))
            return None
