"""Image path heuristics mirroring the site's own ``preview_src`` script."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PreviewSrcRule:
    """
    One row of the preview-src table.

    With ``old`` set, every occurrence of ``old`` is replaced by ``new``;
    otherwise ``pattern`` itself is substituted with ``new``.
    """

    name: str
    pattern: re.Pattern[str]
    new: str
    old: Optional[str] = None

    def matches(self, src: str) -> bool:
        return self.pattern.search(src) is not None

    def apply(self, src: str) -> str:
        if self.old is not None:
            return src.replace(self.old, self.new)
        return self.pattern.sub(self.new, src)


# First match wins; the last rule matches everything.
PREVIEW_SRC_RULES: tuple[PreviewSrcRule, ...] = (
    PreviewSrcRule("package", re.compile(r"(p[a-z]\.)jpg"), "pl.jpg"),
    PreviewSrcRule("consumer_game", re.compile(r"consumer_game"), "-", old="js-"),
    PreviewSrcRule("js_sample", re.compile(r"js-(\d+)\.jpg$"), "jp-", old="js-"),
    PreviewSrcRule("ts_sample", re.compile(r"ts-(\d+)\.jpg$"), "tl-", old="ts-"),
    PreviewSrcRule("numbered_sample", re.compile(r"(-\d+\.)jpg$"), r"jp\g<1>jpg"),
    PreviewSrcRule("fallback", re.compile(r""), "jp-", old="-"),
)

_SIZE_MARKER = re.compile(r"(p[a-z]\.)jpg")


def preview_src(src: str) -> str:
    """Map a thumbnail or sample image path to its largest variant."""
    src = src or ""
    for rule in PREVIEW_SRC_RULES:
        if rule.matches(src):
            return rule.apply(src)
    return src


def small_thumb(src: str) -> str:
    """Force a listing thumbnail onto the ``ps.jpg`` size marker."""
    return _SIZE_MARKER.sub("ps.jpg", src or "")
