"""
Field extraction cascade for DMM detail pages.

Each pass reads one source (markup element, info table, JSON-LD block, meta
tag) and patches the record in place. Passes run in the order listed in
``EXTRACTION_PASSES``; a later pass only overrides what it is allowed to.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

from bs4 import Tag
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dmmscout import logger
from dmmscout.provider.fetcher import FetchedPage
from dmmscout.provider.number import parse_number
from dmmscout.provider.parsers import (
    parse_date,
    parse_duration,
    parse_score,
    parse_score_from_url,
    trim_field,
)
from dmmscout.provider.types import MovieInfo
from dmmscout.provider.url_rules import preview_src

ExtractionPass = Callable[[FetchedPage, MovieInfo, str], None]


def node_text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return node.get_text().strip()


def extract_title(page: FetchedPage, info: MovieInfo, cid: str) -> None:
    node = page.document.find(id="title")
    if node is not None:
        info.title = node_text(node)


def extract_thumb(page: FetchedPage, info: MovieInfo, cid: str) -> None:
    node = page.document.find(id=f"package-src-{cid}")
    if node is not None:
        info.thumb_url = page.absolute_url(node.get("src"))


def extract_cover(page: FetchedPage, info: MovieInfo, cid: str) -> None:
    node = page.document.find(id=cid)
    if node is not None:
        info.cover_url = page.absolute_url(preview_src(node.get("href") or ""))


# Label cell text (exact) -> record field.
FIELD_LABELS: Dict[str, str] = {
    "品番：": "id",
    "シリーズ：": "series",
    "メーカー：": "maker",
    "レーベル：": "publisher",
    "ジャンル：": "tags",
    "名前：": "actors",
    "平均評価：": "score",
    "収録時間：": "duration",
    "監督：": "director",
    "配信開始日：": "release_date",
    "商品発売日：": "release_date",
    "発売日：": "release_date",
}


def _set_id(info: MovieInfo, cell: Tag) -> None:
    value = node_text(cell)
    if value:
        info.id = value
        info.number = parse_number(value)


def _set_text(field_name: str) -> Callable[[MovieInfo, Tag], None]:
    def _setter(info: MovieInfo, cell: Tag) -> None:
        setattr(info, field_name, trim_field(node_text(cell)))

    return _setter


def _set_tags(info: MovieInfo, cell: Tag) -> None:
    info.set_tags(node_text(anchor) for anchor in cell.find_all("a"))


def _set_actors(info: MovieInfo, cell: Tag) -> None:
    info.set_actors([trim_field(node_text(cell))])


def _set_score(info: MovieInfo, cell: Tag) -> None:
    image = cell.find("img")
    if image is not None:
        info.score = parse_score_from_url(image.get("src") or "")


def _set_duration(info: MovieInfo, cell: Tag) -> None:
    info.duration = parse_duration(node_text(cell))


def _set_release_date(info: MovieInfo, cell: Tag) -> None:
    released = parse_date(node_text(cell))
    if released is not None:
        info.release_date = released


_FIELD_SETTERS: Dict[str, Callable[[MovieInfo, Tag], None]] = {
    "id": _set_id,
    "series": _set_text("series"),
    "maker": _set_text("maker"),
    "publisher": _set_text("publisher"),
    "director": _set_text("director"),
    "tags": _set_tags,
    "actors": _set_actors,
    "score": _set_score,
    "duration": _set_duration,
    "release_date": _set_release_date,
}


def extract_fields(page: FetchedPage, info: MovieInfo, cid: str) -> None:
    for row in page.document.find_all("tr"):
        cells = row.find_all("td")
        if len(cells) < 2:
            continue
        field_name = FIELD_LABELS.get(node_text(cells[0]))
        if field_name is None:
            continue
        _FIELD_SETTERS[field_name](info, cells[1])


def extract_performers(page: FetchedPage, info: MovieInfo, cid: str) -> None:
    block = page.document.find(id="performer")
    if block is None:
        return
    names = [
        node_text(anchor)
        for anchor in block.find_all("a")
        if not (anchor.get("href") or "").startswith(("#", "javascript:"))
    ]
    if any(names):
        info.set_actors(names)


class _SubjectOf(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content_url: str = Field(default="", alias="contentUrl")
    genre: List[str] = Field(default_factory=list)

    @field_validator("content_url", mode="before")
    @classmethod
    def _blank_content_url(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("genre", mode="before")
    @classmethod
    def _wrap_single_genre(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class _AggregateRating(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    rating_value: str = Field(default="", alias="ratingValue")

    @field_validator("rating_value", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class StructuredMovieData(BaseModel):
    """The subset of the page's JSON-LD ``Product`` block that is consumed."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    image: str = ""
    description: str = ""
    sku: str = ""
    subject_of: _SubjectOf = Field(default_factory=_SubjectOf, alias="subjectOf")
    aggregate_rating: _AggregateRating = Field(default_factory=_AggregateRating, alias="aggregateRating")

    @field_validator("image", mode="before")
    @classmethod
    def _first_image(cls, value: Any) -> Any:
        if isinstance(value, list):
            return value[0] if value else ""
        return value


def parse_structured_data(text: str, info: MovieInfo) -> Optional[StructuredMovieData]:
    """
    Parse a JSON-LD block on top of the values already extracted.

    Keys that are missing, null or empty in the block keep the record's
    current value. Returns None when the block cannot be parsed.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.debug(f"Skipping unparsable JSON-LD block: {exc}")
        return None
    if not isinstance(payload, dict):
        logger.debug(f"Skipping JSON-LD block of type '{type(payload).__name__}'")
        return None

    seeded: Dict[str, Any] = {
        "name": info.title,
        "image": info.thumb_url,
        "description": info.summary,
        "sku": info.id,
    }
    seeded.update({key: value for key, value in payload.items() if value is not None and value != ""})
    try:
        return StructuredMovieData.model_validate(seeded)
    except ValidationError as exc:
        logger.debug(f"Skipping JSON-LD block with unexpected shape: {exc.error_count()} error(s)")
        return None


def apply_structured_data(page: FetchedPage, info: MovieInfo, cid: str) -> None:
    for script in page.document.find_all("script", attrs={"type": "application/ld+json"}):
        data = parse_structured_data(script.get_text(), info)
        if data is None:
            continue
        info.id = data.sku
        info.number = parse_number(data.sku)
        info.title = data.name.strip()
        info.summary = data.description.strip()
        info.thumb_url = page.absolute_url(data.image)
        if data.subject_of.genre:
            info.set_tags(data.subject_of.genre)
        if data.aggregate_rating.rating_value:
            info.score = parse_score(data.aggregate_rating.rating_value)
        if data.subject_of.content_url:
            info.preview_video_url = page.absolute_url(data.subject_of.content_url)


def apply_summary_fallback(page: FetchedPage, info: MovieInfo, cid: str) -> None:
    if info.summary:
        return
    for block in page.document.find_all("div", class_="mg-b20 lh4"):
        info.summary = node_text(block.find("p")) or node_text(block)
        if info.summary:
            return
    # Often truncated by the site; last resort only.
    for meta in page.document.find_all("meta", attrs={"property": "og:description"}):
        info.summary = (meta.get("content") or "").strip()
        if info.summary:
            return


EXTRACTION_PASSES: tuple[tuple[str, ExtractionPass], ...] = (
    ("title", extract_title),
    ("thumb", extract_thumb),
    ("cover", extract_cover),
    ("fields", extract_fields),
    ("performers", extract_performers),
    ("structured_data", apply_structured_data),
    ("summary_fallback", apply_summary_fallback),
)


def extract_movie_info(page: FetchedPage, info: MovieInfo, cid: str) -> MovieInfo:
    """Run every extraction pass over ``page`` and return the patched record."""
    for _name, extraction_pass in EXTRACTION_PASSES:
        extraction_pass(page, info, cid)
    return info


def finalize_cover(info: MovieInfo) -> None:
    """Fall back to the enlarged thumbnail when no cover link was found."""
    if not info.cover_url and info.thumb_url:
        info.cover_url = preview_src(info.thumb_url)
