"""Shared data structures for the DMM provider."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional


def ordered_unique(items: Iterable[str]) -> List[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    return list(dict.fromkeys(item for item in items if item))


@dataclass
class MovieInfo:
    """Metadata record resolved from one detail page."""

    homepage: str
    id: str
    number: str = ""
    title: str = ""
    summary: str = ""
    series: str = ""
    maker: str = ""
    publisher: str = ""
    director: str = ""
    release_date: Optional[date] = None
    duration: int = 0
    score: float = 0.0
    thumb_url: str = ""
    cover_url: str = ""
    preview_video_url: str = ""
    actors: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    preview_images: List[str] = field(default_factory=list)

    def is_valid(self) -> bool:
        return bool(self.id) and bool(self.title or self.number)

    def set_actors(self, names: Iterable[str]) -> None:
        self.actors = ordered_unique(names)

    def set_tags(self, labels: Iterable[str]) -> None:
        self.tags = ordered_unique(labels)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["release_date"] = self.release_date.isoformat() if self.release_date else None
        return data


@dataclass(frozen=True)
class SearchResult:
    """Lightweight listing entry from a keyword search."""

    id: str
    number: str
    title: str
    homepage: str
    thumb_url: str
    cover_url: str
    score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
