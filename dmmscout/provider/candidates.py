"""Candidate detail-page URLs probed for a bare catalog id."""

from __future__ import annotations

from dataclasses import dataclass

from dmmscout import logger
from dmmscout.provider.number import parse_number


@dataclass(frozen=True)
class CandidateTemplate:
    name: str
    section: str

    def build(self, base_url: str, cid: str) -> str:
        return f"{base_url.rstrip('/')}/{self.section}/-/detail/=/cid={cid}/"


# Probe order follows how often each catalog section hosts a given cid.
CANDIDATE_URL_TEMPLATES: tuple[CandidateTemplate, ...] = (
    CandidateTemplate("digital_video_a", "digital/videoa"),
    CandidateTemplate("mono_dvd", "mono/dvd"),
    CandidateTemplate("digital_video_c", "digital/videoc"),
    CandidateTemplate("digital_anime", "digital/anime"),
    CandidateTemplate("mono_anime", "mono/anime"),
    CandidateTemplate("digital_nikkatsu", "digital/nikkatsu"),
)


def candidate_urls(movie_id: str, base_url: str) -> list[str]:
    """Return every known detail URL for ``movie_id`` in probe order."""
    cid = (movie_id or "").strip()
    if not cid:
        raise ValueError("movie id must not be empty")
    if not parse_number(cid):
        logger.debug(f"'{cid}' does not look like a catalog code; probing anyway")
    return [template.build(base_url, cid) for template in CANDIDATE_URL_TEMPLATES]
