from __future__ import annotations

import re

_NUMBER_PATTERN = re.compile(r"([A-Z]{2,})-?(\d+)")
_CID_PATTERN = re.compile(r"/cid=([^/]+)/")


def parse_number(raw: str) -> str:
    """
    Canonicalize a catalog code into ``LETTERS-NNN``.

    ``abc00123`` and ``h_1234abc00123`` both become ``ABC-123``. Returns an
    empty string when no letter run followed by digits is present.
    """
    match = _NUMBER_PATTERN.search((raw or "").upper())
    if not match:
        return ""
    letters, digits = match.groups()
    return f"{letters}-{int(digits):03d}"


def parse_cid(link: str) -> str:
    """Return the lower-cased ``cid`` path segment of a detail link."""
    match = _CID_PATTERN.search(link or "")
    if not match:
        return ""
    return match.group(1).strip().lower()
