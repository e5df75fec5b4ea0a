from __future__ import annotations

import re
from datetime import date
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlparse

_DATE_PATTERN = re.compile(r"(\d{4})\s*(?:[\\/\-.]|年)\s*(\d{1,2})\s*(?:[\\/\-.]|月)\s*(\d{1,2})")
_CLOCK_PATTERN = re.compile(r"(\d+):(\d{1,2}):(\d{1,2})")
_MINUTES_PATTERN = re.compile(r"(\d+)\s*分")
_INTEGER_PATTERN = re.compile(r"\d+")
_NUMBER_PATTERN = re.compile(r"\d+(?:\.\d+)?")


def to_half_width(s: str) -> str:
    """Convert full-width digits and punctuation to ASCII."""
    out = []
    for c in s:
        code = ord(c)
        if 0xFF01 <= code <= 0xFF5E:
            out.append(chr(code - 0xFEE0))
        elif code == 0x3000:
            out.append(" ")
        else:
            out.append(c)
    return "".join(out)


def trim_field(text: str) -> str:
    """Strip whitespace and the dash padding used for empty table cells."""
    return (text or "").strip().strip("-").strip()


def parse_date(text: str) -> Optional[date]:
    m = _DATE_PATTERN.search(to_half_width(text or ""))
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def parse_duration(text: str) -> int:
    """Return a running time in whole minutes, 0 when unknown."""
    s = to_half_width(text or "")
    m = _CLOCK_PATTERN.search(s)
    if m:
        return int(m.group(1)) * 60 + int(m.group(2))
    m = _MINUTES_PATTERN.search(s)
    if m:
        return int(m.group(1))
    m = _INTEGER_PATTERN.search(s)
    return int(m.group(0)) if m else 0


def parse_score(text: str) -> float:
    m = _NUMBER_PATTERN.search(to_half_width(text or ""))
    if not m:
        return 0.0
    return float(m.group(0))


def parse_score_from_url(src: str) -> float:
    """
    Read the score encoded in a rating image file name.

    ``.../45.gif`` gives 45.0; ``.../4_5.gif`` uses the underscore as the
    decimal point and gives 4.5.
    """
    try:
        stem = PurePosixPath(urlparse(src or "").path).stem
    except ValueError:
        return 0.0
    token = stem.replace("_", ".")
    if not re.fullmatch(r"\d+(?:\.\d+)?", token):
        return 0.0
    return float(token)
