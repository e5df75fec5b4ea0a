from __future__ import annotations

from datetime import date

import pytest

from dmmscout.provider.parsers import (
    parse_date,
    parse_duration,
    parse_score,
    parse_score_from_url,
    to_half_width,
    trim_field,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2023/05/12", date(2023, 5, 12)),
        ("2021-11-03", date(2021, 11, 3)),
        ("2020年1月2日", date(2020, 1, 2)),
        ("２０２２／０３／０４", date(2022, 3, 4)),
        ("----", None),
        ("2023/13/40", None),
        ("", None),
    ],
)
def test_parse_date(text: str, expected: date | None) -> None:
    assert parse_date(text) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("120分", 120),
        ("01:30:00", 90),
        ("2:05:59", 125),
        ("収録時間 95", 95),
        ("----", 0),
    ],
)
def test_parse_duration(text: str, expected: int) -> None:
    assert parse_duration(text) == expected


def test_parse_score() -> None:
    assert parse_score("4.5") == 4.5
    assert parse_score("評価 3") == 3.0
    assert parse_score("") == 0.0


@pytest.mark.parametrize(
    ("src", "expected"),
    [
        ("https://p.dmm.co.jp/p/ms/review/45.gif", 45.0),
        ("https://p.dmm.co.jp/p/ms/review/4_5.gif", 4.5),
        ("https://p.dmm.co.jp/p/ms/review/nan.gif", 0.0),
        ("https://p.dmm.co.jp/p/ms/review/star.gif", 0.0),
        ("", 0.0),
    ],
)
def test_parse_score_from_url(src: str, expected: float) -> None:
    assert parse_score_from_url(src) == expected


def test_trim_field_drops_dash_padding() -> None:
    assert trim_field("  ----  ") == ""
    assert trim_field("\n ABC Studio -") == "ABC Studio"


def test_to_half_width() -> None:
    assert to_half_width("ＡＢＣ１２３　") == "ABC123 "
