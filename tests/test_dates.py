"""Unit tests for scinames.entities.dates."""

from __future__ import annotations

from datetime import date

import pytest

from scinames.entities.dates import SimplifiedDate


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1990", SimplifiedDate(year=1990)),
        ("1990-03", SimplifiedDate(year=1990, month=3)),
        ("1990-03-05", SimplifiedDate(year=1990, month=3, day=5)),
        ("Mar 1990", SimplifiedDate(year=1990, month=3)),
        ("March 5, 1990", SimplifiedDate(year=1990, month=3, day=5)),
    ],
)
def test_parse_accepts_common_formats(text: str, expected: SimplifiedDate) -> None:
    assert SimplifiedDate.parse(text) == expected


def test_parse_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        SimplifiedDate.parse("sometime in spring")
    with pytest.raises(ValueError):
        SimplifiedDate.parse("Smarch 1990")


def test_components_are_validated() -> None:
    with pytest.raises(ValueError):
        SimplifiedDate(year=1990, day=4)
    with pytest.raises(ValueError):
        SimplifiedDate(year=1990, month=13)
    with pytest.raises(ValueError):
        SimplifiedDate(year=1990, month=2, day=30)


def test_ordering_uses_first_day_covered() -> None:
    unset = SimplifiedDate()
    year = SimplifiedDate(year=1990)
    march = SimplifiedDate(year=1990, month=3)
    later = SimplifiedDate(year=1991)
    assert sorted([later, march, unset, year]) == [unset, year, march, later]
    assert SimplifiedDate(year=1990) < SimplifiedDate(year=1990, month=1, day=2)


def test_rendering() -> None:
    assert str(SimplifiedDate()) == "(none)"
    assert str(SimplifiedDate(year=1990)) == "1990"
    assert str(SimplifiedDate(year=1990, month=3)) == "March 1990"
    assert str(SimplifiedDate(year=1990, month=3, day=5)) == "March 5, 1990"
    assert SimplifiedDate(year=1990, month=3, day=5).as_yyyymmdd() == "1990-03-05"
    assert SimplifiedDate().year_as_string == "NA"


def test_attribute_round_trip_and_conversion() -> None:
    value = SimplifiedDate(year=2001, month=7)
    assert value.to_attributes() == {"year": "2001", "month": "7"}
    assert SimplifiedDate.from_attributes(value.to_attributes()) == value
    assert SimplifiedDate.from_attributes({}) == SimplifiedDate()
    assert value.as_date() == date(2001, 7, 1)
    assert SimplifiedDate().as_date() is None
    with pytest.raises(ValueError):
        SimplifiedDate.from_attributes({"year": "nineteen"})
