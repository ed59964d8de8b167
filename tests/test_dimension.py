from datetime import datetime

import pytest

from ravel.core.dimension import Dimension, DimensionType, classify, parse_time


@pytest.mark.parametrize(
    "label",
    [
        "2020-01-01",
        "01/02/2020",
        "2020-01-01T10:00:00Z",
        "Jan 2020",
        "2020-01-01 10:00:00.5",
    ],
)
def test_free_form_dates_classify_as_time(label):
    dim = classify(label)
    assert dim.type is DimensionType.time
    assert dim.units == ""


@pytest.mark.parametrize("label", ["AU", "M", "north", "sector 9"])
def test_labels_that_are_not_dates_stay_strings(label):
    assert classify(label).type is DimensionType.string


def test_numbers_and_quarters_win_over_free_form_dates():
    assert classify("2020").type is DimensionType.value
    assert classify("2020-Q3") == Dimension(DimensionType.time, "%Y-Q%Q")


def test_parse_time_units():
    assert parse_time("2021-Q2", "%Y-Q%Q") == datetime(2021, 4, 1)
    assert parse_time("03.04.2021", "%d.%m.%Y") == datetime(2021, 4, 3)
    assert parse_time("2020-01-01T10:00:00Z") == datetime(2020, 1, 1, 10)
    with pytest.raises(ValueError):
        parse_time("2021-Q5", "%Y-Q%Q")
    with pytest.raises(ValueError):
        parse_time("someday")
