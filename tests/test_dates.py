from datetime import date, datetime

import pytest

from timetrack.core.dates import parse_calendar_date, start_of_week, week_days, week_end


def test_parse_calendar_date_keeps_the_day():
    assert parse_calendar_date("2024-01-15") == date(2024, 1, 15)
    assert parse_calendar_date(date(2024, 12, 31)) == date(2024, 12, 31)


@pytest.mark.parametrize(
    "value",
    ["2024-01-15T00:00:00Z", "01/15/2024", "2024-1-5", "", None, 20240115, datetime(2024, 1, 15, 23)],
)
def test_parse_calendar_date_rejects_non_days(value):
    with pytest.raises(ValueError):
        parse_calendar_date(value)


def test_week_helpers():
    sunday = date(2024, 1, 14)

    assert start_of_week(date(2024, 1, 17)) == sunday
    assert start_of_week(sunday) == sunday
    assert week_end(sunday) == date(2024, 1, 20)
    assert week_days(sunday)[-1] == date(2024, 1, 20)
    assert len(week_days(sunday)) == 7
