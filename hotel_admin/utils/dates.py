from datetime import date, timedelta
from typing import List


def date_range(start: date, end: date) -> List[date]:
    """Dates from start (inclusive) to end (exclusive), in order."""
    days = (end - start).days
    return [start + timedelta(days=i) for i in range(max(days, 0))]


def stay_dates(check_in: date, nights: int) -> List[date]:
    """The nights of a stay: [check_in, check_in + nights)."""
    return date_range(check_in, check_in + timedelta(days=nights))


def check_out_for(check_in: date, nights: int) -> date:
    return check_in + timedelta(days=nights)
