"""
Time-of-day Recommendations.

Beverages suggested when the customer's answer does not match anything. The
table is keyed by the moment of the day; the clock is injectable so tests and
callers can pin the moment.
"""

from datetime import datetime
from enum import Enum
from typing import Callable


class TimeOfDay(str, Enum):
    """Moment of the day used to pick recommendations."""
    MORNING = "manana"  # 06:00 - 11:59
    AFTERNOON = "tarde"  # 12:00 - 18:59
    NIGHT = "noche"  # 19:00 - 05:59


RECOMMENDATIONS: dict[TimeOfDay, list[str]] = {
    TimeOfDay.MORNING: [
        "Caffe Latte",
        "Cappuccino",
        "Americano",
        "Café Americano",
        "Espresso",
    ],
    TimeOfDay.AFTERNOON: [
        "Frappuccino de Caramelo",
        "Iced Latte",
        "Caffe Latte",
        "Iced Americano",
        "Matcha Frappuccino",
    ],
    TimeOfDay.NIGHT: [
        "Caffe Mocha",
        "Hot Chocolate",
        "Chai Tea Latte",
        "Vanilla Steamer",
        "Caramelo Macchiato",
    ],
}


def time_of_day(now: datetime | None = None) -> TimeOfDay:
    """Classify a moment: morning from 6 to 12, afternoon until 19, night otherwise."""
    hour = (now or datetime.now()).hour
    if 6 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 19:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.NIGHT


class Recommender:
    """
    Looks up the recommended beverage names for the current moment.

    Args:
        clock: Callable returning the current datetime (defaults to datetime.now)
        table: Recommendation table (defaults to RECOMMENDATIONS)
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        table: dict[TimeOfDay, list[str]] | None = None,
    ):
        self._clock = clock or datetime.now
        self._table = table or RECOMMENDATIONS

    def time_of_day(self) -> TimeOfDay:
        return time_of_day(self._clock())

    def recommended_names(self) -> list[str]:
        moment = self.time_of_day()
        return list(self._table.get(moment, self._table.get(TimeOfDay.AFTERNOON, [])))
