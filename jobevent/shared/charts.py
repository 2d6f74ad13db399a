"""Dashboard chart helpers"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, Optional


def window_start(days: int = 7, now: Optional[datetime] = None) -> datetime:
    """Midnight (UTC) of the first day in a trailing window that includes today"""
    now = now or datetime.utcnow()
    first_day = now - timedelta(days=days - 1)
    return first_day.replace(hour=0, minute=0, second=0, microsecond=0)


def daily_counts(timestamps: Iterable[datetime], days: int = 7, now: Optional[datetime] = None) -> list[dict]:
    """
    One bucket per day for the trailing window, oldest first, missing days as 0.

    Returns:
        [{"name": "D/M", "fullDate": "YYYY-MM-DD", "value": n}, ...]
    """
    now = now or datetime.utcnow()
    counts = Counter(ts.strftime("%Y-%m-%d") for ts in timestamps if ts is not None)

    chart = []
    for offset in range(days - 1, -1, -1):
        day = now - timedelta(days=offset)
        key = day.strftime("%Y-%m-%d")
        chart.append({"name": f"{day.day}/{day.month}", "fullDate": key, "value": counts.get(key, 0)})
    return chart
