"""
Weekly and monthly trend buckets for time-series charts.

Series are sparse: a bucket with no records is not emitted, and charts
treat a missing bucket as zero.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from django.utils.text import slugify

from .records import LocationRef, Record

WEEK = 'week'
MONTH = 'month'
GRANULARITIES = (WEEK, MONTH)


def week_number(day: date) -> int:
    """Week of the year, counting from the week that holds January 1st (Sunday start)."""
    first_day = date(day.year, 1, 1)
    days_past = (day - first_day).days
    # date.weekday() is Monday=0; shift so Sunday=0
    first_weekday = (first_day.weekday() + 1) % 7
    return math.ceil((days_past + first_weekday + 1) / 7)


def week_key(day: date) -> str:
    return f"{day.year}-W{week_number(day):02d}"


def month_key(day: date) -> str:
    return f"{day.year}-{day.month:02d}"


def bucket_key(day: date, granularity: str) -> str:
    if granularity == WEEK:
        return week_key(day)
    if granularity == MONTH:
        return month_key(day)
    raise ValueError(f"Unknown granularity: {granularity}")


@dataclass
class TrendPoint:
    bucket_key: str
    series: Dict[str, object] = field(default_factory=dict)
    total: object = 0

    def as_dict(self, key_name: str = 'bucket') -> dict:
        data = {key_name: self.bucket_key}
        data.update(self.series)
        data['total'] = self.total
        return data


def series_for(location: Optional[LocationRef], series: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    The series key a record's location contributes to.

    Configured series (key -> location name) are matched first, exact
    names before partial ones; other named locations get a slug of their
    name. Unassigned records feed the total only.
    """
    if location is None:
        return None
    series = series or {}
    for key, name in series.items():
        if location.same_as(LocationRef(name=name)) or location.id == key:
            return key
    for key, name in series.items():
        if location.matches(name) or location.matches(key):
            return key
    return slugify(location.label) or None


def bucketize(
    records: Iterable[Record],
    granularity: str,
    series: Optional[Mapping[str, str]] = None,
    weight: Optional[Callable[[Record], object]] = None,
) -> List[TrendPoint]:
    """
    Group records into week or month buckets, sorted by bucket key.

    Each record adds `weight(record)` (default 1) to its location series
    and to the total.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity: {granularity}")

    buckets: Dict[str, TrendPoint] = {}
    for record in records:
        if record.timestamp is None:
            continue
        key = bucket_key(record.timestamp, granularity)
        value = 1 if weight is None else weight(record)

        point = buckets.get(key)
        if point is None:
            point = buckets[key] = TrendPoint(key, {name: 0 for name in (series or {})})

        point.total += value
        series_key = series_for(record.location, series)
        if series_key is not None:
            point.series[series_key] = point.series.get(series_key, 0) + value

    return [buckets[key] for key in sorted(buckets)]
