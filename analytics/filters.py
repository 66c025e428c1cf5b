"""
Period definitions and the record filter.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Iterable, List, Mapping, Optional

from .records import LocationCatalog, LocationRef, Record, normalize_record


@dataclass(frozen=True)
class PeriodDefinition:
    """
    A date range and the locations it covers.

    Bounds are inclusive. An empty `location_ids` means all locations;
    a None bound leaves that side of the range open.
    """
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    location_ids: FrozenSet[str] = field(default_factory=frozenset)
    name: str = ''

    def __post_init__(self):
        # Accept any iterable of ids, but store a frozenset of strings
        object.__setattr__(
            self, 'location_ids',
            frozenset(str(location_id) for location_id in self.location_ids if location_id not in (None, '')),
        )

    @property
    def is_valid(self) -> bool:
        if self.start_date is None or self.end_date is None:
            return True
        return self.start_date <= self.end_date

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        if self.start_date is None or self.end_date is None:
            return 'Current Period'
        return f"{self.start_date.isoformat()} to {self.end_date.isoformat()}"

    def scoped_to(self, *location_ids) -> 'PeriodDefinition':
        """The same date range restricted to the given locations."""
        return PeriodDefinition(self.start_date, self.end_date, frozenset(location_ids), self.name)

    def as_dict(self) -> dict:
        return {
            'name': self.label,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'location_ids': sorted(self.location_ids),
        }


def in_date_range(record: Record, period: PeriodDefinition) -> bool:
    if not period.is_valid:
        return False
    if period.start_date is None and period.end_date is None:
        return True
    if record.timestamp is None:
        return False
    if period.start_date is not None and record.timestamp < period.start_date:
        return False
    if period.end_date is not None and record.timestamp > period.end_date:
        return False
    return True


def at_location(record: Record, location_ids: Iterable[str]) -> bool:
    location_ids = list(location_ids)
    if not location_ids:
        return True
    if record.location is None:
        return False
    return any(record.location.matches(location_id) for location_id in location_ids)


def filter_records(records: Iterable[Record], period: PeriodDefinition) -> List[Record]:
    """Records inside the period's date range and locations, in input order."""
    return [
        record for record in records
        if in_date_range(record, period) and at_location(record, period.location_ids)
    ]


def filter_location_records(
    records: Iterable[Record],
    period: PeriodDefinition,
    location: Optional[LocationRef],
) -> List[Record]:
    """
    Records inside the period's date range that belong to one resolved
    catalog location.

    Unlike a user-requested location id, a resolved location only matches
    records tagged with exactly that location, so "Phoenix" never picks up
    "Phoenix-Ahwatukee" records. `location=None` selects unassigned records.
    """
    if location is None:
        return [
            record for record in records
            if record.location is None and in_date_range(record, period)
        ]
    return [
        record for record in records
        if location.same_as(record.location) and in_date_range(record, period)
    ]


def filter_raw_records(
    kind: str,
    raw_records: Iterable[Mapping],
    period: PeriodDefinition,
    catalog: Optional[LocationCatalog] = None,
) -> List[Mapping]:
    """Filter raw mappings of one kind, returning the original objects."""
    records = [
        normalize_record(kind, raw, catalog)
        for raw in raw_records
        if isinstance(raw, Mapping)
    ]
    return [record.raw for record in filter_records(records, period)]
