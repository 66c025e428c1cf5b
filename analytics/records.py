"""
Normalization of raw practice-management records.

Greyfinch (and the hand-built fixtures upstream of it) deliver the same
logical record in several shapes: lists, keyed objects, {count, data}
envelopes, camelCase or snake_case fields, a location given as an id, a
name or a nested object. Everything downstream works on the canonical
Record produced here, so every "try field A, else field B" chain lives in
this module and nowhere else.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Mapping, Optional, Tuple

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

logger = logging.getLogger(__name__)

PATIENT = 'patient'
LEAD = 'lead'
APPOINTMENT = 'appointment'
BOOKING = 'booking'
REVENUE = 'revenue'
PRODUCTION = 'production'
COST = 'cost'

RECORD_KINDS = (PATIENT, LEAD, APPOINTMENT, BOOKING, REVENUE, PRODUCTION, COST)

# Candidate fields, most specific first
TIMESTAMP_FIELDS = {
    APPOINTMENT: ('scheduledDate', 'startTime', 'date', 'createdAt'),
    PATIENT: ('createdAt', 'firstVisitDate'),
    LEAD: ('createdAt', 'date'),
    BOOKING: ('startTime', 'localStartDate', 'localStartTime', 'createdAt'),
    REVENUE: ('date', 'paidAt', 'createdAt'),
    PRODUCTION: ('date', 'createdAt'),
    COST: ('period', 'date', 'periodStart'),
}

LOCATION_FIELDS = {
    APPOINTMENT: ('location', 'locationId'),
    PATIENT: ('primaryLocation', 'location', 'primaryLocationId', 'locationId'),
    LEAD: ('location', 'locationId'),
    BOOKING: ('location', 'locationId', 'appointment.location', 'appointment.locationId'),
    REVENUE: ('location', 'locationId'),
    PRODUCTION: ('location', 'locationId'),
    COST: ('location', 'locationId'),
}

APPOINTMENT_PRODUCTION_FIELDS = ('production', 'productionAmount', 'value', 'amount')
APPOINTMENT_REVENUE_FIELDS = ('revenue', 'fee', 'amount', 'value')

ENTRY_AMOUNT_FIELDS = {
    REVENUE: ('amount', 'value', 'total'),
    PRODUCTION: ('productionAmount', 'amount', 'value', 'total'),
    COST: ('cost', 'amount', 'value', 'total'),
}

SOURCE_FIELDS = ('source', 'referralSource', 'leadSource')
STATUS_FIELDS = ('status', 'appointmentStatus')

# Keys under which the upstream fetch delivers each collection
COLLECTION_KEYS = {
    PATIENT: ('patients',),
    LEAD: ('leads',),
    APPOINTMENT: ('appointments',),
    BOOKING: ('appointmentBookings', 'bookings'),
    REVENUE: ('revenue',),
    PRODUCTION: ('production',),
    COST: ('acquisitionCosts', 'costs'),
}

_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def _snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub('_', name).lower()


def _variants(path: str) -> Tuple[str, ...]:
    snake = '.'.join(_snake(part) for part in path.split('.'))
    return (path,) if snake == path else (path, snake)


def _lookup(raw, path: str):
    value = raw
    for part in path.split('.'):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def first_present(raw: Mapping, names: Iterable[str], parse=None):
    """
    Return the first present, non-empty value among candidate field names.

    With `parse`, values that parse to None are skipped and the next
    candidate is tried.
    """
    for name in names:
        for variant in _variants(name):
            value = _lookup(raw, variant)
            if value is None or value == '':
                continue
            if parse is not None:
                value = parse(value)
                if value is None:
                    continue
            return value
    return None


def _local_date(value: datetime) -> date:
    if timezone.is_aware(value):
        return timezone.localtime(value).date()
    return value.date()


def parse_timestamp(value) -> Optional[date]:
    """
    Parse a timestamp to a calendar date.

    Accepts date/datetime objects and ISO 8601 strings. Aware datetimes
    fall on their calendar day in the practice time zone (TIME_ZONE).
    Anything unparseable is treated as absent.
    """
    if isinstance(value, datetime):
        return _local_date(value)
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    value = value.strip()
    try:
        parsed = parse_datetime(value)
        if parsed is not None:
            return _local_date(parsed)
        return parse_date(value)
    except ValueError:
        # Well formatted but not a valid date, e.g. 2024-02-30
        return None


def parse_amount(value) -> Optional[Decimal]:
    """Parse a money amount. Negative, non-finite and non-numeric values are absent."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace('$', '').replace(',', '')
        if not value:
            return None
    elif not isinstance(value, (int, float, Decimal)):
        return None

    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def _text(value) -> str:
    if isinstance(value, Mapping):
        value = value.get('name') or value.get('type') or ''
    if value is None:
        return ''
    return str(value).strip()


@dataclass(frozen=True)
class LocationRef:
    """A location as referenced by a record or listed in the catalog."""
    id: Optional[str] = None
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or self.id or ''

    def matches(self, location_id) -> bool:
        """
        Match a requested location identifier.

        True on id equality, case-insensitive name equality, or
        case-insensitive containment between the requested identifier and
        this location's name (in either direction).
        """
        if location_id is None:
            return False
        wanted = str(location_id).strip()
        if not wanted:
            return False
        if self.id is not None and self.id == wanted:
            return True
        if not self.name:
            return False

        name = self.name.lower()
        wanted = wanted.lower()
        return name == wanted or wanted in name or name in wanted

    def same_as(self, other: Optional['LocationRef']) -> bool:
        """
        Exact identity with another resolved location.

        Ids decide when both sides have one; otherwise names must be equal
        (case-insensitive). No containment.
        """
        if other is None:
            return False
        if self.id is not None and other.id is not None:
            return self.id == other.id
        if not self.name or not other.name:
            return False
        return self.name.lower() == other.name.lower()


def parse_location(value) -> Optional[LocationRef]:
    """Resolve an id, a name, or a nested {id, name} object to a LocationRef."""
    if isinstance(value, Mapping):
        location_id = value.get('id', value.get('locationId', value.get('location_id')))
        name = value.get('name')
        if location_id is None and not name:
            return None
        return LocationRef(
            id=str(location_id) if location_id is not None else None,
            name=str(name) if name else None,
        )
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return LocationRef(id=str(value))
    if isinstance(value, str) and value.strip():
        value = value.strip()
        return LocationRef(id=value, name=value)
    return None


class LocationCatalog:
    """
    The set of known practice locations.

    Records that only carry a location id are resolved against the catalog
    so that name-based filters still apply to them.
    """

    def __init__(self, locations: Iterable[LocationRef] = ()):
        self.locations: List[LocationRef] = []
        for location in locations:
            if location is not None and location not in self.locations:
                self.locations.append(location)

    @classmethod
    def from_raw(cls, raw) -> 'LocationCatalog':
        return cls(parse_location(item) for item in collection_items(raw))

    def __iter__(self):
        return iter(self.locations)

    def __len__(self):
        return len(self.locations)

    def find(self, identifier) -> Optional[LocationRef]:
        """Find a location by id or name, preferring exact matches over containment."""
        if identifier is None or not str(identifier).strip():
            return None
        wanted = str(identifier).strip()
        for location in self.locations:
            if location.id == wanted:
                return location
        for location in self.locations:
            if location.name and location.name.lower() == wanted.lower():
                return location
        for location in self.locations:
            if location.matches(wanted):
                return location
        return None

    def resolve(self, ref: Optional[LocationRef]) -> Optional[LocationRef]:
        if ref is None:
            return None
        for location in self.locations:
            if ref.id is not None and location.id == ref.id:
                return location
        if ref.name:
            for location in self.locations:
                if location.name and location.name.lower() == ref.name.lower():
                    return location
        return ref


@dataclass(frozen=True, eq=False)
class Record:
    """
    Canonical form of one raw record.

    Amount fields hold the first parseable candidate value, or None when
    the record had none. `raw` is the original mapping, never modified.
    """
    kind: str
    raw: Mapping = field(repr=False)
    timestamp: Optional[date] = None
    location: Optional[LocationRef] = None
    status: str = ''
    source: str = ''
    production: Optional[Decimal] = None
    revenue: Optional[Decimal] = None
    amount: Optional[Decimal] = None


def normalize_record(kind: str, raw: Mapping, catalog: Optional[LocationCatalog] = None) -> Record:
    location = first_present(raw, LOCATION_FIELDS[kind], parse_location)
    if catalog is not None:
        location = catalog.resolve(location)

    production = revenue = amount = None
    if kind == APPOINTMENT:
        production = first_present(raw, APPOINTMENT_PRODUCTION_FIELDS, parse_amount)
        revenue = first_present(raw, APPOINTMENT_REVENUE_FIELDS, parse_amount)
    elif kind in ENTRY_AMOUNT_FIELDS:
        amount = first_present(raw, ENTRY_AMOUNT_FIELDS[kind], parse_amount)

    return Record(
        kind=kind,
        raw=raw,
        timestamp=first_present(raw, TIMESTAMP_FIELDS[kind], parse_timestamp),
        location=location,
        status=_text(first_present(raw, STATUS_FIELDS)).lower(),
        source=_text(first_present(raw, SOURCE_FIELDS)),
        production=production,
        revenue=revenue,
        amount=amount,
    )


def collection_items(value) -> list:
    """
    Flatten a raw collection to a list of mappings.

    Accepts a list, a {count, data} envelope, or a keyed object whose
    values are the records. Count-only envelopes carry no records.
    """
    if value is None:
        return []
    if isinstance(value, Mapping):
        if 'data' in value:
            return collection_items(value['data'])
        if 'count' in value and not any(isinstance(v, Mapping) for v in value.values()):
            return []
        value = list(value.values())
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, Mapping)]
    return []


def normalize_collection(kind: str, raw, catalog: Optional[LocationCatalog] = None) -> Tuple[Record, ...]:
    return tuple(normalize_record(kind, item, catalog) for item in collection_items(raw))


def _collect_summaries(raw: Mapping) -> dict:
    summaries = {}
    sources = [raw]
    if isinstance(raw.get('summary'), Mapping):
        sources.append(raw['summary'])

    for source in sources:
        for key, value in source.items():
            if not isinstance(value, Mapping):
                continue
            if key in ('locationCounts', 'location_counts'):
                for name, counts in value.items():
                    if isinstance(counts, Mapping):
                        summaries[str(name)] = counts
            elif key.endswith('Counts') and len(key) > len('Counts'):
                summaries[key[:-len('Counts')]] = value
            elif key.endswith('_counts') and len(key) > len('_counts'):
                summaries[key[:-len('_counts')]] = value
    return summaries


@dataclass(frozen=True)
class PracticeData:
    """All raw practice data for one aggregation run, normalized."""
    catalog: LocationCatalog = field(default_factory=LocationCatalog)
    patients: Tuple[Record, ...] = ()
    leads: Tuple[Record, ...] = ()
    appointments: Tuple[Record, ...] = ()
    bookings: Tuple[Record, ...] = ()
    revenue: Tuple[Record, ...] = ()
    production: Tuple[Record, ...] = ()
    costs: Tuple[Record, ...] = ()
    summaries: Mapping[str, Mapping] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Optional[Mapping], cost_entries: Iterable[Mapping] = ()) -> 'PracticeData':
        """
        Normalize the payload returned by the practice-management fetch.

        `cost_entries` are externally tracked acquisition costs; they are
        appended to any costs already present in the payload.
        """
        raw = raw or {}
        if not isinstance(raw, Mapping):
            raw = {}
        if isinstance(raw.get('data'), Mapping) and 'locations' not in raw:
            raw = raw['data']

        catalog = LocationCatalog.from_raw(raw.get('locations'))

        def collection(kind):
            for key in COLLECTION_KEYS[kind]:
                if raw.get(key) is not None:
                    return normalize_collection(kind, raw[key], catalog)
            return ()

        records = {kind: collection(kind) for kind in RECORD_KINDS}
        records[COST] = records[COST] + normalize_collection(COST, list(cost_entries), catalog)

        if not catalog:
            # No location listing upstream: derive one from what the records reference
            catalog = LocationCatalog(
                record.location
                for kind_records in records.values()
                for record in kind_records
                if record.location is not None and record.location.name
            )
            logger.debug(f"Derived location catalog with {len(catalog)} entries")

        return cls(
            catalog=catalog,
            patients=records[PATIENT],
            leads=records[LEAD],
            appointments=records[APPOINTMENT],
            bookings=records[BOOKING],
            revenue=records[REVENUE],
            production=records[PRODUCTION],
            costs=records[COST],
            summaries=_collect_summaries(raw),
        )

    def summary_for(self, location: LocationRef) -> Optional[Mapping]:
        """
        Pre-computed counts for a location, when the upstream fetch supplied them.

        A key naming the location exactly wins over a partial one; a key
        that exactly names a different catalog location is never used.
        """
        for key, counts in self.summaries.items():
            if location.same_as(self.catalog.find(key)):
                return counts
        for key, counts in self.summaries.items():
            if location.matches(key) and not self._names_other_location(key, location):
                return counts
        return None

    def _names_other_location(self, key: str, location: LocationRef) -> bool:
        return any(
            not other.same_as(location) and (other.id == key or (other.name or '').lower() == key.lower())
            for other in self.catalog
        )
