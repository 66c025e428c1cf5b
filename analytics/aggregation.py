"""
Per-location and per-period aggregation.

aggregate_location() turns normalized practice data into one
LocationMetrics; aggregate_period() folds several of those into the
PeriodMetrics consumed by charts, reports and the insight generator.
"""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from django.utils.text import slugify

from . import calculators
from .calculators import ZERO
from .config import AggregationConfig
from .filters import PeriodDefinition, filter_location_records
from .records import LocationRef, PracticeData, Record, parse_amount
from .trends import MONTH, WEEK, TrendPoint, bucketize

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


@dataclass(frozen=True)
class RecordSet:
    """The filtered records behind one LocationMetrics."""
    patients: Tuple[Record, ...] = ()
    leads: Tuple[Record, ...] = ()
    appointments: Tuple[Record, ...] = ()
    bookings: Tuple[Record, ...] = ()
    revenue: Tuple[Record, ...] = ()
    production: Tuple[Record, ...] = ()
    costs: Tuple[Record, ...] = ()


@dataclass(frozen=True)
class LocationMetrics:
    """
    Counts and financials for one location over one period.

    net_production is derived in the constructor so it always equals
    revenue - acquisition_costs.
    """
    name: str
    id: str = ''
    patients: int = 0
    appointments: int = 0
    leads: int = 0
    bookings: int = 0
    production: Decimal = ZERO
    revenue: Decimal = ZERO
    acquisition_costs: Decimal = ZERO
    net_production: Decimal = field(init=False)
    records: RecordSet = field(default_factory=RecordSet, repr=False, compare=False)
    from_summary: bool = field(default=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self, 'net_production',
            calculators.net_production(self.revenue, self.acquisition_costs),
        )

    @classmethod
    def empty(cls, name: str, location_id: str = '') -> 'LocationMetrics':
        return cls(name=name, id=location_id)

    @property
    def conversion_rate(self) -> float:
        return calculators.conversion_rate(self.patients, self.leads)

    def as_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'patients': self.patients,
            'appointments': self.appointments,
            'leads': self.leads,
            'bookings': self.bookings,
            'production': float(self.production),
            'revenue': float(self.revenue),
            'net_production': float(self.net_production),
            'acquisition_costs': float(self.acquisition_costs),
            'conversion_rate': round(self.conversion_rate, 1),
        }


@dataclass(frozen=True)
class PeriodMetrics:
    period: PeriodDefinition
    locations: Tuple[LocationMetrics, ...] = ()
    patients: int = 0
    appointments: int = 0
    leads: int = 0
    bookings: int = 0
    production: Decimal = ZERO
    revenue: Decimal = ZERO
    acquisition_costs: Decimal = ZERO
    net_production: Decimal = ZERO
    avg_net_production: Decimal = ZERO
    avg_acquisition_cost: Decimal = ZERO
    no_show_rate: float = 0.0
    referral_sources: Mapping[str, int] = field(default_factory=lambda: calculators.referral_sources(()))
    conversion_rate: float = 0.0
    conversion_rates: Mapping[str, float] = field(default_factory=lambda: calculators.conversion_rates(0, 0))
    profit_margin: float = 0.0
    roi: Optional[float] = None
    weekly: Tuple[TrendPoint, ...] = ()
    monthly: Tuple[TrendPoint, ...] = ()

    @property
    def location_count(self) -> int:
        return len(self.locations)

    def as_dict(self) -> dict:
        return {
            'period': self.period.as_dict(),
            'patients': self.patients,
            'appointments': self.appointments,
            'leads': self.leads,
            'bookings': self.bookings,
            'locations': self.location_count,
            'production': float(self.production),
            'revenue': float(self.revenue),
            'acquisition_costs': float(self.acquisition_costs),
            'net_production': float(self.net_production),
            'avg_net_production': float(self.avg_net_production),
            'avg_acquisition_cost': float(self.avg_acquisition_cost),
            'no_show_rate': round(self.no_show_rate, 1),
            'referral_sources': dict(self.referral_sources),
            'conversion_rate': round(self.conversion_rate, 1),
            'conversion_rates': {k: round(v, 1) for k, v in self.conversion_rates.items()},
            'profit_margin': round(self.profit_margin, 1),
            'roi': round(self.roi, 1) if self.roi is not None else None,
            'trends': {
                'weekly': [point.as_dict('week') for point in self.weekly],
                'monthly': [point.as_dict('month') for point in self.monthly],
            },
            'location_data': [location.as_dict() for location in self.locations],
        }


def _count(value) -> int:
    """Read a pre-computed count, which may be a number, a list or a {count} envelope."""
    if isinstance(value, Mapping):
        value = value.get('count')
    if isinstance(value, (list, tuple)):
        return len(value)
    if isinstance(value, bool) or value is None:
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _from_summary(location: LocationRef, counts: Mapping, costs: Sequence[Record], config: AggregationConfig):
    leads = _count(counts.get('leads'))
    return LocationMetrics(
        name=location.label,
        id=location.id or '',
        patients=_count(counts.get('patients')),
        appointments=_count(counts.get('appointments')),
        leads=leads,
        bookings=_count(counts.get('bookings')),
        production=parse_amount(counts.get('production')) or ZERO,
        revenue=parse_amount(counts.get('revenue')) or ZERO,
        acquisition_costs=calculators.acquisition_cost(leads, costs, config.cost_per_lead),
        records=RecordSet(costs=tuple(costs)),
        from_summary=True,
    )


def aggregate_location(
    data: PracticeData,
    location_name,
    period: Optional[PeriodDefinition] = None,
    config: Optional[AggregationConfig] = None,
) -> LocationMetrics:
    """
    Metrics for one location over a period.

    `location_name` is a requested id or name, resolved against the
    catalog, or an already resolved LocationRef.

    Pre-computed upstream counts for the location are used when present;
    otherwise everything is derived from the raw records. An unknown
    location yields all-zero metrics under the requested name.
    """
    config = config or AggregationConfig()
    period = period or PeriodDefinition()

    if isinstance(location_name, LocationRef):
        location = location_name
    else:
        location = data.catalog.find(location_name)
    if location is None:
        logger.debug(f"Location {location_name} not found in data")
        return LocationMetrics.empty(str(location_name))

    costs = filter_location_records(data.costs, period, location)

    summary = data.summary_for(location) if period.is_valid else None
    if summary is not None:
        logger.debug(f"Using pre-computed counts for {location.label}")
        return _from_summary(location, summary, costs, config)

    records = RecordSet(
        patients=tuple(filter_location_records(data.patients, period, location)),
        leads=tuple(filter_location_records(data.leads, period, location)),
        appointments=tuple(filter_location_records(data.appointments, period, location)),
        bookings=tuple(filter_location_records(data.bookings, period, location)),
        revenue=tuple(filter_location_records(data.revenue, period, location)),
        production=tuple(filter_location_records(data.production, period, location)),
        costs=tuple(costs),
    )

    return LocationMetrics(
        name=location.label,
        id=location.id or '',
        patients=len(records.patients),
        appointments=len(records.appointments),
        leads=len(records.leads),
        bookings=len(records.bookings),
        production=calculators.production_total(
            records.appointments, records.production, config.appointment_value
        ),
        revenue=calculators.revenue_total(
            records.appointments, records.revenue, config.appointment_value
        ),
        acquisition_costs=calculators.acquisition_cost(
            len(records.leads), records.costs, config.cost_per_lead
        ),
        records=records,
    )


def aggregate_period(
    location_metrics: Iterable[LocationMetrics],
    period: Optional[PeriodDefinition] = None,
    config: Optional[AggregationConfig] = None,
    series: Optional[Mapping[str, str]] = None,
) -> PeriodMetrics:
    """
    Fold per-location metrics into one PeriodMetrics.

    Totals are sums. Averages divide summed totals by summed
    appointments or leads, and the no-show rate and trends are
    recomputed over the union of appointment records rather than
    averaged per location.
    """
    config = config or AggregationConfig()
    period = period or PeriodDefinition()
    locations = tuple(location_metrics or ())

    if series is None:
        series = {slugify(location.name) or location.name: location.name for location in locations}

    appointments = [record for location in locations for record in location.records.appointments]
    referral_records = [
        record
        for location in locations
        for record in location.records.leads + location.records.patients
    ]

    patients = sum(location.patients for location in locations)
    leads = sum(location.leads for location in locations)
    appointment_count = sum(location.appointments for location in locations)
    revenue = sum((location.revenue for location in locations), ZERO)
    acquisition_costs = sum((location.acquisition_costs for location in locations), ZERO)
    net = calculators.net_production(revenue, acquisition_costs)

    return PeriodMetrics(
        period=period,
        locations=locations,
        patients=patients,
        appointments=appointment_count,
        leads=leads,
        bookings=sum(location.bookings for location in locations),
        production=sum((location.production for location in locations), ZERO),
        revenue=revenue,
        acquisition_costs=acquisition_costs,
        net_production=net,
        avg_net_production=calculators.safe_average(net, appointment_count),
        avg_acquisition_cost=calculators.safe_average(acquisition_costs, leads),
        no_show_rate=calculators.no_show_rate(appointments),
        referral_sources=calculators.referral_sources(referral_records, config.referral_rules),
        conversion_rate=calculators.conversion_rate(patients, leads),
        conversion_rates=calculators.conversion_rates(patients, leads),
        profit_margin=calculators.percentage(net, revenue) if revenue > 0 else 0.0,
        roi=calculators.percentage(net, acquisition_costs) if acquisition_costs > 0 else None,
        weekly=tuple(bucketize(appointments, WEEK, series)),
        monthly=tuple(bucketize(appointments, MONTH, series)),
    )


def apportion_shared_costs(
    location_metrics: Iterable[LocationMetrics],
    shared_costs: Sequence[Record],
) -> List[LocationMetrics]:
    """
    Spread cost entries that carry no location over the given locations.

    Each location's acquisition cost becomes its own cost entries plus a
    share of the shared total, proportional to its leads (even split when
    no location has leads). Real spend replaces the per-lead estimate. The
    last location takes the rounding remainder so the shares add up to the
    shared total exactly.
    """
    locations = list(location_metrics)
    amounts = [entry.amount for entry in shared_costs if entry.amount is not None]
    if not locations or not amounts:
        return locations

    shared_total = sum(amounts, ZERO)
    leads = sum(location.leads for location in locations)
    remaining = shared_total
    result = []
    for index, location in enumerate(locations):
        if index == len(locations) - 1:
            share = remaining
        elif leads:
            share = (shared_total * location.leads / leads).quantize(CENT)
        else:
            share = (shared_total / len(locations)).quantize(CENT)
        remaining -= share

        own = calculators.acquisition_cost(0, location.records.costs)
        result.append(replace(location, acquisition_costs=own + share))

    logger.debug(f"Apportioned {shared_total} of shared costs over {len(locations)} locations")
    return result


def _catalog_metrics(
    data: PracticeData,
    period: PeriodDefinition,
    config: AggregationConfig,
) -> List[LocationMetrics]:
    """Metrics for every catalog location, in catalog order, with shared costs apportioned."""
    metrics = [aggregate_location(data, location, period, config) for location in data.catalog]
    return apportion_shared_costs(metrics, filter_location_records(data.costs, period, None))


def _metrics_for(data: PracticeData, catalog_metrics: List[LocationMetrics], identifier) -> LocationMetrics:
    location = data.catalog.find(identifier)
    if location is None:
        logger.debug(f"Location {identifier} not found in data")
        return LocationMetrics.empty(str(identifier))
    return catalog_metrics[data.catalog.locations.index(location)]


def compute_period_metrics(
    data: PracticeData,
    period: PeriodDefinition,
    config: Optional[AggregationConfig] = None,
) -> PeriodMetrics:
    """Metrics for every location the period selects (all catalog locations if none)."""
    config = config or AggregationConfig()
    catalog_metrics = _catalog_metrics(data, period, config)
    if not period.location_ids:
        return aggregate_period(catalog_metrics, period, config)

    selected = []
    for location_id in sorted(period.location_ids):
        metrics = _metrics_for(data, catalog_metrics, location_id)
        if not any(metrics is chosen for chosen in selected):
            selected.append(metrics)
    return aggregate_period(selected, period, config)


def compare_periods(
    data: PracticeData,
    periods: Iterable[PeriodDefinition],
    config: Optional[AggregationConfig] = None,
) -> List[PeriodMetrics]:
    config = config or AggregationConfig()
    return [compute_period_metrics(data, period, config) for period in periods]


@dataclass(frozen=True)
class DashboardMetrics:
    """
    Fixed-shape payload for the two-location dashboard.

    Every configured dashboard location is present, zero-filled when the
    data has no such location.
    """
    total: PeriodMetrics
    locations: Dict[str, LocationMetrics]

    @property
    def financial_metrics(self) -> dict:
        return {
            'total_production': float(self.total.production),
            'total_revenue': float(self.total.revenue),
            'total_net_production': float(self.total.net_production),
            'total_acquisition_costs': float(self.total.acquisition_costs),
            'profit_margin': round(self.total.profit_margin, 1),
            'roi': round(self.total.roi, 1) if self.total.roi is not None else None,
        }

    def as_dict(self) -> dict:
        total = self.total.as_dict()
        return {
            'total': total,
            'locations': {key: location.as_dict() for key, location in self.locations.items()},
            'trends': total['trends'],
            'financial_metrics': self.financial_metrics,
        }


def _selected(period: PeriodDefinition, key: str, location: LocationMetrics) -> bool:
    if not period.location_ids:
        return True
    candidates = (
        LocationRef(id=key, name=location.name),
        LocationRef(id=location.id or None, name=location.name),
    )
    return any(
        candidate.matches(location_id)
        for candidate in candidates
        for location_id in period.location_ids
    )


def compute_dashboard(
    data: PracticeData,
    period: PeriodDefinition,
    config: Optional[AggregationConfig] = None,
) -> DashboardMetrics:
    config = config or AggregationConfig()
    catalog_metrics = _catalog_metrics(data, period, config)
    locations = {
        key: _metrics_for(data, catalog_metrics, name)
        for key, name in config.dashboard_locations.items()
    }
    selected = [metrics for key, metrics in locations.items() if _selected(period, key, metrics)]
    total = aggregate_period(selected, period, config, series=config.dashboard_locations)
    return DashboardMetrics(total=total, locations=locations)
