from datetime import date
from decimal import Decimal

import pytest

from analytics.aggregation import (
    LocationMetrics,
    aggregate_location,
    aggregate_period,
    apportion_shared_costs,
    compare_periods,
    compute_dashboard,
    compute_period_metrics,
)
from analytics.config import AggregationConfig
from analytics.filters import PeriodDefinition
from analytics.records import PracticeData


def test_aggregate_location_counts(practice_data, march_period):
    metrics = aggregate_location(practice_data, 'Gilbert', march_period)
    assert metrics.name == 'Gilbert'
    assert metrics.id == 'loc-1'
    assert metrics.patients == 2
    assert metrics.leads == 3
    assert metrics.appointments == 3
    assert metrics.bookings == 1


def test_aggregate_location_financials(practice_data, march_period):
    metrics = aggregate_location(practice_data, 'Gilbert', march_period)
    # 400 + 250 placeholder + 500
    assert metrics.production == Decimal('1150')
    # 300 fee + 250 placeholder + 500
    assert metrics.revenue == Decimal('1050')
    assert metrics.acquisition_costs == Decimal('450')
    assert metrics.net_production == Decimal('600')


def test_aggregate_location_resolves_id_only_and_name_only_references(practice_data, march_period):
    metrics = aggregate_location(practice_data, 'Phoenix-Ahwatukee', march_period)
    assert metrics.patients == 1
    assert metrics.bookings == 1
    assert metrics.production == Decimal('450')
    assert metrics.revenue == Decimal('450')
    assert metrics.net_production == Decimal('150')


def test_requested_name_matches_by_containment(practice_data, march_period):
    """A request for 'gilbert-1' picks up records tagged 'Gilbert' and nothing else."""
    metrics = aggregate_location(practice_data, 'gilbert-1', march_period)
    assert metrics.name == 'Gilbert'
    assert metrics.patients == 2


def test_unknown_location_is_all_zero(practice_data, march_period):
    metrics = aggregate_location(practice_data, 'Mesa', march_period)
    assert metrics == LocationMetrics.empty('Mesa')
    assert metrics.patients == 0
    assert metrics.net_production == Decimal('0')


def test_inverted_period_yields_zeros(practice_data):
    period = PeriodDefinition(date(2024, 3, 31), date(2024, 3, 1))
    metrics = aggregate_location(practice_data, 'Gilbert', period)
    assert metrics.patients == 0
    assert metrics.appointments == 0
    assert metrics.revenue == Decimal('0')


def test_empty_data_is_zero_safe():
    period_metrics = compute_period_metrics(PracticeData.from_raw({}), PeriodDefinition())
    assert period_metrics.patients == 0
    assert period_metrics.conversion_rate == 0.0
    assert period_metrics.no_show_rate == 0.0
    assert period_metrics.avg_net_production == Decimal('0')
    assert period_metrics.avg_acquisition_cost == Decimal('0')
    assert period_metrics.profit_margin == 0.0
    assert period_metrics.roi is None
    assert period_metrics.weekly == ()


def test_summary_counts_take_the_fast_path(march_period):
    data = PracticeData.from_raw({
        'locations': [{'id': 'loc-1', 'name': 'Gilbert'}],
        'gilbertCounts': {'patients': 12, 'leads': {'count': 20}, 'appointments': [{}, {}], 'bookings': 3},
        'patients': [{'createdAt': '2024-03-05', 'location': 'Gilbert'}],
    })
    metrics = aggregate_location(data, 'Gilbert', march_period)
    assert metrics.from_summary
    assert metrics.patients == 12
    assert metrics.leads == 20
    assert metrics.appointments == 2
    assert metrics.bookings == 3
    assert metrics.acquisition_costs == Decimal('3000')


def test_fast_path_is_skipped_for_inverted_period():
    data = PracticeData.from_raw({
        'locations': [{'id': 'loc-1', 'name': 'Gilbert'}],
        'gilbertCounts': {'patients': 12},
    })
    metrics = aggregate_location(data, 'Gilbert', PeriodDefinition(date(2024, 3, 31), date(2024, 3, 1)))
    assert not metrics.from_summary
    assert metrics.patients == 0


def test_cost_entries_replace_estimate(raw_practice_data, march_period):
    gilbert = {'id': 'loc-1', 'name': 'Gilbert'}
    data = PracticeData.from_raw(raw_practice_data, cost_entries=[
        {'period': '2024-03-01', 'cost': '800', 'location': gilbert},
        {'period': '2024-03-15', 'cost': '200', 'location': gilbert},
        {'period': '2024-04-01', 'cost': '999', 'location': gilbert},
    ])
    gilbert_metrics = aggregate_location(data, 'Gilbert', march_period)
    phoenix_metrics = aggregate_location(data, 'Phoenix-Ahwatukee', march_period)
    assert gilbert_metrics.acquisition_costs == Decimal('1000')
    assert phoenix_metrics.acquisition_costs == Decimal('300')


def test_net_production_is_always_derived():
    metrics = LocationMetrics(name='Gilbert', revenue=Decimal('100'), acquisition_costs=Decimal('40'))
    assert metrics.net_production == Decimal('60')
    with pytest.raises(TypeError):
        LocationMetrics(name='Gilbert', net_production=Decimal('1'))


def test_compute_period_metrics_totals(practice_data, march_period):
    metrics = compute_period_metrics(practice_data, march_period)
    assert metrics.location_count == 2
    assert metrics.patients == 3
    assert metrics.leads == 5
    assert metrics.appointments == 5
    assert metrics.bookings == 2
    assert metrics.production == Decimal('1600')
    assert metrics.revenue == Decimal('1500')
    assert metrics.acquisition_costs == Decimal('750')
    assert metrics.net_production == Decimal('750')


def test_period_totals_equal_sum_of_locations(practice_data, march_period):
    metrics = compute_period_metrics(practice_data, march_period)
    for attribute in ('patients', 'leads', 'appointments', 'bookings', 'production', 'revenue', 'acquisition_costs'):
        assert getattr(metrics, attribute) == sum(getattr(location, attribute) for location in metrics.locations)


def test_compute_period_metrics_rates(practice_data, march_period):
    metrics = compute_period_metrics(practice_data, march_period)
    assert metrics.no_show_rate == pytest.approx(40.0)
    assert metrics.conversion_rate == pytest.approx(60.0)
    assert metrics.conversion_rates == pytest.approx({'digital': 60.0, 'professional': 60.0, 'direct': 60.0})
    assert metrics.avg_net_production == Decimal('150')
    assert metrics.avg_acquisition_cost == Decimal('150')
    assert metrics.profit_margin == pytest.approx(50.0)
    assert metrics.roi == pytest.approx(100.0)


def test_referral_sources_cover_leads_and_patients(practice_data, march_period):
    metrics = compute_period_metrics(practice_data, march_period)
    assert metrics.referral_sources == {'digital': 3, 'professional': 2, 'direct': 3}
    assert sum(metrics.referral_sources.values()) == metrics.leads + metrics.patients


def test_period_trends(practice_data, march_period):
    metrics = compute_period_metrics(practice_data, march_period)
    assert [point.as_dict('week') for point in metrics.weekly] == [
        {'week': '2024-W10', 'gilbert': 2, 'phoenix-ahwatukee': 0, 'total': 2},
        {'week': '2024-W11', 'gilbert': 0, 'phoenix-ahwatukee': 2, 'total': 2},
        {'week': '2024-W13', 'gilbert': 1, 'phoenix-ahwatukee': 0, 'total': 1},
    ]
    assert [point.as_dict('month') for point in metrics.monthly] == [
        {'month': '2024-03', 'gilbert': 3, 'phoenix-ahwatukee': 2, 'total': 5},
    ]


def test_period_scoped_to_one_location(practice_data):
    period = PeriodDefinition(date(2024, 3, 1), date(2024, 3, 31), ['loc-1'])
    metrics = compute_period_metrics(practice_data, period)
    assert metrics.location_count == 1
    assert metrics.patients == 2
    assert metrics.leads == 3


def test_period_metrics_as_dict(practice_data, march_period):
    data = compute_period_metrics(practice_data, march_period).as_dict()
    assert data['period']['start_date'] == '2024-03-01'
    assert data['locations'] == 2
    assert data['revenue'] == 1500.0
    assert data['roi'] == 100.0
    assert data['trends']['monthly'][0]['month'] == '2024-03'
    assert [location['name'] for location in data['location_data']] == ['Gilbert', 'Phoenix-Ahwatukee']


def test_aggregate_period_of_nothing():
    metrics = aggregate_period([])
    assert metrics.location_count == 0
    assert metrics.referral_sources == {'digital': 0, 'professional': 0, 'direct': 0}
    assert metrics.roi is None


def test_aggregation_is_deterministic(raw_practice_data, march_period):
    first = compute_period_metrics(PracticeData.from_raw(raw_practice_data), march_period).as_dict()
    second = compute_period_metrics(PracticeData.from_raw(raw_practice_data), march_period).as_dict()
    assert first == second


def test_compare_periods(practice_data, march_period):
    april = PeriodDefinition(date(2024, 4, 1), date(2024, 4, 30), name='April')
    march, april_metrics = compare_periods(practice_data, [march_period, april])
    assert march.patients == 3
    assert april_metrics.leads == 1
    assert april_metrics.appointments == 1


def test_dashboard_shape_is_fixed(practice_data, march_period):
    dashboard = compute_dashboard(practice_data, march_period)
    assert set(dashboard.locations) == {'gilbert', 'phoenix'}
    assert dashboard.locations['gilbert'].patients == 2
    assert dashboard.locations['phoenix'].patients == 1
    assert dashboard.total.patients == 3

    payload = dashboard.as_dict()
    assert payload['financial_metrics']['total_revenue'] == 1500.0
    assert payload['trends']['weekly'][1] == {'week': '2024-W11', 'gilbert': 0, 'phoenix': 2, 'total': 2}


def test_dashboard_zero_fills_missing_location(march_period):
    data = PracticeData.from_raw({
        'locations': [{'id': 'loc-1', 'name': 'Gilbert'}],
        'patients': [{'createdAt': '2024-03-05', 'location': 'Gilbert'}],
    })
    dashboard = compute_dashboard(data, march_period)
    assert dashboard.locations['phoenix'].patients == 0
    assert dashboard.locations['phoenix'].name == 'Phoenix-Ahwatukee'
    assert dashboard.total.patients == 1


def test_dashboard_total_follows_location_filter(practice_data):
    period = PeriodDefinition(date(2024, 3, 1), date(2024, 3, 31), ['phoenix'])
    dashboard = compute_dashboard(practice_data, period)
    assert dashboard.locations['gilbert'].patients == 2
    assert dashboard.total.patients == 1


def test_config_changes_placeholder_values(practice_data, march_period):
    config = AggregationConfig(cost_per_lead=Decimal('100'), appointment_value=Decimal('0'))
    metrics = aggregate_location(practice_data, 'Gilbert', march_period, config)
    assert metrics.production == Decimal('900')
    assert metrics.acquisition_costs == Decimal('300')


def test_overlapping_location_names_do_not_share_records(march_period):
    """A location whose name contains another's keeps only its own records."""
    data = PracticeData.from_raw({
        'locations': [
            {'id': 'loc-2', 'name': 'Phoenix-Ahwatukee'},
            {'id': 'loc-3', 'name': 'Phoenix'},
        ],
        'patients': [
            {'createdAt': '2024-03-05', 'location': {'id': 'loc-2', 'name': 'Phoenix-Ahwatukee'}},
            {'createdAt': '2024-03-06', 'location': {'id': 'loc-3', 'name': 'Phoenix'}},
        ],
    })
    metrics = compute_period_metrics(data, march_period)
    assert [location.patients for location in metrics.locations] == [1, 1]
    assert metrics.patients == 2

    only_phoenix = compute_period_metrics(data, march_period.scoped_to('Phoenix'))
    assert only_phoenix.patients == 1
    assert only_phoenix.locations[0].id == 'loc-3'


def test_overlapping_names_without_ids(march_period):
    data = PracticeData.from_raw({
        'locations': [{'name': 'Mesa'}, {'name': 'Mesa East'}],
        'leads': [
            {'createdAt': '2024-03-05', 'location': 'Mesa'},
            {'createdAt': '2024-03-05', 'location': 'Mesa East'},
            {'createdAt': '2024-03-06', 'location': 'mesa east'},
        ],
    })
    mesa = aggregate_location(data, 'Mesa', march_period)
    mesa_east = aggregate_location(data, 'Mesa East', march_period)
    assert mesa.leads == 1
    assert mesa_east.leads == 2
    assert compute_period_metrics(data, march_period).leads == 3


def test_shared_costs_are_apportioned_by_leads(raw_practice_data, march_period):
    """Cost entries with no location replace the per-lead estimate across locations."""
    data = PracticeData.from_raw(raw_practice_data, cost_entries=[
        {'period': '2024-03-01', 'cost': '9000', 'location': None},
        {'period': '2024-04-01', 'cost': '500', 'location': None},
    ])
    metrics = compute_period_metrics(data, march_period)
    gilbert, phoenix = metrics.locations
    assert gilbert.acquisition_costs == Decimal('5400')
    assert phoenix.acquisition_costs == Decimal('3600')
    assert metrics.acquisition_costs == Decimal('9000')
    assert metrics.net_production == metrics.revenue - Decimal('9000')
    assert gilbert.net_production == gilbert.revenue - gilbert.acquisition_costs


def test_shared_costs_add_to_location_entries(raw_practice_data, march_period):
    data = PracticeData.from_raw(raw_practice_data, cost_entries=[
        {'period': '2024-03-01', 'cost': '1000', 'location': None},
        {'period': '2024-03-01', 'cost': '250', 'location': {'id': 'loc-1', 'name': 'Gilbert'}},
    ])
    dashboard = compute_dashboard(data, march_period)
    assert dashboard.locations['gilbert'].acquisition_costs == Decimal('850')
    assert dashboard.locations['phoenix'].acquisition_costs == Decimal('400')
    assert dashboard.total.acquisition_costs == Decimal('1250')


def test_shared_costs_split_evenly_without_leads():
    metrics = [LocationMetrics(name='Gilbert'), LocationMetrics(name='Mesa'), LocationMetrics(name='Tempe')]
    shared = PracticeData.from_raw({'costs': [{'period': '2024-03-01', 'cost': '100'}]}).costs
    apportioned = apportion_shared_costs(metrics, shared)
    assert [location.acquisition_costs for location in apportioned] == [
        Decimal('33.33'), Decimal('33.33'), Decimal('33.34'),
    ]


def test_inverted_period_metrics_are_all_zero(practice_data):
    period = PeriodDefinition(date(2024, 3, 31), date(2024, 3, 1))
    metrics = compute_period_metrics(practice_data, period)
    assert metrics.patients == 0
    assert metrics.leads == 0
    assert metrics.appointments == 0
    assert metrics.revenue == Decimal('0')
    assert metrics.acquisition_costs == Decimal('0')
    assert metrics.no_show_rate == 0.0
    assert metrics.conversion_rate == 0.0
    assert metrics.weekly == ()
    assert metrics.monthly == ()


def test_aggregate_period_sums_two_locations():
    gilbert = LocationMetrics(name='Gilbert', revenue=Decimal('10000'), acquisition_costs=Decimal('2000'))
    phoenix = LocationMetrics(name='Phoenix-Ahwatukee', revenue=Decimal('5000'), acquisition_costs=Decimal('1000'))
    metrics = aggregate_period([gilbert, phoenix])
    assert metrics.revenue == Decimal('15000')
    assert metrics.acquisition_costs == Decimal('3000')
    assert metrics.net_production == Decimal('12000')
    assert metrics.roi == pytest.approx(400.0)
