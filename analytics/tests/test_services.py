import pytest
from datetime import date
from decimal import Decimal

from analytics import services
from analytics.config import AggregationConfig
from analytics.filters import PeriodDefinition
from analytics.models import SavedReport
from core.models import AcquisitionCost


def test_parse_period_from_params():
    period = services.parse_period(
        {'start': '2024-03-01', 'end': '2024-03-31', 'locations': 'gilbert, phoenix', 'name': 'March'},
        AggregationConfig(),
    )
    assert period.start_date == date(2024, 3, 1)
    assert period.end_date == date(2024, 3, 31)
    assert period.location_ids == frozenset({'gilbert', 'phoenix'})
    assert period.label == 'March'


def test_parse_period_defaults_to_trailing_window():
    period = services.parse_period({}, AggregationConfig(default_window_days=30), today=date(2024, 3, 31))
    assert period.start_date == date(2024, 3, 1)
    assert period.end_date == date(2024, 3, 31)
    assert period.location_ids == frozenset()


def test_parse_period_ignores_malformed_dates():
    period = services.parse_period({'start': 'soon', 'end': '2024-13-01'}, AggregationConfig(), today=date(2024, 3, 31))
    assert period.end_date == date(2024, 3, 31)


def test_parse_period_accepts_location_list():
    period = services.parse_period({'locations': ['loc-1', ' ', 'loc-2']}, AggregationConfig())
    assert period.location_ids == frozenset({'loc-1', 'loc-2'})


def test_get_config_reads_settings(settings):
    settings.ANALYTICS = {'COST_PER_LEAD': '99', 'DASHBOARD_LOCATIONS': {'mesa': 'Mesa'}}
    config = services.get_config()
    assert config.cost_per_lead == Decimal('99')
    assert config.dashboard_locations == {'mesa': 'Mesa'}
    assert config.appointment_value == Decimal('250')


@pytest.mark.django_db
def test_latest_raw_data_uses_newest_snapshot(snapshot):
    raw = services.latest_raw_data()
    assert len(raw['patients']) == 4


@pytest.mark.django_db
def test_latest_raw_data_falls_back_to_location_catalog(gilbert, phoenix):
    raw = services.latest_raw_data()
    assert raw == {'locations': [
        {'id': 'loc-1', 'name': 'Gilbert'},
        {'id': 'loc-2', 'name': 'Phoenix-Ahwatukee'},
    ]}


@pytest.mark.django_db
def test_period_metrics_from_snapshot(snapshot, march_period):
    metrics = services.get_period_metrics(march_period)
    assert metrics.patients == 3
    assert metrics.acquisition_costs == Decimal('750')


@pytest.mark.django_db
def test_manual_acquisition_costs_are_applied(snapshot, gilbert, march_period):
    AcquisitionCost.objects.create(location=gilbert, period_start=date(2024, 3, 1), amount=Decimal('2000'))
    AcquisitionCost.objects.create(location=gilbert, period_start=date(2024, 2, 1), amount=Decimal('5000'))

    dashboard = services.get_dashboard_metrics(march_period)
    assert dashboard.locations['gilbert'].acquisition_costs == Decimal('2000')
    assert dashboard.locations['phoenix'].acquisition_costs == Decimal('300')


@pytest.mark.django_db
def test_get_period_insights(snapshot, march_period):
    result = services.get_period_insights(march_period)
    assert result['period']['start_date'] == '2024-03-01'
    assert 'Best performing location: Gilbert with 66.7% conversion rate' in result['insights']
    assert result['data_quality'].startswith('High')


@pytest.mark.django_db
def test_compare_periods(snapshot, march_period):
    april = PeriodDefinition(date(2024, 4, 1), date(2024, 4, 30), name='April')
    result = services.compare_periods([march_period, april])
    assert [period['period']['name'] for period in result['periods']] == ['2024-03-01 to 2024-03-31', 'April']
    assert result['periods'][0]['patients'] == 3
    assert 'insights' in result['periods'][0]
    # March: (1500 - 750) / 750; April: (250 - 150) / 150
    assert result['insights'] == ['Best ROI period: 2024-03-01 to 2024-03-31 with 100.0% return on investment']


@pytest.mark.django_db
def test_save_report(snapshot, user, march_period):
    report = services.save_report(march_period, user=user)
    assert SavedReport.objects.count() == 1
    assert report.created_by == user
    assert report.start_date == date(2024, 3, 1)
    assert report.metrics_json['patients'] == 3
    assert report.insights_json['recommendations']


def test_parse_period_accepts_unpadded_dates():
    period = services.parse_period({'start': '2024-3-5', 'end': '2024-03-31'}, AggregationConfig())
    assert period.start_date == date(2024, 3, 5)
    assert period.end_date == date(2024, 3, 31)


def test_parse_period_rejects_impossible_dates():
    period = services.parse_period({'start': '2024-02-30', 'end': '2024-03-31'}, AggregationConfig())
    assert period.start_date == date(2024, 3, 1)


@pytest.mark.django_db
def test_costs_without_location_are_apportioned(snapshot, march_period):
    AcquisitionCost.objects.create(location=None, period_start=date(2024, 3, 1), amount=Decimal('9000'))

    metrics = services.get_period_metrics(march_period)
    assert metrics.acquisition_costs == Decimal('9000')
    assert [location.acquisition_costs for location in metrics.locations] == [Decimal('5400'), Decimal('3600')]
