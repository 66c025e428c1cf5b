from decimal import Decimal

import pytest

from analytics import calculators
from analytics.records import APPOINTMENT, COST, LEAD, REVENUE, Record


def appointment(status='', production=None, revenue=None):
    return Record(kind=APPOINTMENT, raw={}, status=status, production=production, revenue=revenue)


def lead(source=''):
    return Record(kind=LEAD, raw={}, source=source)


def entry(kind, amount):
    return Record(kind=kind, raw={}, amount=amount)


def test_no_show_rate():
    appointments = [appointment('completed'), appointment('no-show'), appointment('cancelled'), appointment('')]
    assert calculators.no_show_rate(appointments) == 50.0


def test_no_show_rate_empty_is_zero():
    assert calculators.no_show_rate([]) == 0.0


@pytest.mark.parametrize('source,category', [
    ('Google Ads', 'digital'),
    ('Instagram', 'digital'),
    ('online form', 'digital'),
    ('Dr. Smith', 'professional'),
    ('Referral from dentist', 'professional'),
    ('walk-in', 'direct'),
    ('', 'direct'),
])
def test_classify_source(source, category):
    assert calculators.classify_source(source) == category


def test_referral_sources_counts_every_record_once():
    records = [lead('Google'), lead('referral'), lead(''), lead('Facebook')]
    counts = calculators.referral_sources(records)
    assert counts == {'digital': 2, 'professional': 1, 'direct': 1}
    assert sum(counts.values()) == len(records)


def test_referral_sources_with_custom_rules():
    rules = (('print', ('newspaper',)),)
    counts = calculators.referral_sources([lead('Newspaper ad'), lead('Google')], rules)
    assert counts['print'] == 1
    assert counts['direct'] == 1


def test_referral_percentages():
    percentages = calculators.referral_percentages([lead('Google'), lead('')])
    assert percentages == {'digital': 50.0, 'professional': 0.0, 'direct': 50.0}


def test_conversion_rate_is_capped_and_zero_safe():
    assert calculators.conversion_rate(3, 5) == 60.0
    assert calculators.conversion_rate(10, 5) == 100.0
    assert calculators.conversion_rate(5, 0) == 0.0


def test_conversion_rates_fan_out():
    assert calculators.conversion_rates(1, 4) == {'digital': 25.0, 'professional': 25.0, 'direct': 25.0}


def test_production_total_uses_placeholder_for_missing_amounts():
    appointments = [appointment(production=Decimal('400')), appointment()]
    assert calculators.production_total(appointments) == Decimal('650')
    assert calculators.production_total(appointments, appointment_value=Decimal('100')) == Decimal('500')


def test_production_total_adds_entries():
    entries = [entry('production', Decimal('1000')), entry('production', None)]
    assert calculators.production_total([], entries) == Decimal('1000')


def test_revenue_total():
    appointments = [appointment(revenue=Decimal('300')), appointment(revenue=Decimal('0'))]
    entries = [entry(REVENUE, Decimal('50.25'))]
    assert calculators.revenue_total(appointments, entries) == Decimal('350.25')


def test_acquisition_cost_estimates_from_leads():
    assert calculators.acquisition_cost(4) == Decimal('600')
    assert calculators.acquisition_cost(4, cost_per_lead=Decimal('10')) == Decimal('40')
    assert calculators.acquisition_cost(0) == Decimal('0')


def test_acquisition_cost_prefers_real_entries():
    costs = [entry(COST, Decimal('1200')), entry(COST, Decimal('300'))]
    assert calculators.acquisition_cost(100, costs) == Decimal('1500')


def test_net_production():
    assert calculators.net_production(Decimal('1000'), Decimal('1500')) == Decimal('-500')


def test_safe_average():
    assert calculators.safe_average(Decimal('750'), 5) == Decimal('150')
    assert calculators.safe_average(Decimal('750'), 0) == Decimal('0')


def test_no_show_rate_two_of_ten():
    appointments = [appointment('completed')] * 8 + [appointment('no-show'), appointment('No_Show')]
    assert calculators.no_show_rate(appointments) == 20.0
