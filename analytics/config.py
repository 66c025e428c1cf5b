"""
Configuration for the aggregation engine.

The engine never reads Django settings directly. Services build an
AggregationConfig once per request and pass it down.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Tuple

# Estimated marketing spend per lead when no cost entries exist
DEFAULT_COST_PER_LEAD = Decimal('150')

# Placeholder value of an appointment with no amount field
DEFAULT_APPOINTMENT_VALUE = Decimal('250')

DEFAULT_DASHBOARD_LOCATIONS = {
    'gilbert': 'Gilbert',
    'phoenix': 'Phoenix-Ahwatukee',
}

# Evaluated in order, first match wins. Anything unmatched is 'direct'.
DEFAULT_REFERRAL_RULES = (
    ('digital', ('digital', 'online', 'social', 'google', 'facebook',
                 'instagram', 'ads', 'website', 'web')),
    ('professional', ('referral', 'doctor', 'professional', 'dentist', 'dr.')),
)


@dataclass(frozen=True)
class AggregationConfig:
    cost_per_lead: Decimal = DEFAULT_COST_PER_LEAD
    appointment_value: Decimal = DEFAULT_APPOINTMENT_VALUE
    dashboard_locations: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DASHBOARD_LOCATIONS)
    )
    referral_rules: Tuple[Tuple[str, Tuple[str, ...]], ...] = DEFAULT_REFERRAL_RULES
    default_window_days: int = 30

    @classmethod
    def from_settings(cls, settings=None) -> 'AggregationConfig':
        """
        Build a config from the ANALYTICS dict in Django settings.

        Missing keys keep their defaults.
        """
        if settings is None:
            from django.conf import settings

        options = getattr(settings, 'ANALYTICS', {}) or {}
        kwargs = {}
        if 'COST_PER_LEAD' in options:
            kwargs['cost_per_lead'] = Decimal(str(options['COST_PER_LEAD']))
        if 'APPOINTMENT_VALUE' in options:
            kwargs['appointment_value'] = Decimal(str(options['APPOINTMENT_VALUE']))
        if options.get('DASHBOARD_LOCATIONS'):
            kwargs['dashboard_locations'] = dict(options['DASHBOARD_LOCATIONS'])
        if options.get('REFERRAL_RULES'):
            kwargs['referral_rules'] = tuple(
                (category, tuple(keywords))
                for category, keywords in options['REFERRAL_RULES']
            )
        if 'DEFAULT_WINDOW_DAYS' in options:
            kwargs['default_window_days'] = int(options['DEFAULT_WINDOW_DAYS'])
        return cls(**kwargs)
