"""
Metric calculators.

Each function takes already-filtered canonical records and returns one
derived quantity. Rates are percentages in [0, 100] and are 0 (never NaN)
when the denominator is empty.
"""

from decimal import Decimal
from typing import Dict, Iterable, Sequence

from .config import DEFAULT_APPOINTMENT_VALUE, DEFAULT_COST_PER_LEAD, DEFAULT_REFERRAL_RULES
from .records import Record

NO_SHOW_STATUSES = {'no-show', 'no_show', 'noshow', 'no show', 'cancelled', 'canceled'}

DIRECT = 'direct'
REFERRAL_CATEGORIES = ('digital', 'professional', DIRECT)

ZERO = Decimal('0')


def percentage(part, whole) -> float:
    if not whole:
        return 0.0
    return float(part) * 100 / float(whole)


def no_show_rate(appointments: Sequence[Record]) -> float:
    """Share of appointments that were no-shows or cancellations."""
    missed = sum(1 for appointment in appointments if appointment.status.lower() in NO_SHOW_STATUSES)
    return percentage(missed, len(appointments))


def classify_source(source: str, rules=DEFAULT_REFERRAL_RULES) -> str:
    """Map a free-text referral source to digital, professional or direct."""
    text = (source or '').lower()
    if text:
        for category, keywords in rules:
            if any(keyword in text for keyword in keywords):
                return category
    return DIRECT


def referral_sources(records: Iterable[Record], rules=DEFAULT_REFERRAL_RULES) -> Dict[str, int]:
    """Count records per referral category."""
    counts = {category: 0 for category in REFERRAL_CATEGORIES}
    for category, _ in rules:
        counts.setdefault(category, 0)
    for record in records:
        counts[classify_source(record.source, rules)] += 1
    return counts


def referral_percentages(records: Iterable[Record], rules=DEFAULT_REFERRAL_RULES) -> Dict[str, float]:
    """Referral categories as percentages of the classified total."""
    counts = referral_sources(records, rules)
    total = sum(counts.values())
    return {category: percentage(count, total) for category, count in counts.items()}


def conversion_rate(conversions: int, leads: int) -> float:
    """Conversions per lead, capped at 100%."""
    if leads <= 0:
        return 0.0
    return min(100.0, percentage(max(conversions, 0), leads))


def conversion_rates(conversions: int, leads: int) -> Dict[str, float]:
    """
    Per-source conversion rates.

    Conversions are not attributed to a source upstream, so the aggregate
    rate is applied to every source bucket.
    """
    rate = conversion_rate(conversions, leads)
    return {category: rate for category in REFERRAL_CATEGORIES}


def _appointment_amounts(appointments, attribute, placeholder):
    total = ZERO
    for appointment in appointments:
        amount = getattr(appointment, attribute)
        total += placeholder if amount is None else amount
    return total


def _entry_amounts(entries) -> Decimal:
    return sum((entry.amount for entry in entries if entry.amount is not None), ZERO)


def production_total(
    appointments: Iterable[Record],
    entries: Iterable[Record] = (),
    appointment_value: Decimal = DEFAULT_APPOINTMENT_VALUE,
) -> Decimal:
    """
    Production from appointments plus dedicated production entries.

    Appointments with no amount field count at `appointment_value`.
    """
    return _appointment_amounts(appointments, 'production', appointment_value) + _entry_amounts(entries)


def revenue_total(
    appointments: Iterable[Record],
    entries: Iterable[Record] = (),
    appointment_value: Decimal = DEFAULT_APPOINTMENT_VALUE,
) -> Decimal:
    """Revenue from appointments plus dedicated revenue entries."""
    return _appointment_amounts(appointments, 'revenue', appointment_value) + _entry_amounts(entries)


def acquisition_cost(
    lead_count: int,
    cost_entries: Sequence[Record] = (),
    cost_per_lead: Decimal = DEFAULT_COST_PER_LEAD,
) -> Decimal:
    """
    Marketing spend attributed to a period.

    Real cost entries win when any exist. Otherwise spend is estimated
    from lead volume.
    """
    if cost_entries:
        return _entry_amounts(cost_entries)
    return Decimal(max(lead_count, 0)) * cost_per_lead


def net_production(revenue: Decimal, acquisition_costs: Decimal) -> Decimal:
    return revenue - acquisition_costs


def safe_average(total, count) -> Decimal:
    if not count:
        return ZERO
    return Decimal(total) / Decimal(count)
