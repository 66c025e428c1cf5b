"""
Analytics calculation services.

These load the latest Greyfinch snapshot and manual acquisition costs,
then run the aggregation engine on-the-fly. Nothing here is cached.
"""

import logging
from datetime import date, timedelta
from typing import Iterable, List, Mapping, Optional

from django.utils.dateparse import parse_date

from .aggregation import compute_dashboard, compute_period_metrics
from .config import AggregationConfig
from .filters import PeriodDefinition
from .insights import assess_data_quality, data_quality_recommendations, generate
from .records import PracticeData

logger = logging.getLogger(__name__)


def get_config() -> AggregationConfig:
    return AggregationConfig.from_settings()


def _parse_date(value) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return parse_date(str(value).strip())
    except ValueError:
        # Well formatted but not a valid date
        return None


def _parse_locations(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(',')
    return [str(item).strip() for item in value if str(item).strip()]


def parse_period(params: Mapping, config: Optional[AggregationConfig] = None, today: Optional[date] = None) -> PeriodDefinition:
    """
    Build a PeriodDefinition from request parameters.

    Keys: start, end (ISO dates), locations (comma-separated string or
    list), name. Missing or malformed dates fall back to the default
    window ending today.
    """
    config = config or get_config()
    end_date = _parse_date(params.get('end')) or today or date.today()
    start_date = _parse_date(params.get('start')) or end_date - timedelta(days=config.default_window_days)

    return PeriodDefinition(
        start_date=start_date,
        end_date=end_date,
        location_ids=frozenset(_parse_locations(params.get('locations'))),
        name=str(params.get('name') or ''),
    )


def latest_raw_data() -> dict:
    """
    Raw practice data from the most recent Greyfinch snapshot.

    Falls back to the local location catalog when no snapshot exists (or
    the snapshot has no locations), so dashboards still render.
    """
    from core.services import location_catalog
    from integrations.models import PracticeDataSnapshot

    snapshot = PracticeDataSnapshot.objects.order_by('-fetched_at').first()
    raw = dict(snapshot.data_json) if snapshot and isinstance(snapshot.data_json, dict) else {}
    if not raw.get('locations'):
        raw['locations'] = location_catalog()
    return raw


def load_practice_data(period: PeriodDefinition, raw: Optional[Mapping] = None) -> PracticeData:
    from core.services import cost_entries_for_period

    if raw is None:
        raw = latest_raw_data()
    costs = cost_entries_for_period(period.start_date, period.end_date)
    return PracticeData.from_raw(raw, cost_entries=costs)


def get_period_metrics(period: PeriodDefinition, raw: Optional[Mapping] = None, config=None):
    config = config or get_config()
    return compute_period_metrics(load_practice_data(period, raw), period, config)


def get_dashboard_metrics(period: PeriodDefinition, raw: Optional[Mapping] = None, config=None):
    """Fixed-shape dashboard payload for the configured dashboard locations."""
    config = config or get_config()
    return compute_dashboard(load_practice_data(period, raw), period, config)


def get_period_insights(period: PeriodDefinition, raw: Optional[Mapping] = None, config=None) -> dict:
    metrics = get_period_metrics(period, raw, config)
    insights = generate(metrics)
    return {
        'period': period.as_dict(),
        **insights.as_dict(),
        'data_quality': assess_data_quality(metrics),
        'data_quality_recommendations': data_quality_recommendations(metrics),
    }


def compare_periods(periods: Iterable[PeriodDefinition], raw: Optional[Mapping] = None, config=None) -> dict:
    """
    Metrics and insights for several periods side by side.

    Each period carries its own insights; the top-level insights only
    rank the periods against each other (best ROI).
    """
    config = config or get_config()
    if raw is None:
        raw = latest_raw_data()

    results = [(period, get_period_metrics(period, raw, config)) for period in periods]
    comparison = generate(None, (), [(period.label, metrics) for period, metrics in results])

    logger.debug(f"Compared {len(results)} periods")
    return {
        'periods': [
            {**metrics.as_dict(), **generate(metrics).as_dict()}
            for _, metrics in results
        ],
        **comparison.as_dict(),
    }


def save_report(period: PeriodDefinition, user=None, raw: Optional[Mapping] = None, config=None):
    """Compute a period's metrics and insights and persist them as a SavedReport."""
    from .models import SavedReport

    metrics = get_period_metrics(period, raw, config)
    report = SavedReport.objects.create(
        name=period.label,
        start_date=period.start_date,
        end_date=period.end_date,
        location_ids=sorted(period.location_ids),
        metrics_json=metrics.as_dict(),
        insights_json=generate(metrics).as_dict(),
        created_by=user if user is not None and user.is_authenticated else None,
    )
    logger.info(f"Saved report {report.pk} for {period.label}")
    return report
