"""
Rule-based insights and recommendations.

Thresholds:
- conversion below 50% flags weak lead nurturing, above 80% flags a
  strength
- a location converting below 40% gets its own review recommendation
- fewer than 100 leads in a period triggers lead-generation advice
- the best period is the one with the highest ROI, where ROI is only
  defined for periods with acquisition costs
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

LOW_CONVERSION_RATE = 50
HIGH_CONVERSION_RATE = 80
LOW_LOCATION_CONVERSION_RATE = 40
LOW_LEAD_VOLUME = 100

LOW_CONVERSION_RECOMMENDATIONS = (
    'Implement lead scoring and automated follow-up sequences',
    'Review and optimize consultation booking process',
)
LOW_LEAD_VOLUME_RECOMMENDATIONS = (
    'Increase marketing spend on high-performing channels',
    'Develop referral program for existing patients',
)


@dataclass
class Insights:
    insights: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            'insights': list(self.insights),
            'recommendations': list(self.recommendations),
        }


def _best_location(location_metrics):
    candidates = [location for location in location_metrics if location.leads > 0]
    if not candidates:
        return None
    return max(candidates, key=lambda location: location.conversion_rate)


def _best_period(comparisons):
    candidates = [
        (label, metrics) for label, metrics in comparisons
        if metrics is not None and metrics.roi is not None
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda item: item[1].roi)


def generate(
    period_metrics=None,
    location_metrics: Optional[Iterable] = None,
    comparisons: Optional[Sequence[Tuple[str, object]]] = None,
) -> Insights:
    """
    Build insight and recommendation strings for a period.

    `location_metrics` defaults to the period's own locations.
    `comparisons` is a sequence of (label, PeriodMetrics) for the
    best-period rule.
    """
    result = Insights()
    if location_metrics is None:
        location_metrics = getattr(period_metrics, 'locations', ()) or ()
    location_metrics = [location for location in location_metrics if location is not None]
    comparisons = list(comparisons or ())

    if period_metrics is not None and period_metrics.leads > 0:
        rate = period_metrics.conversion_rate
        if rate < LOW_CONVERSION_RATE:
            result.insights.append(
                f"Low conversion rate of {rate:.1f}% - consider improving lead nurturing"
            )
            result.recommendations.extend(LOW_CONVERSION_RECOMMENDATIONS)
        elif rate > HIGH_CONVERSION_RATE:
            result.insights.append(
                f"Excellent conversion rate of {rate:.1f}% - focus on lead generation"
            )

        if period_metrics.leads < LOW_LEAD_VOLUME:
            result.recommendations.extend(LOW_LEAD_VOLUME_RECOMMENDATIONS)

    best_location = _best_location(location_metrics)
    if best_location is not None:
        result.insights.append(
            f"Best performing location: {best_location.name} "
            f"with {best_location.conversion_rate:.1f}% conversion rate"
        )

    for location in location_metrics:
        if location.leads > 0 and location.conversion_rate < LOW_LOCATION_CONVERSION_RATE:
            result.recommendations.append(
                f"Review processes at {location.name} - low conversion rate"
            )

    best_period = _best_period(comparisons)
    if best_period is not None:
        label, metrics = best_period
        result.insights.append(
            f"Best ROI period: {label} with {metrics.roi:.1f}% return on investment"
        )

    return result


def assess_data_quality(period_metrics) -> str:
    if period_metrics is None:
        return 'Low - Limited data available for comprehensive analysis'

    has_financial = period_metrics.production > 0 or period_metrics.revenue > 0
    has_patients = period_metrics.patients > 0
    has_appointments = period_metrics.appointments > 0

    if has_financial and has_patients and has_appointments:
        return 'High - Complete financial and operational data available'
    if has_patients and has_appointments:
        return 'Medium - Patient and appointment data available, financial data limited'
    return 'Low - Limited data available for comprehensive analysis'


def data_quality_recommendations(period_metrics, location_metrics: Optional[Iterable] = None) -> List[str]:
    if period_metrics is None:
        return []
    if location_metrics is None:
        location_metrics = period_metrics.locations

    recommendations = []
    if period_metrics.production == 0 and period_metrics.revenue == 0:
        recommendations.append('Implement production and revenue tracking for better financial analysis')
    if period_metrics.leads == 0:
        recommendations.append('Set up lead tracking system to measure marketing effectiveness')
    if all(location.acquisition_costs == 0 for location in location_metrics):
        recommendations.append('Track marketing and acquisition costs for ROI analysis')

    return recommendations or ['Data quality is good - continue current tracking practices']
