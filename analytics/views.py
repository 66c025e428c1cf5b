"""
Analytics views - JSON endpoints for the dashboard, insights and reports.
"""

import json
import logging

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from . import services

logger = logging.getLogger(__name__)


def _json_body(request):
    try:
        body = json.loads(request.body or b'{}')
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


@login_required
@require_GET
def metrics_api(request):
    """
    Dashboard metrics for a period.

    Query params: start, end (YYYY-MM-DD), locations (comma-separated).
    Defaults to the last 30 days across all locations.
    """
    period = services.parse_period(request.GET)
    metrics = services.get_dashboard_metrics(period)
    return JsonResponse(metrics.as_dict())


@login_required
@require_GET
def insights_api(request):
    """Rule-based insights, recommendations and data quality for a period."""
    period = services.parse_period(request.GET)
    return JsonResponse(services.get_period_insights(period))


@login_required
@require_POST
def compare_api(request):
    """
    Compare several periods.

    Body: {"periods": [{"name", "start", "end", "locations"}, ...]}
    """
    body = _json_body(request)
    if body is None or not isinstance(body.get('periods'), list):
        return JsonResponse({'error': 'Expected a JSON body with a "periods" list'}, status=400)

    config = services.get_config()
    periods = [
        services.parse_period(params, config)
        for params in body['periods']
        if isinstance(params, dict)
    ]
    return JsonResponse(services.compare_periods(periods, config=config))


@login_required
@require_POST
def save_report_api(request):
    """Compute and persist a report for one period."""
    body = _json_body(request)
    if body is None:
        return JsonResponse({'error': 'Invalid JSON body'}, status=400)

    period = services.parse_period(body)
    report = services.save_report(period, user=request.user)
    return JsonResponse({
        'id': report.id,
        'name': report.name,
        'metrics': report.metrics_json,
        'insights': report.insights_json,
    }, status=201)
