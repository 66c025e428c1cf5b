"""
Business logic services for core app.
Keep views thin, put logic here.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from django.db.models import Q

from .models import AcquisitionCost, Location

logger = logging.getLogger(__name__)


def cost_entries_for_period(start_date: Optional[date], end_date: Optional[date]) -> List[dict]:
    """
    Acquisition cost entries whose period starts inside the date range.

    Returned as raw dicts so the analytics engine filters them by location
    the same way as every other record.
    """
    filters = Q()
    if start_date:
        filters &= Q(period_start__gte=start_date)
    if end_date:
        filters &= Q(period_start__lte=end_date)

    costs = AcquisitionCost.objects.filter(filters).select_related('location')
    return [cost.as_raw() for cost in costs]


def sync_locations(raw_locations: Iterable[dict]) -> int:
    """
    Upsert the location catalog from Greyfinch location records.

    Returns the number of locations created.
    """
    created_count = 0
    for raw in raw_locations:
        if not isinstance(raw, dict) or not raw.get('id'):
            continue

        _, created = Location.objects.update_or_create(
            greyfinch_id=str(raw['id']),
            defaults={
                'name': raw.get('name') or str(raw['id']),
                'is_active': raw.get('isActive', True) is not False,
            }
        )
        if created:
            created_count += 1

    logger.info(f"Synced locations, {created_count} new")
    return created_count


def location_catalog() -> List[dict]:
    """Active locations in the shape Greyfinch returns them."""
    return [location.as_raw() for location in Location.objects.filter(is_active=True)]
