"""
Views for managing integrations.
"""

import logging

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_POST

from .models import Integration, PracticeDataSnapshot

logger = logging.getLogger(__name__)


def get_greyfinch_integration():
    """
    Get the active Greyfinch integration.
    MVP: a single practice, so the first active one.
    """
    return Integration.objects.filter(integration_type='greyfinch', is_active=True).first()


@login_required
def integration_status(request):
    """Status of every integration and of the latest data snapshot."""
    latest = PracticeDataSnapshot.objects.order_by('-fetched_at').first()

    return JsonResponse({
        'integrations': [
            {
                'id': integration.id,
                'type': integration.integration_type,
                'name': str(integration),
                'is_active': integration.is_active,
                'last_sync_at': integration.last_sync_at,
                'last_error': integration.last_error,
            }
            for integration in Integration.objects.all()
        ],
        'latest_snapshot': {
            'fetched_at': latest.fetched_at,
            'locations': latest.location_count,
            'patients': latest.patient_count,
            'leads': latest.lead_count,
            'appointments': latest.appointment_count,
            'bookings': latest.booking_count,
        } if latest else None,
    })


@login_required
@require_POST
def greyfinch_sync(request):
    """Manually trigger a Greyfinch sync."""
    integration = get_greyfinch_integration()
    if not integration or not integration.api_key:
        return JsonResponse({'error': 'Greyfinch is not connected.'}, status=400)

    from .tasks import sync_greyfinch_for_integration

    try:
        snapshot = sync_greyfinch_for_integration(integration)
    except Exception as e:
        logger.exception(f'Greyfinch sync failed for {integration}')
        integration.last_error = str(e)
        integration.save(update_fields=['last_error'])
        return JsonResponse({'error': f'Sync failed: {e}'}, status=502)

    return JsonResponse({
        'snapshot_id': snapshot.id,
        'patients': snapshot.patient_count,
        'leads': snapshot.lead_count,
        'appointments': snapshot.appointment_count,
    })
