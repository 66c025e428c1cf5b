"""
Celery tasks for integration syncing.

Scheduled via Celery Beat (see config/celery.py).
"""

import logging

from celery import shared_task
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=300)
def sync_integration(self, integration_id):
    """
    Sync a single integration.
    Called manually or by periodic tasks.
    """
    from .models import Integration

    integration = None
    try:
        integration = Integration.objects.get(id=integration_id)

        if integration.integration_type == 'greyfinch':
            sync_greyfinch_for_integration(integration)

    except Integration.DoesNotExist:
        logger.error(f"Integration {integration_id} not found")
    except Exception as e:
        logger.exception(f"Error syncing integration {integration_id}")
        if integration:
            integration.last_error = str(e)
            integration.save(update_fields=['last_error'])
        raise self.retry(exc=e)


@shared_task
def sync_greyfinch():
    """
    Pull practice data from every active Greyfinch integration.
    Runs every 15 minutes via Celery Beat.
    """
    from .models import Integration

    integrations = Integration.objects.filter(
        integration_type='greyfinch',
        is_active=True,
    ).exclude(api_key='')

    synced = 0
    for integration in integrations:
        try:
            sync_greyfinch_for_integration(integration)
            synced += 1
        except Exception as e:
            logger.exception(f"Error syncing Greyfinch for {integration}")
            integration.last_error = str(e)
            integration.save(update_fields=['last_error'])

    return synced


def build_greyfinch_client(integration):
    from .services.greyfinch import GreyfinchClient

    config = integration.config_json or {}
    return GreyfinchClient(
        api_key=integration.api_key,
        api_secret=integration.api_secret,
        base_url=config.get('base_url') or getattr(settings, 'GREYFINCH_API_URL', None),
        resource_id=config.get('resource_id'),
        resource_token=config.get('resource_token'),
    )


def sync_greyfinch_for_integration(integration):
    """
    Store a fresh snapshot of Greyfinch practice data and update the
    location catalog from it.
    """
    from core.services import sync_locations
    from .models import PracticeDataSnapshot

    client = build_greyfinch_client(integration)
    data = client.get_practice_data()

    snapshot = PracticeDataSnapshot.objects.create(
        integration=integration,
        data_json=data,
        location_count=len(data.get('locations', [])),
        patient_count=len(data.get('patients', [])),
        lead_count=len(data.get('leads', [])),
        appointment_count=len(data.get('appointments', [])),
        booking_count=len(data.get('appointmentBookings', [])),
    )

    sync_locations(data.get('locations', []))

    integration.last_sync_at = timezone.now()
    integration.last_error = ''
    integration.save(update_fields=['last_sync_at', 'last_error'])

    logger.info(
        f"Greyfinch sync for {integration}: "
        f"{snapshot.patient_count} patients, {snapshot.lead_count} leads, "
        f"{snapshot.appointment_count} appointments"
    )
    return snapshot
