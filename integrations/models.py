"""
Integration models for external services.

PracticeDataSnapshot holds the raw Greyfinch payload that analytics
aggregates on demand.
"""

from django.db import models


class Integration(models.Model):
    """
    API credentials for a third-party integration.
    """
    INTEGRATION_TYPE_CHOICES = [
        ('greyfinch', 'Greyfinch'),
    ]

    integration_type = models.CharField(max_length=50, choices=INTEGRATION_TYPE_CHOICES, default='greyfinch')
    name = models.CharField(max_length=255, blank=True)

    # API credentials (encrypted in production)
    api_key = models.CharField(max_length=255, blank=True)
    api_secret = models.CharField(max_length=255, blank=True)

    # Additional config (resource ids, custom endpoint, etc.)
    config_json = models.JSONField(default=dict, blank=True)

    # Status
    is_active = models.BooleanField(default=True)
    last_sync_at = models.DateTimeField(null=True, blank=True)
    last_error = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['integration_type', 'name']

    def __str__(self):
        return self.name or self.get_integration_type_display()


class PracticeDataSnapshot(models.Model):
    """
    Raw practice data pulled from Greyfinch in one sync.

    Stored as returned (locations, patients, leads, appointments,
    appointmentBookings); never aggregated before storage.
    """
    integration = models.ForeignKey(
        Integration,
        on_delete=models.CASCADE,
        related_name='snapshots',
        null=True, blank=True,
    )
    data_json = models.JSONField(default=dict)

    # Record counts for the admin list
    location_count = models.PositiveIntegerField(default=0)
    patient_count = models.PositiveIntegerField(default=0)
    lead_count = models.PositiveIntegerField(default=0)
    appointment_count = models.PositiveIntegerField(default=0)
    booking_count = models.PositiveIntegerField(default=0)

    fetched_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-fetched_at']
        get_latest_by = 'fetched_at'

    def __str__(self):
        return f"Snapshot {self.pk} at {self.fetched_at}"
