"""
Django admin configuration for integration models.
"""

from django.contrib import admin
from .models import Integration, PracticeDataSnapshot


@admin.register(Integration)
class IntegrationAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'integration_type', 'is_active', 'last_sync_at', 'last_error']
    list_filter = ['integration_type', 'is_active']
    readonly_fields = ['last_sync_at', 'last_error', 'created_at', 'updated_at']


@admin.register(PracticeDataSnapshot)
class PracticeDataSnapshotAdmin(admin.ModelAdmin):
    list_display = [
        'fetched_at', 'integration', 'location_count', 'patient_count',
        'lead_count', 'appointment_count', 'booking_count'
    ]
    list_filter = ['integration']
    date_hierarchy = 'fetched_at'
    readonly_fields = ['data_json', 'fetched_at']
