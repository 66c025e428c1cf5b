"""
Django admin configuration for core models.
"""

from django.contrib import admin
from .models import Location, AcquisitionCost


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ['name', 'greyfinch_id', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'greyfinch_id']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(AcquisitionCost)
class AcquisitionCostAdmin(admin.ModelAdmin):
    list_display = ['location', 'period_start', 'period_end', 'amount', 'source']
    list_filter = ['location', 'source']
    search_fields = ['location__name', 'notes']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'period_start'
