"""
Django admin configuration for analytics models.
"""

from django.contrib import admin
from .models import SavedReport


@admin.register(SavedReport)
class SavedReportAdmin(admin.ModelAdmin):
    list_display = ['name', 'start_date', 'end_date', 'created_by', 'created_at']
    search_fields = ['name']
    date_hierarchy = 'created_at'
    readonly_fields = ['metrics_json', 'insights_json', 'created_at', 'updated_at']
    raw_id_fields = ['created_by']
