"""
Analytics models for saved reports.

Metrics are computed on-the-fly from the latest Greyfinch snapshot;
a SavedReport freezes one computed result so it can be shared or
exported later.
"""

from django.conf import settings
from django.db import models


class SavedReport(models.Model):
    """
    A named period definition together with the metrics computed for it.
    """
    name = models.CharField(max_length=255)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    location_ids = models.JSONField(default=list, blank=True)

    # Computed output (PeriodMetrics.as_dict() and Insights.as_dict())
    metrics_json = models.JSONField(default=dict)
    insights_json = models.JSONField(default=dict)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='saved_reports'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.start_date} - {self.end_date})"
