"""
Core models for Orthodash.

Locations are synced from Greyfinch (PMS is source of truth).
Acquisition costs are entered by staff or imported from ad platforms.
"""

from django.db import models


class Location(models.Model):
    """
    A practice site.
    Records from Greyfinch are tagged to at most one location.
    """
    name = models.CharField(max_length=255)
    greyfinch_id = models.CharField(max_length=100, blank=True, db_index=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    def as_raw(self) -> dict:
        """The location in the shape Greyfinch returns it."""
        return {'id': self.greyfinch_id or str(self.pk), 'name': self.name}


class AcquisitionCost(models.Model):
    """
    Marketing spend for a location over a date range.

    When entries exist for a period they replace the per-lead cost
    estimate in analytics.
    """
    SOURCE_CHOICES = [
        ('manual', 'Manual Entry'),
        ('google_ads', 'Google Ads'),
        ('meta_ads', 'Meta Ads'),
        ('quickbooks', 'QuickBooks'),
    ]

    location = models.ForeignKey(
        Location,
        on_delete=models.CASCADE,
        related_name='acquisition_costs',
        null=True, blank=True,
    )
    period_start = models.DateField(db_index=True)
    period_end = models.DateField(null=True, blank=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default='manual')
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-period_start']

    def __str__(self):
        where = self.location or 'All locations'
        return f"{where} - {self.period_start} ({self.get_source_display()})"

    def as_raw(self) -> dict:
        """The entry in the shape the analytics record adapter reads."""
        return {
            'period': self.period_start.isoformat(),
            'cost': str(self.amount),
            'source': self.source,
            'location': self.location.as_raw() if self.location else None,
        }
