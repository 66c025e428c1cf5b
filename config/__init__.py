"""
Orthodash - Practice analytics for multi-location orthodontic practices

This module makes Celery app available for Django.
"""

from .celery import app as celery_app

__all__ = ('celery_app',)
