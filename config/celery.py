"""
Celery configuration for Orthodash.

Usage:
    # Run worker (dev)
    celery -A config worker -l info

    # Run beat scheduler (dev)
    celery -A config beat -l info
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

app = Celery('orthodash')

# Read config from Django settings, using CELERY_ prefix
app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()


app.conf.beat_schedule = {
    'sync-greyfinch-data': {
        'task': 'integrations.tasks.sync_greyfinch',
        'schedule': 900.0,  # Every 15 minutes
    },
}
