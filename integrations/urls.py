"""
URL configuration for integrations app.
"""

from django.urls import path
from . import views

app_name = 'integrations'

urlpatterns = [
    path('', views.integration_status, name='integration_status'),
    path('greyfinch/sync/', views.greyfinch_sync, name='greyfinch_sync'),
]
