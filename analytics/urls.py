"""
URL configuration for analytics app.
"""

from django.urls import path
from . import views

app_name = 'analytics'

urlpatterns = [
    path('api/metrics/', views.metrics_api, name='metrics_api'),
    path('api/insights/', views.insights_api, name='insights_api'),
    path('api/compare/', views.compare_api, name='compare_api'),
    path('api/reports/', views.save_report_api, name='save_report_api'),
]
