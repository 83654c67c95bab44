from django.urls import path

from .views.sync_views import HealthCheckView, WordPressSyncView

urlpatterns = [
    path("healthz/", HealthCheckView.as_view(), name="healthz"),
    path("patients/sync-wordpress/", WordPressSyncView.as_view(), name="patients-sync-wordpress"),
]
