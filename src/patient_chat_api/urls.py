from django.urls import include, path

from plugins.django_interface.views.sync_views import MetricsView

urlpatterns = [
    path('api/',     include('plugins.django_interface.urls')),
    path('metrics/', MetricsView.as_view(), name='metrics'),
]
