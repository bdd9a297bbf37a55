from django.urls import path

from .manifest import manifest_view
from .service_worker import service_worker_view

app_name = "cachefirst"

urlpatterns = [
    path("sw.js", service_worker_view, name="service_worker"),
    path("manifest.json", manifest_view, name="manifest"),
]
