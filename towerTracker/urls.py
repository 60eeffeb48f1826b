"""URL configuration for towerTracker.

Runs are managed through the management commands; only the admin is routed.
"""

from __future__ import annotations

from django.contrib import admin
from django.urls import path

urlpatterns = [
    path("admin/", admin.site.urls),
]
