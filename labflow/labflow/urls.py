"""
URL configuration for LabFlow project.
"""

from django.contrib import admin
from django.db import connection
from django.http import JsonResponse
from django.urls import include, path


def health_check(request):
    """Health check endpoint for Docker/Kubernetes."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        db_status = "ok"
    except Exception:
        db_status = "error"

    return JsonResponse(
        {
            "status": "ok" if db_status == "ok" else "degraded",
            "database": db_status,
        }
    )


urlpatterns = [
    # Health check (for Docker/Kubernetes)
    path("health/", health_check, name="health_check"),
    # Admin
    path("admin/", admin.site.urls),
    # Authorization API (permission checks, template application)
    path("api/", include("apps.authz.urls", namespace="authz")),
]
