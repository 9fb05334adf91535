# SPDX-License-Identifier: AGPL-3.0-or-later
"""
URL configuration for the authorization API.
"""

from django.urls import path

from . import views

app_name = "authz"

urlpatterns = [
    path("permissions/check/", views.check_permission_view, name="check_permission"),
    path(
        "labs/<uuid:lab_id>/members/<uuid:user_id>/apply-template/",
        views.apply_template_view,
        name="apply_template",
    ),
]
