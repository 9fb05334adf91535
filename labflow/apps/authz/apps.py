# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Authorization app configuration.

Layered permission engine (ownership, lab role, resource permission,
cross-lab access), permission templates and the view-level adapter.
"""

from django.apps import AppConfig


class AuthzConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.authz"
    label = "authz"
    verbose_name = "Authorization"
