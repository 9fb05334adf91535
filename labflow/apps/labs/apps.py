# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Labs app configuration.

Multi-tenant lab structure: labs, memberships with capability flags,
permission templates and the per-entity and cross-lab grants.
"""

from django.apps import AppConfig


class LabsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.labs"
    label = "labs"
    verbose_name = "Labs"

    def ready(self):
        # Import signals to register them
        from . import signals  # noqa: F401
