# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Audit app configuration.

Append-only security audit trail for authorization decisions.
"""

from django.apps import AppConfig


class AuditConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.audit"
    label = "audit"
    verbose_name = "Security audit"
