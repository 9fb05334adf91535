# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Research app configuration.

Stores the lab records (buckets, studies, tasks, ideas, deadlines)
whose owners the authorization engine consults.
"""

from django.apps import AppConfig


class ResearchConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.research"
    label = "research"
    verbose_name = "Research"
