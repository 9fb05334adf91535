# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Signals for the labs app.

Seeds every new lab with the default permission templates.
"""

import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Lab

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Lab)
def create_default_templates_on_lab_create(sender, instance, created, **kwargs):
    """
    Create the built-in permission templates when a lab is created:
    - Principal Investigator
    - Research Coordinator
    - Research Assistant
    - Research Fellow
    """
    if created:
        from apps.authz.templates import PermissionTemplateService

        try:
            templates = PermissionTemplateService().create_default_templates(instance, created_by=instance.created_by)
            logger.info(f"Created {len(templates)} default permission templates for lab: {instance.name}")
        except Exception as e:
            logger.error(f"Failed to create default permission templates for {instance.name}: {e}")
