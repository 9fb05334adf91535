# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Research records.

Every record belongs to one lab and carries an owner field:
created_by for most types, proposed_by for ideas. Ownership grants the
owner full control over the record (see apps.authz.layers).
"""

import uuid

from django.conf import settings as django_settings
from django.db import models


class LabRecord(models.Model):
    """Common fields of all lab-scoped records."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    lab = models.ForeignKey(
        "labs.Lab",
        on_delete=models.CASCADE,
        related_name="+",
        verbose_name="Lab",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


def _owner_field(related_name):
    return models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name=related_name,
        verbose_name="Created by",
    )


class Bucket(LabRecord):
    """Grouping of studies."""

    name = models.CharField(max_length=200, verbose_name="Name")
    description = models.TextField(blank=True, verbose_name="Description")
    created_by = _owner_field("created_buckets")

    class Meta:
        verbose_name = "Bucket"
        verbose_name_plural = "Buckets"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Study(LabRecord):
    """A research study (project)."""

    class Status(models.TextChoices):
        PLANNING = "PLANNING", "Planning"
        ACTIVE = "ACTIVE", "Active"
        ON_HOLD = "ON_HOLD", "On hold"
        COMPLETED = "COMPLETED", "Completed"
        ARCHIVED = "ARCHIVED", "Archived"

    name = models.CharField(max_length=200, verbose_name="Name")
    bucket = models.ForeignKey(
        Bucket,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="studies",
        verbose_name="Bucket",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PLANNING, verbose_name="Status")
    created_by = _owner_field("created_studies")

    class Meta:
        verbose_name = "Study"
        verbose_name_plural = "Studies"
        ordering = ["-created_at"]

    def __str__(self):
        return self.name


class Task(LabRecord):
    """A unit of work, optionally attached to a study."""

    title = models.CharField(max_length=300, verbose_name="Title")
    study = models.ForeignKey(
        Study,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="tasks",
        verbose_name="Study",
    )
    assignee = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_research_tasks",
        verbose_name="Assignee",
    )
    due_date = models.DateField(null=True, blank=True, verbose_name="Due date")
    created_by = _owner_field("created_research_tasks")

    class Meta:
        verbose_name = "Task"
        verbose_name_plural = "Tasks"
        ordering = ["-created_at"]

    def __str__(self):
        return self.title


class Idea(LabRecord):
    """A proposal for future work."""

    title = models.CharField(max_length=300, verbose_name="Title")
    description = models.TextField(blank=True, verbose_name="Description")
    proposed_by = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="proposed_ideas",
        verbose_name="Proposed by",
    )

    class Meta:
        verbose_name = "Idea"
        verbose_name_plural = "Ideas"
        ordering = ["-created_at"]

    def __str__(self):
        return self.title


class Deadline(LabRecord):
    """A dated milestone (grant submission, IRB renewal, ...)."""

    title = models.CharField(max_length=300, verbose_name="Title")
    due_at = models.DateTimeField(verbose_name="Due")
    study = models.ForeignKey(
        Study,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="deadlines",
        verbose_name="Study",
    )
    created_by = _owner_field("created_deadlines")

    class Meta:
        verbose_name = "Deadline"
        verbose_name_plural = "Deadlines"
        ordering = ["due_at"]

    def __str__(self):
        return self.title
