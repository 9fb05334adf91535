# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Admin configuration for research records.
"""

from django.contrib import admin
from unfold.admin import ModelAdmin

from .models import Bucket, Deadline, Idea, Study, Task


@admin.register(Bucket)
class BucketAdmin(ModelAdmin):
    list_display = ["name", "lab", "created_by", "created_at"]
    list_filter = ["lab"]
    search_fields = ["name"]


@admin.register(Study)
class StudyAdmin(ModelAdmin):
    list_display = ["name", "lab", "status", "created_by", "created_at"]
    list_filter = ["lab", "status"]
    search_fields = ["name"]


@admin.register(Task)
class TaskAdmin(ModelAdmin):
    list_display = ["title", "lab", "study", "assignee", "created_by", "due_date"]
    list_filter = ["lab"]
    search_fields = ["title"]


@admin.register(Idea)
class IdeaAdmin(ModelAdmin):
    list_display = ["title", "lab", "proposed_by", "created_at"]
    list_filter = ["lab"]
    search_fields = ["title"]


@admin.register(Deadline)
class DeadlineAdmin(ModelAdmin):
    list_display = ["title", "lab", "due_at", "created_by"]
    list_filter = ["lab"]
    search_fields = ["title"]
