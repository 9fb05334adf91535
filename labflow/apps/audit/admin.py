# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Admin configuration for the security audit log (read-only).
"""

from django.contrib import admin
from unfold.admin import ModelAdmin

from .models import SecurityAuditLog


@admin.register(SecurityAuditLog)
class SecurityAuditLogAdmin(ModelAdmin):
    """Read-only view of the audit trail."""

    list_display = ["created_at", "action", "entity_type", "entity_id", "user_email", "was_authorized"]
    list_filter = ["action", "entity_type", "was_authorized", "authorization_method", "created_at"]
    search_fields = ["entity_id", "user_id", "user_email", "lab_id", "endpoint"]
    date_hierarchy = "created_at"
    readonly_fields = [
        "action",
        "entity_type",
        "entity_id",
        "user_id",
        "user_email",
        "lab_id",
        "authorization_method",
        "required_permission",
        "was_authorized",
        "details",
        "error_message",
        "ip_address",
        "user_agent",
        "endpoint",
        "http_method",
        "session_id",
        "created_at",
    ]

    fieldsets = (
        (None, {"fields": ("action", "entity_type", "entity_id", "lab_id")}),
        (
            "Decision",
            {
                "fields": (
                    "authorization_method",
                    "required_permission",
                    "was_authorized",
                    "details",
                    "error_message",
                ),
            },
        ),
        (
            "Request",
            {
                "fields": (
                    "user_id",
                    "user_email",
                    "ip_address",
                    "user_agent",
                    "endpoint",
                    "http_method",
                    "session_id",
                    "created_at",
                ),
                "classes": ["collapse"],
            },
        ),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
