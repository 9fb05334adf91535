# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Admin configuration for labs app.

Uses Django Unfold admin theme. Membership capabilities are grouped
by capability category.
"""

from django.contrib import admin, messages
from unfold.admin import ModelAdmin, TabularInline

from apps.common.permissions import CAPABILITY_CATEGORIES

from .models import CrossLabAccess, Lab, LabMembership, PermissionTemplate, ResourcePermission


class LabMembershipInline(TabularInline):
    model = LabMembership
    fields = ["user", "lab_role", "is_admin", "is_active", "access_start_date", "access_end_date"]
    extra = 0
    show_change_link = True


@admin.register(Lab)
class LabAdmin(ModelAdmin):
    """Admin for labs (tenants)."""

    list_display = ["name", "institution", "member_count", "is_active", "created_at"]
    list_filter = ["is_active"]
    search_fields = ["name", "slug", "institution"]
    prepopulated_fields = {"slug": ["name"]}
    inlines = [LabMembershipInline]
    actions = ["upgrade_member_permissions"]

    fieldsets = (
        (None, {"fields": ("name", "slug", "description", "institution", "created_by")}),
        ("Status", {"fields": ("is_active",)}),
    )

    def member_count(self, obj):
        return obj.memberships.filter(is_active=True).count()

    member_count.short_description = "Members"

    @admin.action(description="Re-apply default permissions to all members")
    def upgrade_member_permissions(self, request, queryset):
        from apps.authz.templates import PermissionTemplateService

        service = PermissionTemplateService()
        total = sum(service.upgrade_all(lab.pk) for lab in queryset)
        self.message_user(request, f"Upgraded {total} memberships.", messages.SUCCESS)


@admin.register(LabMembership)
class LabMembershipAdmin(ModelAdmin):
    """Admin for memberships with capability flags grouped by category."""

    list_display = ["user", "lab", "lab_role", "is_admin", "is_active", "access_end_date"]
    list_filter = ["lab", "lab_role", "is_admin", "is_active"]
    search_fields = ["user__email", "lab__name"]
    readonly_fields = ["joined_at", "left_at"]

    fieldsets = (
        (None, {"fields": ("user", "lab", "lab_role", "is_active", "joined_at", "left_at")}),
        ("Administration override", {"fields": ("is_admin", "is_super_admin")}),
        ("Access window", {"fields": ("access_start_date", "access_end_date")}),
    ) + tuple(
        (category["name"], {"fields": tuple(category["capabilities"]), "classes": ["collapse"]})
        for category in CAPABILITY_CATEGORIES.values()
    )


@admin.register(PermissionTemplate)
class PermissionTemplateAdmin(ModelAdmin):
    list_display = ["name", "lab", "key", "enabled_count", "is_default", "is_active"]
    list_filter = ["lab", "is_default", "is_active"]
    search_fields = ["name", "key"]

    def enabled_count(self, obj):
        return obj.enabled_count

    enabled_count.short_description = "Enabled flags"


@admin.register(ResourcePermission)
class ResourcePermissionAdmin(ModelAdmin):
    list_display = ["user", "entity_type", "entity_id", "can_view", "can_edit", "can_delete", "valid_until", "revoked_at"]
    list_filter = ["entity_type", "lab"]
    search_fields = ["user__email", "entity_id"]
    readonly_fields = ["revoked_at", "revoked_by", "created_at"]


@admin.register(CrossLabAccess)
class CrossLabAccessAdmin(ModelAdmin):
    list_display = ["user", "home_lab", "target_lab", "status", "valid_from", "valid_until"]
    list_filter = ["status", "target_lab"]
    search_fields = ["user__email", "target_lab__name"]
    readonly_fields = ["approved_by", "approved_at", "revoked_at", "created_at"]
    actions = ["approve_selected", "revoke_selected"]

    @admin.action(description="Approve selected grants")
    def approve_selected(self, request, queryset):
        for access in queryset:
            access.approve(by=request.user)
        self.message_user(request, f"Approved {queryset.count()} grants.", messages.SUCCESS)

    @admin.action(description="Revoke selected grants")
    def revoke_selected(self, request, queryset):
        for access in queryset:
            access.revoke(by=request.user)
        self.message_user(request, f"Revoked {queryset.count()} grants.", messages.SUCCESS)
