# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Admin configuration for accounts app.

Lab roles and capability flags are not edited here; they live on the
lab membership (see apps.labs.admin).
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.forms import UserChangeForm, UserCreationForm
from unfold.admin import ModelAdmin

from .models import User


class LabUserCreationForm(UserCreationForm):
    """Minimal creation form: email and password only."""

    class Meta:
        model = User
        fields = ("email",)


class LabUserChangeForm(UserChangeForm):
    class Meta:
        model = User
        fields = ("email", "first_name", "last_name", "institution", "orcid", "is_active", "is_staff", "is_superuser")


@admin.register(User)
class UserAdmin(BaseUserAdmin, ModelAdmin):
    """User admin with the lab membership count alongside the basics."""

    form = LabUserChangeForm
    add_form = LabUserCreationForm

    list_display = (
        "email",
        "full_name",
        "institution",
        "is_active",
        "is_staff",
        "membership_count",
        "date_joined",
    )
    list_filter = ("is_staff", "is_superuser", "is_active")
    search_fields = ("email", "first_name", "last_name", "institution")
    ordering = ("email",)
    readonly_fields = ("date_joined",)

    fieldsets = (
        (
            "Identification",
            {
                "fields": ("email", "password"),
                "description": "Email is the login name.",
            },
        ),
        (
            "Profile",
            {
                "fields": ("first_name", "last_name", "institution", "orcid"),
                "classes": ("collapse",),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active", "date_joined"),
            },
        ),
        (
            "System permissions",
            {
                "fields": ("is_staff", "is_superuser"),
                "description": "Admin site access only. Lab capabilities are managed per membership.",
                "classes": ("collapse",),
            },
        ),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "password1", "password2"),
            },
        ),
    )

    def membership_count(self, obj):
        return obj.lab_memberships.filter(is_active=True).count()

    membership_count.short_description = "Active labs"
