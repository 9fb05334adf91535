# SPDX-License-Identifier: AGPL-3.0-or-later
"""
Lab (tenant) models and the grant sources of the authorization engine.

A deployment hosts many labs. A user can be a member of several labs,
each membership carrying its own role, validity window and capability
flags. Besides membership, three more grant sources exist:

1. Ownership: derived from the records in apps.research (no table here)
2. ResourcePermission: a narrow grant on one entity for one user
3. CrossLabAccess: an approved, time-bounded grant into another lab

PermissionTemplate bundles capability flags so they can be applied to a
membership in one step.
"""

import uuid

from django.conf import settings as django_settings
from django.db import models
from django.utils import timezone
from django.utils.text import slugify

from apps.authz.types import EntityType, GrantStatus
from apps.common.permissions import CAPABILITIES, TEMPLATE_FLAGS


class Lab(models.Model):
    """
    A research lab (tenant).

    Studies, tasks, ideas and deadlines all belong to exactly one lab.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200, verbose_name="Name")
    slug = models.SlugField(max_length=100, unique=True, verbose_name="URL slug")
    description = models.TextField(blank=True, verbose_name="Description")
    institution = models.CharField(max_length=200, blank=True, verbose_name="Institution")

    created_by = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_labs",
        verbose_name="Created by",
    )

    is_active = models.BooleanField(default=True, verbose_name="Active")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Lab"
        verbose_name_plural = "Labs"
        ordering = ["name"]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)


class LabRole(models.TextChoices):
    """Role of a member within one lab."""

    # Leadership
    PRINCIPAL_INVESTIGATOR = "PRINCIPAL_INVESTIGATOR", "Principal Investigator"
    CO_PRINCIPAL_INVESTIGATOR = "CO_PRINCIPAL_INVESTIGATOR", "Co-Principal Investigator"
    # Data & analytics
    DATA_SCIENTIST = "DATA_SCIENTIST", "Data Scientist"
    DATA_ANALYST = "DATA_ANALYST", "Data Analyst"
    # Coordination & management
    CLINICAL_RESEARCH_COORDINATOR = "CLINICAL_RESEARCH_COORDINATOR", "Clinical Research Coordinator"
    REGULATORY_COORDINATOR = "REGULATORY_COORDINATOR", "Regulatory Coordinator"
    STAFF_COORDINATOR = "STAFF_COORDINATOR", "Staff Coordinator"
    LAB_ADMINISTRATOR = "LAB_ADMINISTRATOR", "Lab Administrator"
    # Training positions
    FELLOW = "FELLOW", "Fellow"
    MEDICAL_STUDENT = "MEDICAL_STUDENT", "Medical Student"
    # Research support
    RESEARCH_ASSISTANT = "RESEARCH_ASSISTANT", "Research Assistant"
    VOLUNTEER_RESEARCH_ASSISTANT = "VOLUNTEER_RESEARCH_ASSISTANT", "Volunteer Research Assistant"
    # External
    EXTERNAL_COLLABORATOR = "EXTERNAL_COLLABORATOR", "External Collaborator"
    # Legacy roles
    PI = "PI", "PI (legacy)"
    RESEARCH_COORDINATOR = "RESEARCH_COORDINATOR", "Research Coordinator (legacy)"
    RESEARCHER = "RESEARCHER", "Researcher (legacy)"
    STUDENT = "STUDENT", "Student (legacy)"
    ADMIN = "ADMIN", "Admin (legacy)"


class LabMembershipManager(models.Manager):
    def active(self):
        return self.filter(is_active=True)

    def join(self, user, lab, role=LabRole.RESEARCH_ASSISTANT, added_by=None):
        """
        Add a user to a lab (or reactivate a former membership).

        The default permission template for the role is applied, so a new
        member starts with the capability bundle of their role.
        """
        from apps.authz.templates import PermissionTemplateService

        membership, created = self.get_or_create(
            user=user,
            lab=lab,
            defaults={"lab_role": role},
        )
        if not created:
            membership.lab_role = role
            membership.is_active = True
            membership.left_at = None
            membership.save(update_fields=["lab_role", "is_active", "left_at", "updated_at"])

        PermissionTemplateService().apply_default_capabilities(
            user.pk,
            lab.pk,
            role,
            applied_by=getattr(added_by, "pk", None),
        )
        membership.refresh_from_db()
        return membership


class LabMembership(models.Model):
    """
    User membership in a lab.

    Consulted by the lab-role layer only while is_active is set and the
    current time lies inside [access_start_date, access_end_date] (an
    unset bound is open). Memberships are never hard-deleted;
    delete() deactivates them.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="lab_memberships",
        verbose_name="User",
    )
    lab = models.ForeignKey(
        Lab,
        on_delete=models.CASCADE,
        related_name="memberships",
        verbose_name="Lab",
    )
    lab_role = models.CharField(
        max_length=40,
        choices=LabRole.choices,
        default=LabRole.RESEARCH_ASSISTANT,
        verbose_name="Lab role",
    )

    # Bypass flags
    is_admin = models.BooleanField(
        default=False,
        verbose_name="Administrator",
        help_text="Has every capability in this lab",
    )
    is_super_admin = models.BooleanField(
        default=False,
        verbose_name="Super administrator",
        help_text="Has every capability in this lab",
    )

    # Validity window
    access_start_date = models.DateTimeField(null=True, blank=True, verbose_name="Access starts")
    access_end_date = models.DateTimeField(null=True, blank=True, verbose_name="Access ends")

    # Administration
    can_manage_members = models.BooleanField(default=False, verbose_name="Manage lab members")
    can_manage_lab_settings = models.BooleanField(default=False, verbose_name="Manage lab settings")
    can_view_audit_logs = models.BooleanField(default=False, verbose_name="View audit logs")
    can_manage_permissions = models.BooleanField(default=False, verbose_name="Manage member permissions")

    # Projects & studies
    can_create_projects = models.BooleanField(default=False, verbose_name="Create projects")
    can_edit_all_projects = models.BooleanField(default=False, verbose_name="Edit all projects")
    can_delete_projects = models.BooleanField(default=False, verbose_name="Delete projects")
    can_view_all_projects = models.BooleanField(default=False, verbose_name="View all projects")
    can_archive_projects = models.BooleanField(default=False, verbose_name="Archive projects")
    can_restore_projects = models.BooleanField(default=False, verbose_name="Restore archived projects")

    # Tasks
    can_assign_tasks = models.BooleanField(default=False, verbose_name="Assign tasks")
    can_edit_all_tasks = models.BooleanField(default=False, verbose_name="Edit all tasks")
    can_delete_tasks = models.BooleanField(default=False, verbose_name="Delete tasks")
    can_view_all_tasks = models.BooleanField(default=False, verbose_name="View all tasks")
    can_manage_task_templates = models.BooleanField(default=False, verbose_name="Manage task templates")
    can_set_task_priorities = models.BooleanField(default=False, verbose_name="Set task priorities")

    # Ideas
    can_approve_ideas = models.BooleanField(default=False, verbose_name="Approve ideas")
    can_reject_ideas = models.BooleanField(default=False, verbose_name="Reject ideas")
    can_edit_all_ideas = models.BooleanField(default=False, verbose_name="Edit all ideas")
    can_delete_ideas = models.BooleanField(default=False, verbose_name="Delete ideas")
    can_implement_ideas = models.BooleanField(default=False, verbose_name="Implement ideas")

    # Data & reporting
    can_access_reports = models.BooleanField(default=False, verbose_name="Access reports")
    can_export_data = models.BooleanField(default=False, verbose_name="Export data")
    can_view_analytics = models.BooleanField(default=False, verbose_name="View analytics")
    can_manage_deadlines = models.BooleanField(default=False, verbose_name="Manage deadlines")
    can_view_financials = models.BooleanField(default=False, verbose_name="View financials")

    # Cross-lab collaboration
    can_invite_external_users = models.BooleanField(default=False, verbose_name="Invite external users")
    can_share_across_labs = models.BooleanField(default=False, verbose_name="Share across labs")
    can_access_shared_projects = models.BooleanField(default=False, verbose_name="Access shared projects")
    can_create_cross_lab_projects = models.BooleanField(default=False, verbose_name="Create cross-lab projects")

    # Meetings & communication
    can_schedule_meetings = models.BooleanField(default=False, verbose_name="Schedule meetings")
    can_manage_standups = models.BooleanField(default=False, verbose_name="Manage standups")
    can_send_lab_announcements = models.BooleanField(default=False, verbose_name="Send lab announcements")
    can_moderate_discussions = models.BooleanField(default=False, verbose_name="Moderate discussions")

    # Resources & assets
    can_manage_assets = models.BooleanField(default=False, verbose_name="Manage assets")
    can_allocate_budget = models.BooleanField(default=False, verbose_name="Allocate budget")
    can_manage_equipment = models.BooleanField(default=False, verbose_name="Manage equipment")
    can_manage_documents = models.BooleanField(default=False, verbose_name="Manage documents")

    # Status
    is_active = models.BooleanField(default=True, verbose_name="Active")
    joined_at = models.DateTimeField(auto_now_add=True, verbose_name="Joined")
    left_at = models.DateTimeField(null=True, blank=True, verbose_name="Left")
    updated_at = models.DateTimeField(auto_now=True)

    objects = LabMembershipManager()

    class Meta:
        verbose_name = "Lab membership"
        verbose_name_plural = "Lab memberships"
        unique_together = ["user", "lab"]
        ordering = ["-joined_at"]
        indexes = [
            models.Index(fields=["lab", "is_active"], name="labs_member_lab_active_idx"),
            models.Index(fields=["user", "is_active"], name="labs_member_user_active_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.lab}"

    def delete(self, *args, **kwargs):
        # Memberships are deactivated, never removed
        self.deactivate()

    def deactivate(self):
        self.is_active = False
        self.left_at = timezone.now()
        self.save(update_fields=["is_active", "left_at", "updated_at"])

    @property
    def enabled_capabilities(self) -> list[str]:
        """Capability flags currently switched on."""
        return [name for name in CAPABILITIES if getattr(self, name)]

    def capability_bundle(self) -> dict:
        """All template flags with their current values."""
        return {flag: getattr(self, flag) for flag in TEMPLATE_FLAGS}


class PermissionTemplate(models.Model):
    """
    Named, lab-scoped bundle of membership capability flags.

    Applying a template overwrites the membership's flags wholesale.
    Default templates (is_default) carry the key of the built-in bundle
    they were created from; upgrade runs re-apply them by role.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    lab = models.ForeignKey(
        Lab,
        on_delete=models.CASCADE,
        related_name="permission_templates",
        verbose_name="Lab",
    )

    name = models.CharField(max_length=100, verbose_name="Name")
    key = models.SlugField(
        max_length=50,
        blank=True,
        verbose_name="Template key",
        help_text="Built-in template this one was created from (empty for custom templates)",
    )
    description = models.TextField(blank=True, verbose_name="Description")
    capabilities = models.JSONField(default=dict, blank=True, verbose_name="Capabilities")

    is_active = models.BooleanField(default=True, verbose_name="Active")
    is_default = models.BooleanField(default=False, verbose_name="Default template")

    created_by = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_permission_templates",
        verbose_name="Created by",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Permission template"
        verbose_name_plural = "Permission templates"
        unique_together = ["lab", "name"]
        ordering = ["lab", "name"]

    def __str__(self):
        return f"{self.name} ({self.lab.name})"

    @property
    def enabled_count(self) -> int:
        return sum(1 for value in self.capabilities.values() if value)


class ResourcePermission(models.Model):
    """
    Grant on a single entity for a single user.

    Valid while not revoked and valid_from <= now <= valid_until (an unset
    valid_until never expires). Several grants may exist for the same
    user and entity; any one valid grant covering the action suffices.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="resource_permissions",
        verbose_name="User",
    )
    lab = models.ForeignKey(
        Lab,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="resource_permissions",
        verbose_name="Lab",
    )
    entity_type = models.CharField(max_length=20, choices=EntityType.choices(), verbose_name="Entity type")
    entity_id = models.CharField(max_length=64, verbose_name="Entity ID")

    can_view = models.BooleanField(default=False, verbose_name="View")
    can_edit = models.BooleanField(default=False, verbose_name="Edit")
    can_delete = models.BooleanField(default=False, verbose_name="Delete")
    can_share = models.BooleanField(default=False, verbose_name="Share")
    can_assign = models.BooleanField(default=False, verbose_name="Assign")

    valid_from = models.DateTimeField(default=timezone.now, verbose_name="Valid from")
    valid_until = models.DateTimeField(null=True, blank=True, verbose_name="Valid until")
    revoked_at = models.DateTimeField(null=True, blank=True, verbose_name="Revoked at")

    granted_by = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="granted_resource_permissions",
        verbose_name="Granted by",
    )
    revoked_by = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="revoked_resource_permissions",
        verbose_name="Revoked by",
    )
    reason = models.TextField(blank=True, verbose_name="Reason")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Resource permission"
        verbose_name_plural = "Resource permissions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "entity_type", "entity_id"], name="labs_resperm_lookup_idx"),
        ]

    def __str__(self):
        return f"{self.user} on {self.entity_type} {self.entity_id}"

    def revoke(self, by=None):
        self.revoked_at = timezone.now()
        self.revoked_by = by
        self.save(update_fields=["revoked_at", "revoked_by"])


class CrossLabAccess(models.Model):
    """
    Grant allowing a user to act on another lab's entities.

    Only APPROVED grants inside their validity window are evaluated.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cross_lab_access",
        verbose_name="User",
    )
    home_lab = models.ForeignKey(
        Lab,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="outgoing_cross_lab_access",
        verbose_name="Home lab",
    )
    target_lab = models.ForeignKey(
        Lab,
        on_delete=models.CASCADE,
        related_name="incoming_cross_lab_access",
        verbose_name="Target lab",
    )
    status = models.CharField(
        max_length=20,
        choices=GrantStatus.choices(),
        default=GrantStatus.PENDING.value,
        verbose_name="Status",
    )

    can_view_projects = models.BooleanField(default=True, verbose_name="View projects")
    can_edit_shared_projects = models.BooleanField(default=False, verbose_name="Edit shared projects")
    can_join_meetings = models.BooleanField(default=False, verbose_name="Join meetings")
    can_view_reports = models.BooleanField(default=False, verbose_name="View reports")

    valid_from = models.DateTimeField(default=timezone.now, verbose_name="Valid from")
    valid_until = models.DateTimeField(null=True, blank=True, verbose_name="Valid until")
    revoked_at = models.DateTimeField(null=True, blank=True, verbose_name="Revoked at")

    requested_by = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="requested_cross_lab_access",
        verbose_name="Requested by",
    )
    approved_by = models.ForeignKey(
        django_settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_cross_lab_access",
        verbose_name="Approved by",
    )
    approved_at = models.DateTimeField(null=True, blank=True, verbose_name="Approved at")
    reason = models.TextField(blank=True, verbose_name="Reason")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Cross-lab access"
        verbose_name_plural = "Cross-lab access grants"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "target_lab", "status"], name="labs_crosslab_lookup_idx"),
        ]

    def __str__(self):
        return f"{self.user} -> {self.target_lab} ({self.status})"

    def approve(self, by=None):
        self.status = GrantStatus.APPROVED.value
        self.approved_by = by
        self.approved_at = timezone.now()
        self.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])

    def reject(self, by=None):
        self.status = GrantStatus.REJECTED.value
        self.approved_by = by
        self.save(update_fields=["status", "approved_by", "updated_at"])

    def revoke(self, by=None):
        self.status = GrantStatus.REVOKED.value
        self.revoked_at = timezone.now()
        self.save(update_fields=["status", "revoked_at", "updated_at"])
