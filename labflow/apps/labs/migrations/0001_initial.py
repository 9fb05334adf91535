import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

LAB_ROLE_CHOICES = [
    ("PRINCIPAL_INVESTIGATOR", "Principal Investigator"),
    ("CO_PRINCIPAL_INVESTIGATOR", "Co-Principal Investigator"),
    ("DATA_SCIENTIST", "Data Scientist"),
    ("DATA_ANALYST", "Data Analyst"),
    ("CLINICAL_RESEARCH_COORDINATOR", "Clinical Research Coordinator"),
    ("REGULATORY_COORDINATOR", "Regulatory Coordinator"),
    ("STAFF_COORDINATOR", "Staff Coordinator"),
    ("LAB_ADMINISTRATOR", "Lab Administrator"),
    ("FELLOW", "Fellow"),
    ("MEDICAL_STUDENT", "Medical Student"),
    ("RESEARCH_ASSISTANT", "Research Assistant"),
    ("VOLUNTEER_RESEARCH_ASSISTANT", "Volunteer Research Assistant"),
    ("EXTERNAL_COLLABORATOR", "External Collaborator"),
    ("PI", "PI (legacy)"),
    ("RESEARCH_COORDINATOR", "Research Coordinator (legacy)"),
    ("RESEARCHER", "Researcher (legacy)"),
    ("STUDENT", "Student (legacy)"),
    ("ADMIN", "Admin (legacy)"),
]

ENTITY_TYPE_CHOICES = [
    ("BUCKET", "Bucket"),
    ("STUDY", "Study"),
    ("TASK", "Task"),
    ("IDEA", "Idea"),
    ("DEADLINE", "Deadline"),
    ("LAB", "Lab"),
    ("USER", "User"),
]

GRANT_STATUS_CHOICES = [
    ("PENDING", "Pending"),
    ("APPROVED", "Approved"),
    ("REJECTED", "Rejected"),
    ("REVOKED", "Revoked"),
]


def _user_fk(related_name, verbose_name, required=False):
    if required:
        return models.ForeignKey(
            on_delete=django.db.models.deletion.CASCADE,
            related_name=related_name,
            to=settings.AUTH_USER_MODEL,
            verbose_name=verbose_name,
        )
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
        verbose_name=verbose_name,
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Lab",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200, verbose_name="Name")),
                ("slug", models.SlugField(max_length=100, unique=True, verbose_name="URL slug")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                ("institution", models.CharField(blank=True, max_length=200, verbose_name="Institution")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", _user_fk("created_labs", "Created by")),
            ],
            options={
                "verbose_name": "Lab",
                "verbose_name_plural": "Labs",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="LabMembership",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "lab_role",
                    models.CharField(
                        choices=LAB_ROLE_CHOICES,
                        default="RESEARCH_ASSISTANT",
                        max_length=40,
                        verbose_name="Lab role",
                    ),
                ),
                (
                    "is_admin",
                    models.BooleanField(
                        default=False, help_text="Has every capability in this lab", verbose_name="Administrator"
                    ),
                ),
                (
                    "is_super_admin",
                    models.BooleanField(
                        default=False, help_text="Has every capability in this lab", verbose_name="Super administrator"
                    ),
                ),
                ("access_start_date", models.DateTimeField(blank=True, null=True, verbose_name="Access starts")),
                ("access_end_date", models.DateTimeField(blank=True, null=True, verbose_name="Access ends")),
                ("can_manage_members", models.BooleanField(default=False, verbose_name="Manage lab members")),
                ("can_manage_lab_settings", models.BooleanField(default=False, verbose_name="Manage lab settings")),
                ("can_view_audit_logs", models.BooleanField(default=False, verbose_name="View audit logs")),
                ("can_manage_permissions", models.BooleanField(default=False, verbose_name="Manage member permissions")),
                ("can_create_projects", models.BooleanField(default=False, verbose_name="Create projects")),
                ("can_edit_all_projects", models.BooleanField(default=False, verbose_name="Edit all projects")),
                ("can_delete_projects", models.BooleanField(default=False, verbose_name="Delete projects")),
                ("can_view_all_projects", models.BooleanField(default=False, verbose_name="View all projects")),
                ("can_archive_projects", models.BooleanField(default=False, verbose_name="Archive projects")),
                ("can_restore_projects", models.BooleanField(default=False, verbose_name="Restore archived projects")),
                ("can_assign_tasks", models.BooleanField(default=False, verbose_name="Assign tasks")),
                ("can_edit_all_tasks", models.BooleanField(default=False, verbose_name="Edit all tasks")),
                ("can_delete_tasks", models.BooleanField(default=False, verbose_name="Delete tasks")),
                ("can_view_all_tasks", models.BooleanField(default=False, verbose_name="View all tasks")),
                ("can_manage_task_templates", models.BooleanField(default=False, verbose_name="Manage task templates")),
                ("can_set_task_priorities", models.BooleanField(default=False, verbose_name="Set task priorities")),
                ("can_approve_ideas", models.BooleanField(default=False, verbose_name="Approve ideas")),
                ("can_reject_ideas", models.BooleanField(default=False, verbose_name="Reject ideas")),
                ("can_edit_all_ideas", models.BooleanField(default=False, verbose_name="Edit all ideas")),
                ("can_delete_ideas", models.BooleanField(default=False, verbose_name="Delete ideas")),
                ("can_implement_ideas", models.BooleanField(default=False, verbose_name="Implement ideas")),
                ("can_access_reports", models.BooleanField(default=False, verbose_name="Access reports")),
                ("can_export_data", models.BooleanField(default=False, verbose_name="Export data")),
                ("can_view_analytics", models.BooleanField(default=False, verbose_name="View analytics")),
                ("can_manage_deadlines", models.BooleanField(default=False, verbose_name="Manage deadlines")),
                ("can_view_financials", models.BooleanField(default=False, verbose_name="View financials")),
                ("can_invite_external_users", models.BooleanField(default=False, verbose_name="Invite external users")),
                ("can_share_across_labs", models.BooleanField(default=False, verbose_name="Share across labs")),
                ("can_access_shared_projects", models.BooleanField(default=False, verbose_name="Access shared projects")),
                ("can_create_cross_lab_projects", models.BooleanField(default=False, verbose_name="Create cross-lab projects")),
                ("can_schedule_meetings", models.BooleanField(default=False, verbose_name="Schedule meetings")),
                ("can_manage_standups", models.BooleanField(default=False, verbose_name="Manage standups")),
                ("can_send_lab_announcements", models.BooleanField(default=False, verbose_name="Send lab announcements")),
                ("can_moderate_discussions", models.BooleanField(default=False, verbose_name="Moderate discussions")),
                ("can_manage_assets", models.BooleanField(default=False, verbose_name="Manage assets")),
                ("can_allocate_budget", models.BooleanField(default=False, verbose_name="Allocate budget")),
                ("can_manage_equipment", models.BooleanField(default=False, verbose_name="Manage equipment")),
                ("can_manage_documents", models.BooleanField(default=False, verbose_name="Manage documents")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("joined_at", models.DateTimeField(auto_now_add=True, verbose_name="Joined")),
                ("left_at", models.DateTimeField(blank=True, null=True, verbose_name="Left")),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "lab",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="labs.lab",
                        verbose_name="Lab",
                    ),
                ),
                ("user", _user_fk("lab_memberships", "User", required=True)),
            ],
            options={
                "verbose_name": "Lab membership",
                "verbose_name_plural": "Lab memberships",
                "ordering": ["-joined_at"],
                "indexes": [
                    models.Index(fields=["lab", "is_active"], name="labs_member_lab_active_idx"),
                    models.Index(fields=["user", "is_active"], name="labs_member_user_active_idx"),
                ],
                "unique_together": {("user", "lab")},
            },
        ),
        migrations.CreateModel(
            name="PermissionTemplate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100, verbose_name="Name")),
                (
                    "key",
                    models.SlugField(
                        blank=True,
                        help_text="Built-in template this one was created from (empty for custom templates)",
                        verbose_name="Template key",
                    ),
                ),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                ("capabilities", models.JSONField(blank=True, default=dict, verbose_name="Capabilities")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("is_default", models.BooleanField(default=False, verbose_name="Default template")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", _user_fk("created_permission_templates", "Created by")),
                (
                    "lab",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="permission_templates",
                        to="labs.lab",
                        verbose_name="Lab",
                    ),
                ),
            ],
            options={
                "verbose_name": "Permission template",
                "verbose_name_plural": "Permission templates",
                "ordering": ["lab", "name"],
                "unique_together": {("lab", "name")},
            },
        ),
        migrations.CreateModel(
            name="ResourcePermission",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("entity_type", models.CharField(choices=ENTITY_TYPE_CHOICES, max_length=20, verbose_name="Entity type")),
                ("entity_id", models.CharField(max_length=64, verbose_name="Entity ID")),
                ("can_view", models.BooleanField(default=False, verbose_name="View")),
                ("can_edit", models.BooleanField(default=False, verbose_name="Edit")),
                ("can_delete", models.BooleanField(default=False, verbose_name="Delete")),
                ("can_share", models.BooleanField(default=False, verbose_name="Share")),
                ("can_assign", models.BooleanField(default=False, verbose_name="Assign")),
                ("valid_from", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Valid from")),
                ("valid_until", models.DateTimeField(blank=True, null=True, verbose_name="Valid until")),
                ("revoked_at", models.DateTimeField(blank=True, null=True, verbose_name="Revoked at")),
                ("reason", models.TextField(blank=True, verbose_name="Reason")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("granted_by", _user_fk("granted_resource_permissions", "Granted by")),
                (
                    "lab",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="resource_permissions",
                        to="labs.lab",
                        verbose_name="Lab",
                    ),
                ),
                ("revoked_by", _user_fk("revoked_resource_permissions", "Revoked by")),
                ("user", _user_fk("resource_permissions", "User", required=True)),
            ],
            options={
                "verbose_name": "Resource permission",
                "verbose_name_plural": "Resource permissions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user", "entity_type", "entity_id"], name="labs_resperm_lookup_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CrossLabAccess",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "status",
                    models.CharField(
                        choices=GRANT_STATUS_CHOICES, default="PENDING", max_length=20, verbose_name="Status"
                    ),
                ),
                ("can_view_projects", models.BooleanField(default=True, verbose_name="View projects")),
                ("can_edit_shared_projects", models.BooleanField(default=False, verbose_name="Edit shared projects")),
                ("can_join_meetings", models.BooleanField(default=False, verbose_name="Join meetings")),
                ("can_view_reports", models.BooleanField(default=False, verbose_name="View reports")),
                ("valid_from", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Valid from")),
                ("valid_until", models.DateTimeField(blank=True, null=True, verbose_name="Valid until")),
                ("revoked_at", models.DateTimeField(blank=True, null=True, verbose_name="Revoked at")),
                ("approved_at", models.DateTimeField(blank=True, null=True, verbose_name="Approved at")),
                ("reason", models.TextField(blank=True, verbose_name="Reason")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("approved_by", _user_fk("approved_cross_lab_access", "Approved by")),
                (
                    "home_lab",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="outgoing_cross_lab_access",
                        to="labs.lab",
                        verbose_name="Home lab",
                    ),
                ),
                ("requested_by", _user_fk("requested_cross_lab_access", "Requested by")),
                (
                    "target_lab",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="incoming_cross_lab_access",
                        to="labs.lab",
                        verbose_name="Target lab",
                    ),
                ),
                ("user", _user_fk("cross_lab_access", "User", required=True)),
            ],
            options={
                "verbose_name": "Cross-lab access",
                "verbose_name_plural": "Cross-lab access grants",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user", "target_lab", "status"], name="labs_crosslab_lookup_idx"),
                ],
            },
        ),
    ]
