import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SecurityAuditLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("CREATE", "Create"),
                            ("UPDATE", "Update"),
                            ("DELETE", "Delete"),
                            ("LOGIN", "Login"),
                            ("LOGOUT", "Logout"),
                            ("ACCESS_DENIED", "Access Denied"),
                            ("PERMISSION_CHECK", "Permission Check"),
                            ("PERMISSION_CHANGE", "Permission Change"),
                        ],
                        max_length=30,
                        verbose_name="Action",
                    ),
                ),
                (
                    "entity_type",
                    models.CharField(
                        choices=[
                            ("BUCKET", "Bucket"),
                            ("STUDY", "Study"),
                            ("TASK", "Task"),
                            ("IDEA", "Idea"),
                            ("DEADLINE", "Deadline"),
                            ("LAB", "Lab"),
                            ("USER", "User"),
                            ("LAB_MEMBER", "Lab member"),
                            ("PERMISSION_TEMPLATE", "Permission template"),
                        ],
                        max_length=30,
                        verbose_name="Entity type",
                    ),
                ),
                ("entity_id", models.CharField(blank=True, max_length=128, null=True, verbose_name="Entity ID")),
                ("user_id", models.CharField(blank=True, max_length=64, null=True, verbose_name="User ID")),
                ("user_email", models.CharField(blank=True, max_length=254, verbose_name="User email")),
                ("lab_id", models.CharField(blank=True, max_length=64, null=True, verbose_name="Lab ID")),
                ("authorization_method", models.CharField(blank=True, max_length=30, verbose_name="Authorization method")),
                ("required_permission", models.CharField(blank=True, max_length=100, verbose_name="Required permission")),
                ("was_authorized", models.BooleanField(default=False, verbose_name="Authorized")),
                ("details", models.JSONField(blank=True, default=dict, verbose_name="Details")),
                ("error_message", models.TextField(blank=True, verbose_name="Error message")),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True, verbose_name="IP address")),
                ("user_agent", models.TextField(blank=True, verbose_name="User agent")),
                ("endpoint", models.CharField(blank=True, max_length=500, verbose_name="Endpoint")),
                ("http_method", models.CharField(blank=True, max_length=10, verbose_name="HTTP method")),
                ("session_id", models.CharField(blank=True, max_length=100, verbose_name="Session ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Audit entry",
                "verbose_name_plural": "Audit log",
                "db_table": "security_audit_logs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["lab_id", "created_at"], name="security_au_lab_id_7c1f0e_idx"),
                    models.Index(fields=["user_id", "created_at"], name="security_au_user_id_4b2d9a_idx"),
                    models.Index(fields=["action", "was_authorized"], name="security_au_action_e83a51_idx"),
                ],
            },
        ),
    ]
